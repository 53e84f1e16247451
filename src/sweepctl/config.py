from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_NAMESPACE = "gai-lina-group"
DEFAULT_ENTITY = "timgsereda"
DEFAULT_SWEEP_FILE = Path("sweep.yml")
DEFAULT_NUM_AGENTS = 4
# PVC indices 1..PVC_OFFSET are reserved for other workloads.
DEFAULT_PVC_OFFSET = 2
DEFAULT_LOG_WAIT_S = 30


@dataclass(frozen=True)
class DeploymentMode:
    kind: str
    plural: str
    template: Path


POD_MODE = DeploymentMode(kind="pod", plural="pods", template=Path("agent_pod_tr.yml"))
JOB_MODE = DeploymentMode(kind="job", plural="jobs", template=Path("agent_job_tr.yml"))

_JOB_FLAGS = frozenset({"--job", "--jobs"})


def _env_str(name: str, default: str) -> str:
    value = os.environ.get(name, "").strip()
    return value or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an int (got {raw!r})")
    if value < 0:
        raise ValueError(f"{name} must be >= 0")
    return value


def _default_namespace() -> str:
    return _env_str("SWEEPCTL_NAMESPACE", DEFAULT_NAMESPACE)


def _default_entity() -> str:
    return _env_str("SWEEPCTL_ENTITY", DEFAULT_ENTITY)


def _default_pvc_offset() -> int:
    return _env_int("SWEEPCTL_PVC_OFFSET", DEFAULT_PVC_OFFSET)


def _default_log_wait() -> int:
    return _env_int("SWEEPCTL_LOG_WAIT", DEFAULT_LOG_WAIT_S)


@dataclass(frozen=True)
class SweepSettings:
    sweep_file: Path = DEFAULT_SWEEP_FILE
    namespace: str = field(default_factory=_default_namespace)
    entity: str = field(default_factory=_default_entity)
    pvc_offset: int = field(default_factory=_default_pvc_offset)
    log_wait_s: int = field(default_factory=_default_log_wait)
    workdir: Path = Path(".")
    follow_logs: bool = True
    verbose: bool = False

    def sweep_path(self) -> Path:
        if self.sweep_file.is_absolute():
            return self.sweep_file
        return self.workdir / self.sweep_file

    def output_dir(self, mode: DeploymentMode) -> Path:
        return self.workdir / mode.plural

    def template_path(self, mode: DeploymentMode) -> Path:
        if mode.template.is_absolute():
            return mode.template
        return self.workdir / mode.template


def parse_agent_tokens(
    tokens: Iterable[str], *, default_agents: int = DEFAULT_NUM_AGENTS
) -> tuple[DeploymentMode, int]:
    """Interpret free-form launch tokens.

    ``--job``/``--jobs`` switch to Job manifests; a non-negative integer sets the
    agent count (the last one wins). Anything else is ignored.
    """
    mode = POD_MODE
    num_agents = default_agents
    for token in tokens:
        token = token.strip()
        if token in _JOB_FLAGS:
            mode = JOB_MODE
        elif token.isascii() and token.isdigit():
            num_agents = int(token)
    return mode, num_agents
