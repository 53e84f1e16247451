from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from sweepctl import shell
from sweepctl.errors import SweepIdNotFoundError

WANDB = "wandb"

_AGENT_CMD_RE = re.compile(r"wandb agent [^/\s]+/[^/\s]+/([A-Za-z0-9]+)")
_SWEEPS_URL_RE = re.compile(r"https?://\S*?/sweeps/([A-Za-z0-9]+)")
_TOKEN_RE = re.compile(r"\b[A-Za-z0-9]{8,}\b", re.ASCII)


@dataclass(frozen=True)
class SweepHandle:
    sweep_id: str
    raw_output: str


def match_agent_command(output: str) -> str:
    """``wandb agent <entity>/<project>/<id>`` as printed by ``wandb sweep``."""
    m = _AGENT_CMD_RE.search(output)
    return m.group(1) if m else ""


def match_sweeps_url(output: str) -> str:
    """``.../sweeps/<id>`` from the "View sweep at" link."""
    m = _SWEEPS_URL_RE.search(output)
    return m.group(1) if m else ""


def match_trailing_token(output: str) -> str:
    """Last standalone alphanumeric token of 8+ characters."""
    tokens = _TOKEN_RE.findall(output)
    return tokens[-1] if tokens else ""


SweepIdMatcher = Callable[[str], str]

# Most to least specific.
SWEEP_ID_MATCHERS: tuple[SweepIdMatcher, ...] = (
    match_agent_command,
    match_sweeps_url,
    match_trailing_token,
)


def recover_sweep_id(output: str, matchers: Sequence[SweepIdMatcher] = SWEEP_ID_MATCHERS) -> str:
    for matcher in matchers:
        sweep_id = matcher(output)
        if sweep_id:
            return sweep_id
    return ""


def run_sweep_command(
    sweep_file: Path, *, entity: str, project: str, verbose: bool = False
) -> str:
    proc = shell.run(
        [WANDB, "sweep", str(sweep_file), "--entity", entity, "--project", project],
        merge_stderr=True,
        verbose=verbose,
    )
    return shell.output_of(proc)


def handle_from_output(raw: str) -> SweepHandle:
    sweep_id = recover_sweep_id(raw)
    if not sweep_id:
        raise SweepIdNotFoundError(raw)
    return SweepHandle(sweep_id=sweep_id, raw_output=raw)


def create_sweep(
    sweep_file: Path, *, entity: str, project: str, verbose: bool = False
) -> SweepHandle:
    raw = run_sweep_command(sweep_file, entity=entity, project=project, verbose=verbose)
    return handle_from_output(raw)
