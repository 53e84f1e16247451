from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from sweepctl import kube
from sweepctl.config import DeploymentMode

RESOURCE_PREFIX_STEM = "sweep"
MANIFEST_SUFFIX = ".yml"

PLACEHOLDER_RESOURCE_NAME = "{RESOURCE_NAME}"
PLACEHOLDER_SWEEP_ID = "{SWEEP_ID}"
PLACEHOLDER_PVC_NUM = "{PVC_NUM}"
PLACEHOLDER_PROJECT = "{WANDB_PROJECT}"
PLACEHOLDERS = (
    PLACEHOLDER_RESOURCE_NAME,
    PLACEHOLDER_SWEEP_ID,
    PLACEHOLDER_PVC_NUM,
    PLACEHOLDER_PROJECT,
)


@dataclass(frozen=True)
class AgentPlan:
    ordinal: int
    volume_index: int
    resource_name: str
    manifest_path: Path


@dataclass(frozen=True)
class AgentOutcome:
    plan: AgentPlan
    ok: bool
    output: str = ""


@dataclass
class DeploySummary:
    attempted: int = 0
    succeeded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    last_resource: str | None = None

    def record(self, outcome: AgentOutcome) -> None:
        self.attempted += 1
        self.last_resource = outcome.plan.resource_name
        if outcome.ok:
            self.succeeded.append(outcome.plan.resource_name)
        else:
            self.failed.append(outcome.plan.resource_name)


def resource_prefix(name: str) -> str:
    return f"{RESOURCE_PREFIX_STEM}-{name}"


def volume_index(ordinal: int, offset: int) -> int:
    return ordinal + offset


def resource_name(prefix: str, index: int) -> str:
    return f"{prefix}-{index}"


def matching_resources(names: Iterable[str], prefix: str) -> list[str]:
    needle = f"{prefix}-"
    return [n for n in names if needle in n]


def find_existing_resources(
    mode: DeploymentMode, namespace: str, prefix: str, *, verbose: bool = False
) -> list[str]:
    names = kube.list_resource_names(mode.plural, namespace, verbose=verbose)
    return matching_resources(names, prefix)


def render_template(template: str, values: Mapping[str, str]) -> str:
    """Literal replacement of every placeholder occurrence; unknown ones are left alone."""
    out = template
    for placeholder, value in values.items():
        out = out.replace(placeholder, value)
    return out


def placeholder_values(*, plan: AgentPlan, sweep_id: str, project: str) -> dict[str, str]:
    return {
        PLACEHOLDER_RESOURCE_NAME: plan.resource_name,
        PLACEHOLDER_SWEEP_ID: sweep_id,
        PLACEHOLDER_PVC_NUM: str(plan.volume_index),
        PLACEHOLDER_PROJECT: project,
    }


def plan_agents(
    *, prefix: str, num_agents: int, offset: int, output_dir: Path
) -> Iterator[AgentPlan]:
    for ordinal in range(1, num_agents + 1):
        idx = volume_index(ordinal, offset)
        name = resource_name(prefix, idx)
        yield AgentPlan(
            ordinal=ordinal,
            volume_index=idx,
            resource_name=name,
            manifest_path=output_dir / f"{name}{MANIFEST_SUFFIX}",
        )


def write_manifest(plan: AgentPlan, rendered: str) -> Path:
    plan.manifest_path.parent.mkdir(parents=True, exist_ok=True)
    plan.manifest_path.write_text(rendered, encoding="utf-8")
    return plan.manifest_path


def deploy_agents(
    *,
    template: str,
    sweep_id: str,
    project: str,
    prefix: str,
    num_agents: int,
    offset: int,
    output_dir: Path,
    verbose: bool = False,
) -> Iterator[AgentOutcome]:
    """Render, write and apply one manifest per agent, yielding each outcome.

    A failed write or apply is reported through the outcome and never stops the loop.
    """
    if not sweep_id:
        raise ValueError("sweep_id must be non-empty before deploying agents")
    for plan in plan_agents(
        prefix=prefix, num_agents=num_agents, offset=offset, output_dir=output_dir
    ):
        rendered = render_template(
            template, placeholder_values(plan=plan, sweep_id=sweep_id, project=project)
        )
        try:
            write_manifest(plan, rendered)
        except OSError as e:
            msg = f"Could not write {plan.manifest_path}: {e}"
            yield AgentOutcome(plan=plan, ok=False, output=msg)
            continue
        result = kube.apply_file(plan.manifest_path, verbose=verbose)
        yield AgentOutcome(plan=plan, ok=result.ok, output=result.output)
