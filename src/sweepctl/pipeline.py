from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sweepctl import monitor, shell
from sweepctl.config import DeploymentMode, SweepSettings
from sweepctl.definition import SweepDefinition, load_sweep_definition
from sweepctl.deploy import (
    PLACEHOLDERS,
    AgentOutcome,
    DeploySummary,
    deploy_agents,
    find_existing_resources,
    resource_prefix,
)
from sweepctl.errors import MissingFileError, MissingToolError
from sweepctl.kube import KUBECTL
from sweepctl.submit import WANDB, SweepHandle, handle_from_output, run_sweep_command

REQUIRED_TOOLS = (KUBECTL, WANDB)


@dataclass
class RunContext:
    """State handed from one stage of a launch to the next."""

    settings: SweepSettings
    mode: DeploymentMode
    num_agents: int
    definition: SweepDefinition | None = None
    handle: SweepHandle | None = None
    existing: list[str] = field(default_factory=list)
    summary: DeploySummary = field(default_factory=DeploySummary)

    @property
    def project(self) -> str:
        assert self.definition is not None
        return self.definition.project

    @property
    def prefix(self) -> str:
        assert self.definition is not None
        return resource_prefix(self.definition.name)

    @property
    def last_resource(self) -> str | None:
        return self.summary.last_resource


def check_prerequisites(settings: SweepSettings, mode: DeploymentMode) -> None:
    for tool in REQUIRED_TOOLS:
        if not shell.has_command(tool):
            raise MissingToolError(tool)
    sweep_path = settings.sweep_path()
    if not sweep_path.is_file():
        raise MissingFileError(sweep_path)
    template_path = settings.template_path(mode)
    if not template_path.is_file():
        raise MissingFileError(template_path, what="Template file")


def reserved_range_text(offset: int) -> str:
    if offset <= 0:
        return "no reserved indices"
    if offset == 1:
        return "skipping 1"
    return f"skipping 1..{offset}"


def create_sweep_stage(ctx: RunContext, console: Console) -> SweepHandle:
    settings = ctx.settings
    sweep_path = settings.sweep_path()
    console.print(f"==> Creating W&B sweep from {sweep_path} ...", markup=False, soft_wrap=True)
    console.print(f"Using W&B Project Name: {ctx.project}", markup=False, soft_wrap=True)
    raw = run_sweep_command(
        sweep_path, entity=settings.entity, project=ctx.project, verbose=settings.verbose
    )
    console.print(raw.rstrip(), markup=False, highlight=False, soft_wrap=True)
    handle = handle_from_output(raw)
    console.print(f"Sweep created. ID: {handle.sweep_id}", markup=False)
    return handle


def warn_existing(ctx: RunContext, console: Console) -> list[str]:
    settings = ctx.settings
    console.print(
        f"==> Checking for existing {ctx.mode.plural} matching resource name prefix "
        f"'{ctx.prefix}-' ...",
        markup=False,
        soft_wrap=True,
    )
    existing = find_existing_resources(
        ctx.mode, settings.namespace, ctx.prefix, verbose=settings.verbose
    )
    if existing:
        table = Table(
            title=(
                f"WARNING: existing Kubernetes {ctx.mode.plural} "
                f"with prefix '{escape(ctx.prefix)}-'"
            )
        )
        table.add_column("name")
        for name in existing:
            table.add_row(escape(name))
        console.print(table)
        console.print(
            "These resources will continue to run unless manually deleted. "
            "New resources will also be deployed."
        )
    return existing


def _print_outcome(console: Console, outcome: AgentOutcome) -> None:
    if outcome.ok:
        console.print("   Successfully deployed.")
        return
    console.print("   Deployment failed.")
    if outcome.output:
        console.print(outcome.output, markup=False, highlight=False, soft_wrap=True)


def deploy_stage(ctx: RunContext, console: Console) -> DeploySummary:
    settings = ctx.settings
    assert ctx.handle is not None
    output_dir = settings.output_dir(ctx.mode)
    template = settings.template_path(ctx.mode).read_text(encoding="utf-8")
    console.print(f"==> Deploying {ctx.num_agents} training agent(s) as {ctx.mode.plural} ...")

    summary = ctx.summary
    outcomes = deploy_agents(
        template=template,
        sweep_id=ctx.handle.sweep_id,
        project=ctx.project,
        prefix=ctx.prefix,
        num_agents=ctx.num_agents,
        offset=settings.pvc_offset,
        output_dir=output_dir,
        verbose=settings.verbose,
    )
    for outcome in outcomes:
        plan = outcome.plan
        console.print(
            f"[{plan.ordinal}/{ctx.num_agents}] Deploying {plan.resource_name} "
            f"(PVC index {plan.volume_index}) ...",
            markup=False,
            soft_wrap=True,
        )
        _print_outcome(console, outcome)
        summary.record(outcome)

    console.print(f"Generated YAML files saved to: {output_dir}/", markup=False, soft_wrap=True)
    console.print(f"Deployed {len(summary.succeeded)}/{summary.attempted} agent(s).")
    if summary.failed:
        console.print(f"Failed: {', '.join(summary.failed)}", markup=False, soft_wrap=True)
    return summary


def run_sweep(
    settings: SweepSettings,
    mode: DeploymentMode,
    num_agents: int,
    *,
    console: Console | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> RunContext:
    """Create the sweep, deploy its agents and tail the last one.

    Raises `PreconditionError` on any fatal condition; nothing is deployed in
    that case. Individual apply failures are reported in the returned context.
    """
    console = console or Console(soft_wrap=True)
    ctx = RunContext(settings=settings, mode=mode, num_agents=num_agents)

    console.print("W&B Sweep Agent Deployment")
    check_prerequisites(settings, mode)
    ctx.definition = load_sweep_definition(settings.sweep_path())

    console.print(f"W&B Project Name: '{ctx.project}'", markup=False, soft_wrap=True)
    console.print(f"K8s Resource Name Prefix: '{ctx.prefix}'", markup=False, soft_wrap=True)
    console.print(f"Deploying {num_agents} agents as {mode.plural}.")
    first_index = settings.pvc_offset + 1
    console.print(
        f"PVC index starts at: {first_index} ({reserved_range_text(settings.pvc_offset)})."
    )

    ctx.handle = create_sweep_stage(ctx, console)

    console.print()
    console.print(
        f"NOTE: Resource names are '{ctx.prefix}-<PVC_NUM>'.", markup=False, soft_wrap=True
    )
    console.print(
        f"The template must use {', '.join(PLACEHOLDERS)} placeholders.",
        markup=False,
    )
    console.print()

    ctx.existing = warn_existing(ctx, console)
    deploy_stage(ctx, console)
    monitor.report(
        console,
        entity=settings.entity,
        project=ctx.project,
        sweep_id=ctx.handle.sweep_id,
        namespace=settings.namespace,
        mode=mode,
        last_resource=ctx.last_resource,
        wait_s=settings.log_wait_s,
        follow=settings.follow_logs,
        verbose=settings.verbose,
        sleep=sleep,
    )
    return ctx
