from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from sweepctl.config import (
    DEFAULT_NUM_AGENTS,
    DEFAULT_SWEEP_FILE,
    SweepSettings,
    parse_agent_tokens,
)
from sweepctl.definition import load_sweep_definition
from sweepctl.deploy import placeholder_values, plan_agents, render_template, resource_prefix
from sweepctl.errors import MissingFileError, PreconditionError
from sweepctl.pipeline import run_sweep

app = typer.Typer(add_completion=False, no_args_is_help=True)
console = Console(soft_wrap=True)

_state: dict[str, bool] = {"verbose": False}


def _make_settings(
    *,
    sweep_file: Path,
    workdir: Path,
    namespace: str | None,
    entity: str | None,
    pvc_offset: int | None,
    log_wait: int | None,
    follow: bool,
) -> SweepSettings:
    try:
        base = SweepSettings(sweep_file=sweep_file, workdir=workdir)
    except ValueError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1) from e
    return SweepSettings(
        sweep_file=base.sweep_file,
        workdir=base.workdir,
        namespace=namespace or base.namespace,
        entity=entity or base.entity,
        pvc_offset=base.pvc_offset if pvc_offset is None else pvc_offset,
        log_wait_s=base.log_wait_s if log_wait is None else log_wait,
        follow_logs=follow,
        verbose=_state["verbose"],
    )


@app.callback()
def _root(
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Echo every kubectl/wandb command")
    ] = False,
) -> None:
    """Create W&B sweeps and deploy their agents onto Kubernetes."""
    _state["verbose"] = verbose


@app.command(
    "launch",
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)
def launch(
    tokens: Annotated[
        list[str] | None,
        typer.Argument(
            help=(
                "Agent count and/or --job/--jobs (deploy Jobs instead of Pods). "
                f"Default: {DEFAULT_NUM_AGENTS} pods."
            ),
            show_default=False,
        ),
    ] = None,
    sweep_file: Annotated[
        Path, typer.Option("--sweep-file", help="W&B sweep definition")
    ] = DEFAULT_SWEEP_FILE,
    workdir: Annotated[
        Path,
        typer.Option("--workdir", help="Directory holding templates and rendered manifests"),
    ] = Path("."),
    namespace: Annotated[
        str | None,
        typer.Option("--namespace", "-n", help="Kubernetes namespace [env: SWEEPCTL_NAMESPACE]"),
    ] = None,
    entity: Annotated[
        str | None, typer.Option("--entity", help="W&B entity [env: SWEEPCTL_ENTITY]")
    ] = None,
    pvc_offset: Annotated[
        int | None,
        typer.Option(
            "--pvc-offset",
            min=0,
            help="Reserved PVC indices; agent i binds PVC i+offset [env: SWEEPCTL_PVC_OFFSET]",
        ),
    ] = None,
    log_wait: Annotated[
        int | None,
        typer.Option(
            "--log-wait", min=0, help="Seconds before tailing logs [env: SWEEPCTL_LOG_WAIT]"
        ),
    ] = None,
    follow: Annotated[
        bool, typer.Option("--follow/--no-follow", help="Tail the last agent's logs")
    ] = True,
) -> None:
    """Create the sweep and deploy its agents."""
    mode, num_agents = parse_agent_tokens(tokens or [])
    settings = _make_settings(
        sweep_file=sweep_file,
        workdir=workdir,
        namespace=namespace,
        entity=entity,
        pvc_offset=pvc_offset,
        log_wait=log_wait,
        follow=follow,
    )
    try:
        run_sweep(settings, mode, num_agents, console=console)
    except PreconditionError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1) from e


@app.command("render")
def render(
    sweep_id: Annotated[str, typer.Option("--sweep-id", help="Sweep id to embed")],
    ordinal: Annotated[
        int, typer.Option("--ordinal", min=1, help="Agent ordinal (1-based)")
    ] = 1,
    job: Annotated[bool, typer.Option("--job/--pod", help="Render the Job template")] = False,
    sweep_file: Annotated[
        Path, typer.Option("--sweep-file", help="W&B sweep definition")
    ] = DEFAULT_SWEEP_FILE,
    workdir: Annotated[
        Path, typer.Option("--workdir", help="Directory holding the templates")
    ] = Path("."),
    pvc_offset: Annotated[
        int | None, typer.Option("--pvc-offset", min=0, help="Reserved PVC indices")
    ] = None,
) -> None:
    """Print one agent's manifest without creating a sweep or touching the cluster."""
    mode, _ = parse_agent_tokens(["--job"] if job else [])
    settings = _make_settings(
        sweep_file=sweep_file,
        workdir=workdir,
        namespace=None,
        entity=None,
        pvc_offset=pvc_offset,
        log_wait=None,
        follow=False,
    )
    try:
        sweep_path = settings.sweep_path()
        if not sweep_path.is_file():
            raise MissingFileError(sweep_path)
        template_path = settings.template_path(mode)
        if not template_path.is_file():
            raise MissingFileError(template_path, what="Template file")
        definition = load_sweep_definition(sweep_path)
    except PreconditionError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1) from e

    plans = list(
        plan_agents(
            prefix=resource_prefix(definition.name),
            num_agents=ordinal,
            offset=settings.pvc_offset,
            output_dir=settings.output_dir(mode),
        )
    )
    plan = plans[-1]
    template = template_path.read_text(encoding="utf-8")
    values = placeholder_values(plan=plan, sweep_id=sweep_id, project=definition.project)
    typer.echo(f"# {plan.manifest_path}", err=True)
    typer.echo(render_template(template, values), nl=False)


def main() -> None:
    app()
