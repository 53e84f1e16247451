from __future__ import annotations

import time
from collections.abc import Callable

from rich.console import Console

from sweepctl import kube
from sweepctl.config import DeploymentMode

WANDB_BASE_URL = "https://wandb.ai"
BANNER = "=" * 60


def sweep_url(entity: str, project: str, sweep_id: str) -> str:
    return f"{WANDB_BASE_URL}/{entity}/{project}/sweeps/{sweep_id}"


def log_target(mode: DeploymentMode, resource: str) -> str:
    # Job names are not pod names; let kubectl pick a pod of the Job.
    if mode.kind == "job":
        return f"job/{resource}"
    return resource


def report(
    console: Console,
    *,
    entity: str,
    project: str,
    sweep_id: str,
    namespace: str,
    mode: DeploymentMode,
    last_resource: str | None,
    wait_s: int,
    follow: bool = True,
    verbose: bool = False,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    console.print()
    console.print(BANNER)
    console.print("Deployment Complete.")
    console.print(BANNER)
    console.print(f"W&B Project: {project}", markup=False, soft_wrap=True)
    console.print(
        f"Sweep URL: {sweep_url(entity, project, sweep_id)}", markup=False, soft_wrap=True
    )
    console.print()
    kube.show_pods(namespace, verbose=verbose)

    if last_resource is None:
        console.print("No agents were deployed; nothing to follow.")
        return
    target = log_target(mode, last_resource)
    if not follow:
        console.print(
            f"Follow logs with: kubectl logs {target} -n {namespace} -f",
            markup=False,
            soft_wrap=True,
        )
        return
    if wait_s > 0:
        console.print(
            f"==> Waiting {wait_s}s for {last_resource} to start ...",
            markup=False,
            soft_wrap=True,
        )
        sleep(wait_s)
    kube.stream_logs(target, namespace, follow=True, verbose=verbose)
