from __future__ import annotations

import shutil
import subprocess
import sys


def run(
    cmd: list[str],
    *,
    capture: bool = True,
    merge_stderr: bool = False,
    verbose: bool = False,
) -> subprocess.CompletedProcess[str]:
    """Run ``cmd`` to completion; the exit status is left to the caller."""
    if verbose:
        print(f"$ {' '.join(cmd)}", file=sys.stderr)
    kwargs: dict = {
        "text": True,
        "errors": "replace",
        "check": False,
    }
    if capture:
        kwargs["stdout"] = subprocess.PIPE
        # wandb logs progress to stderr; keep it interleaved with stdout.
        kwargs["stderr"] = subprocess.STDOUT if merge_stderr else subprocess.PIPE
    return subprocess.run(cmd, **kwargs)


def output_of(proc: subprocess.CompletedProcess[str]) -> str:
    return (proc.stdout or "") + (proc.stderr or "")


def has_command(name: str) -> bool:
    return shutil.which(name) is not None
