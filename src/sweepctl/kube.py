from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from sweepctl import shell

KUBECTL = "kubectl"


@dataclass(frozen=True)
class ApplyResult:
    path: Path
    returncode: int
    output: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def _kubectl(
    args: list[str], *, capture: bool = True, verbose: bool = False
) -> subprocess.CompletedProcess[str]:
    return shell.run([KUBECTL, *args], capture=capture, verbose=verbose)


def list_resource_names(plural: str, namespace: str, *, verbose: bool = False) -> list[str]:
    """Names of all ``plural`` resources in ``namespace``.

    Lookup failures (no access, unknown namespace) yield an empty list.
    """
    proc = _kubectl(
        [
            "get",
            plural,
            "-n",
            namespace,
            "--no-headers",
            "-o",
            "custom-columns=NAME:.metadata.name",
        ],
        verbose=verbose,
    )
    if proc.returncode != 0:
        return []
    return [line.strip() for line in (proc.stdout or "").splitlines() if line.strip()]


def apply_file(path: Path, *, verbose: bool = False) -> ApplyResult:
    proc = _kubectl(["apply", "-f", str(path)], verbose=verbose)
    return ApplyResult(path=path, returncode=proc.returncode, output=shell.output_of(proc).strip())


def show_pods(namespace: str, *, verbose: bool = False) -> int:
    proc = _kubectl(["get", "pods", "-n", namespace], capture=False, verbose=verbose)
    return proc.returncode


def stream_logs(
    target: str, namespace: str, *, follow: bool = True, verbose: bool = False
) -> int:
    args = ["logs", target, "-n", namespace]
    if follow:
        args.append("-f")
    proc = _kubectl(args, capture=False, verbose=verbose)
    return proc.returncode
