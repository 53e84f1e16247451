from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

SWEEP_OUTPUT = (
    "wandb: Creating sweep from: sweep.yml\n"
    "wandb: Creating sweep with ID: ab12cd34\n"
    "wandb: View sweep at: https://wandb.ai/timgsereda/brats/sweeps/ab12cd34\n"
    "wandb: Run sweep agent with: wandb agent timgsereda/brats/ab12cd34\n"
)

POD_TEMPLATE = (
    "kind: Pod\n"
    "metadata:\n"
    "  name: {RESOURCE_NAME}\n"
    "spec:\n"
    "  args: [wandb agent acct/{WANDB_PROJECT}/{SWEEP_ID}]\n"
    "  claim: data-{PVC_NUM}\n"
)


class FakeCli:
    """Stands in for `subprocess.run` and records every command issued."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.sweep_output = SWEEP_OUTPUT
        self.existing: list[str] = []
        self.failing_applies: set[str] = set()
        self.installed = {"kubectl", "wandb"}

    def which(self, name: str) -> str | None:
        return f"/usr/bin/{name}" if name in self.installed else None

    def run(self, cmd: list[str], **kwargs) -> subprocess.CompletedProcess[str]:
        self.calls.append(list(cmd))
        tool, args = cmd[0], cmd[1:]
        if tool == "wandb":
            return subprocess.CompletedProcess(cmd, 0, self.sweep_output, None)
        if args[:1] == ["apply"]:
            path = args[-1]
            name = Path(path).stem
            if name in self.failing_applies:
                return subprocess.CompletedProcess(cmd, 1, "", "error: admission denied")
            return subprocess.CompletedProcess(cmd, 0, f"pod/{name} created\n", "")
        if args[:1] == ["get"] and "--no-headers" in args:
            return subprocess.CompletedProcess(cmd, 0, "".join(f"{n}\n" for n in self.existing), "")
        return subprocess.CompletedProcess(cmd, 0, None, None)

    def commands(self, *prefix: str) -> list[list[str]]:
        n = len(prefix)
        return [c for c in self.calls if c[:n] == list(prefix)]


@pytest.fixture
def fake_cli():
    fake = FakeCli()
    with (
        patch("sweepctl.shell.subprocess.run", fake.run),
        patch("sweepctl.shell.shutil.which", fake.which),
    ):
        yield fake


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    (tmp_path / "sweep.yml").write_text(
        "project: brats\nname: unet\nmethod: grid\nmetric:\n  name: val/dice\n",
        encoding="utf-8",
    )
    (tmp_path / "agent_pod_tr.yml").write_text(POD_TEMPLATE, encoding="utf-8")
    (tmp_path / "agent_job_tr.yml").write_text(
        POD_TEMPLATE.replace("kind: Pod", "kind: Job"), encoding="utf-8"
    )
    return tmp_path


@pytest.fixture
def pod_template() -> str:
    return POD_TEMPLATE
