from __future__ import annotations

from rich.console import Console

from sweepctl.config import JOB_MODE, POD_MODE
from sweepctl.monitor import log_target, report, sweep_url


def _console() -> Console:
    return Console(record=True, width=120)


def test_sweep_url() -> None:
    assert sweep_url("acct", "proj", "ab12cd34") == "https://wandb.ai/acct/proj/sweeps/ab12cd34"


def test_log_target_by_mode() -> None:
    assert log_target(POD_MODE, "sweep-unet-3") == "sweep-unet-3"
    assert log_target(JOB_MODE, "sweep-unet-3") == "job/sweep-unet-3"


def test_report_waits_then_follows_last_resource(fake_cli) -> None:
    slept: list[float] = []
    console = _console()
    report(
        console,
        entity="acct",
        project="proj",
        sweep_id="ab12cd34",
        namespace="ns1",
        mode=POD_MODE,
        last_resource="sweep-unet-6",
        wait_s=30,
        sleep=slept.append,
    )
    assert slept == [30]
    assert fake_cli.calls == [
        ["kubectl", "get", "pods", "-n", "ns1"],
        ["kubectl", "logs", "sweep-unet-6", "-n", "ns1", "-f"],
    ]
    text = console.export_text()
    assert "Deployment Complete." in text
    assert "https://wandb.ai/acct/proj/sweeps/ab12cd34" in text


def test_report_without_agents_does_not_tail(fake_cli) -> None:
    slept: list[float] = []
    report(
        _console(),
        entity="acct",
        project="proj",
        sweep_id="ab12cd34",
        namespace="ns1",
        mode=POD_MODE,
        last_resource=None,
        wait_s=30,
        sleep=slept.append,
    )
    assert slept == []
    assert fake_cli.commands("kubectl", "logs") == []


def test_report_no_follow_prints_command(fake_cli) -> None:
    console = _console()
    report(
        console,
        entity="acct",
        project="proj",
        sweep_id="ab12cd34",
        namespace="ns1",
        mode=JOB_MODE,
        last_resource="sweep-unet-3",
        wait_s=30,
        follow=False,
        sleep=lambda s: None,
    )
    assert fake_cli.commands("kubectl", "logs") == []
    assert "kubectl logs job/sweep-unet-3 -n ns1 -f" in console.export_text()


def test_report_keeps_long_url_on_one_line(fake_cli) -> None:
    console = Console(record=True, width=80)
    project = "brats-segmentation-experiments"
    report(
        console,
        entity="timgsereda",
        project=project,
        sweep_id="ab12cd34",
        namespace="ns1",
        mode=POD_MODE,
        last_resource="sweep-unet-3",
        wait_s=0,
        follow=False,
    )
    text = console.export_text()
    assert f"Sweep URL: https://wandb.ai/timgsereda/{project}/sweeps/ab12cd34\n" in text
