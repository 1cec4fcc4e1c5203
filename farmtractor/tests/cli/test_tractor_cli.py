from __future__ import annotations

from pathlib import Path

import pytest

from farmtractor import cli
from farmtractor.config import TractorConfig
from farmtractor.factory import build_runner
from farmtractor.gateway.memory import InMemoryBlobStore, InMemoryDeviceFarm
from farmtractor.gateway.models import ExecutionResult
from farmtractor.orchestrator.runner import ExecutionType


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for name in ("MODE", "LOG_LEVEL", "ARTIFACT_SETTLE_DELAY"):
        monkeypatch.delenv(f"FARMTRACTOR_{name}", raising=False)


@pytest.fixture
def bundle(tmp_path: Path) -> list[str]:
    paths = []
    for name in ("app.apk", "tests.zip", "spec.yml"):
        path = tmp_path / name
        path.write_bytes(name.encode())
        paths.append(str(path))
    app, package, spec = paths
    return ["--app", app, "--test-package", package, "--test-spec", spec]


def test_parse_args_maps_flags_to_run_options() -> None:
    args = cli.parse_args(
        [
            "run",
            "--project",
            "mobile",
            "--test-package",
            "tests.zip",
            "--test-spec",
            "spec.yml",
            "--web",
            "--no-video",
            "--unmetered",
            "--keep-uploads",
            "--disable-performance-monitoring",
            "--reports-dir",
            "out",
        ]
    )

    options = cli._options_from_args(args)

    assert args.command == "run"
    assert args.app == ""
    assert options.execution_type is ExecutionType.WEB
    assert options.capture_video is False
    assert options.metered is False
    assert options.cleanup_uploads is False
    assert options.disable_performance_monitoring is True
    assert options.download_reports is True
    assert options.reports_dir == "out"


def test_a_command_is_required() -> None:
    with pytest.raises(SystemExit):
        cli.parse_args([])


def test_demo_run_passes_and_prints_the_table(tmp_path: Path, bundle, capsys) -> None:
    reports = tmp_path / "reports"
    args = ["run", "--demo", "--project", "mobile", "--run-name", "Smoke", "--reports-dir", str(reports)]

    code = cli.main(args + bundle)

    out = capsys.readouterr().out
    assert code == cli.EXIT_PASSED
    assert "| Google Pixel 7 | PASSED |" in out
    assert "finished with result PASSED" in out
    assert (reports / "test_reports_smoke" / "google_pixel_7").is_dir()


def test_failed_run_exits_with_one(monkeypatch, bundle) -> None:
    farm = InMemoryDeviceFarm(run_result=ExecutionResult.FAILED)
    monkeypatch.setattr(
        cli,
        "build_runner",
        lambda config: build_runner(TractorConfig(mode="demo"), gateway=farm, blobs=InMemoryBlobStore()),
    )

    assert cli.main(["run", "--project", "mobile"] + bundle) == cli.EXIT_NOT_PASSED


def test_pre_run_failure_exits_with_two(tmp_path: Path, bundle) -> None:
    args = ["run", "--demo", "--project", "mobile", "--device-pool", "Does not exist"] + bundle

    assert cli.main(args) == cli.EXIT_PRE_RUN_FAILURE


def test_invalid_app_exits_with_two(tmp_path: Path) -> None:
    app = tmp_path / "app.exe"
    app.write_bytes(b"nope")

    code = cli.main(
        ["run", "--demo", "--project", "mobile", "--app", str(app), "--test-package", "t.zip", "--test-spec", "s.yml"]
    )

    assert code == cli.EXIT_PRE_RUN_FAILURE


def test_cli_flags_override_the_environment(monkeypatch) -> None:
    monkeypatch.setenv("FARMTRACTOR_MODE", "real")
    monkeypatch.setenv("FARMTRACTOR_LOG_LEVEL", "INFO")
    args = cli.parse_args(
        ["run", "--project", "p", "--test-package", "t.zip", "--test-spec", "s.yml", "--demo", "--log-level", "debug"]
    )

    config = cli._apply_overrides(cli.load_config(), args)

    assert config.is_demo
    assert config.log_level == "DEBUG"
