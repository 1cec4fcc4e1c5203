from __future__ import annotations

import asyncio
from pathlib import Path
from unittest import mock

import pytest
import requests

from farmtractor.core.errors import TransientRemoteError
from farmtractor.evidence.harvester import EvidenceHarvester, device_directory_names, slugify
from farmtractor.gateway.blobs import HttpBlobTransport
from farmtractor.gateway.memory import InMemoryBlobStore, InMemoryDeviceFarm
from farmtractor.gateway.models import (
    ArtifactType,
    ExecutionStatus,
    Job,
    RunTestType,
    ScheduleRunRequest,
    ScheduleRunTest,
)


class _RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _completed_run(farm: InMemoryDeviceFarm, name: str = "Nightly Regression"):
    request = ScheduleRunRequest(
        project_arn="arn:project",
        device_pool_arn="arn:pool",
        app_arn="arn:app",
        name=name,
        test=ScheduleRunTest(type=RunTestType.APPIUM_NODE, test_package_arn="arn:pkg", test_spec_arn="arn:spec"),
    )
    return asyncio.run(farm.schedule_run(request)).value


def _harvester(farm, blobs=None, **kwargs) -> EvidenceHarvester:
    kwargs.setdefault("sleep", _RecordingSleep())
    return EvidenceHarvester(farm, farm, blobs or InMemoryBlobStore(), **kwargs)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("Google Pixel 7", "google_pixel_7"),
        ("Apple  iPhone\t14 Pro", "apple_iphone_14_pro"),
        ("Nightly", "nightly"),
    ],
)
def test_slugify(value: str, expected: str) -> None:
    assert slugify(value) == expected


def test_one_blocked_device_does_not_stop_the_other_nine(tmp_path: Path) -> None:
    devices = tuple(f"Device {index}" for index in range(10))
    farm = InMemoryDeviceFarm(devices=devices, run_statuses=(ExecutionStatus.COMPLETED,))
    run = _completed_run(farm)
    reports_dir = tmp_path / "test_reports_nightly_regression"
    reports_dir.mkdir()
    (reports_dir / "device_3").write_text("not a directory", encoding="utf-8")

    report = asyncio.run(_harvester(farm).harvest(run, tmp_path))

    populated = sorted(path.name for path in reports_dir.iterdir() if path.is_dir() and any(path.iterdir()))
    assert len(populated) == 9
    assert "device_3" not in populated
    assert report.skipped_jobs == ["Device 3"]
    assert report.reports_dir == reports_dir
    assert len(report.written) == 18
    assert (reports_dir / "device_0" / "Test reports.zip").is_file()
    assert (reports_dir / "device_0" / "Recorded video.mp4").is_file()
    assert not report.succeeded


def test_device_without_wanted_artifacts_leaves_no_directory(tmp_path: Path) -> None:
    farm = InMemoryDeviceFarm(devices=("Google Pixel 7",), artifact_types=(ArtifactType.DEVICE_LOG,))
    run = _completed_run(farm, name="Smoke")

    report = asyncio.run(_harvester(farm).harvest(run, tmp_path))

    reports_dir = tmp_path / "test_reports_smoke"
    assert reports_dir.is_dir()
    assert list(reports_dir.iterdir()) == []
    assert report.written == []
    assert report.succeeded


def test_only_the_failing_download_is_lost(tmp_path: Path) -> None:
    farm = InMemoryDeviceFarm(devices=("Google Pixel 7", "Samsung Galaxy S23"))
    run = _completed_run(farm, name="Smoke")
    jobs = asyncio.run(farm.list_jobs(run.arn)).value
    pixel = next(job for job in jobs if job.device_name == "Google Pixel 7")
    blobs = InMemoryBlobStore()
    blobs.fail_url(f"memory://artifacts/{pixel.arn}/video")

    report = asyncio.run(_harvester(farm, blobs).harvest(run, tmp_path))

    pixel_dir = tmp_path / "test_reports_smoke" / "google_pixel_7"
    galaxy_dir = tmp_path / "test_reports_smoke" / "samsung_galaxy_s23"
    assert sorted(path.name for path in pixel_dir.iterdir()) == ["Test reports.zip"]
    assert sorted(path.name for path in galaxy_dir.iterdir()) == ["Recorded video.mp4", "Test reports.zip"]
    assert len(report.failures) == 1


def test_artifact_listing_failure_is_isolated(tmp_path: Path) -> None:
    farm = InMemoryDeviceFarm(devices=("Google Pixel 7", "Samsung Galaxy S23"))
    run = _completed_run(farm, name="Smoke")
    jobs = asyncio.run(farm.list_jobs(run.arn)).value
    galaxy = next(job for job in jobs if job.device_name == "Samsung Galaxy S23")
    farm.fail("list_artifacts", TransientRemoteError("throttled"), key=galaxy.arn)

    report = asyncio.run(_harvester(farm).harvest(run, tmp_path))

    reports_dir = tmp_path / "test_reports_smoke"
    assert sorted(path.name for path in reports_dir.iterdir()) == ["google_pixel_7"]
    assert len(report.written) == 2
    assert len(report.failures) == 1


def test_job_listing_failure_harvests_nothing(tmp_path: Path) -> None:
    farm = InMemoryDeviceFarm()
    run = _completed_run(farm, name="Smoke")
    farm.fail("list_jobs", TransientRemoteError("throttled"))

    report = asyncio.run(_harvester(farm).harvest(run, tmp_path))

    assert report.reports_dir is None
    assert not (tmp_path / "test_reports_smoke").exists()
    assert len(report.failures) == 1


def test_each_job_waits_for_artifacts_to_settle(tmp_path: Path) -> None:
    farm = InMemoryDeviceFarm(devices=("Google Pixel 7", "Samsung Galaxy S23"))
    run = _completed_run(farm, name="Smoke")
    sleep = _RecordingSleep()

    asyncio.run(_harvester(farm, settle_delay=20.0, sleep=sleep).harvest(run, tmp_path))

    assert sleep.delays == [20.0, 20.0]


def test_only_wanted_types_are_downloaded(tmp_path: Path) -> None:
    farm = InMemoryDeviceFarm(devices=("Google Pixel 7",))
    run = _completed_run(farm, name="Smoke")

    report = asyncio.run(_harvester(farm, wanted_types=(ArtifactType.VIDEO,)).harvest(run, tmp_path))

    assert [path.name for path in report.written] == ["Recorded video.mp4"]


def test_unknown_artifact_type_is_rejected() -> None:
    farm = InMemoryDeviceFarm()

    with pytest.raises(ValueError):
        EvidenceHarvester(farm, farm, InMemoryBlobStore(), wanted_types=(ArtifactType.UNKNOWN,))


def test_jobs_on_the_same_device_model_get_their_own_directory(tmp_path: Path) -> None:
    farm = InMemoryDeviceFarm(devices=("Google Pixel 7", "Google Pixel 7"))
    run = _completed_run(farm, name="Smoke")
    first, second = asyncio.run(farm.list_jobs(run.arn)).value

    report = asyncio.run(_harvester(farm).harvest(run, tmp_path))

    reports_dir = tmp_path / "test_reports_smoke"
    assert sorted(path.name for path in reports_dir.iterdir()) == ["google_pixel_7", "google_pixel_7_2"]
    assert first.arn in (reports_dir / "google_pixel_7" / "Recorded video.mp4").read_text(encoding="utf-8")
    assert second.arn in (reports_dir / "google_pixel_7_2" / "Recorded video.mp4").read_text(encoding="utf-8")
    assert len(report.written) == 4
    assert report.succeeded


def test_tidying_one_job_does_not_remove_a_twin_device_directory(tmp_path: Path) -> None:
    farm = InMemoryDeviceFarm(devices=("Google Pixel 7", "Google Pixel 7"))
    run = _completed_run(farm, name="Smoke")
    first, _ = asyncio.run(farm.list_jobs(run.arn)).value
    farm.fail("list_artifacts", TransientRemoteError("throttled"), key=first.arn)

    report = asyncio.run(_harvester(farm).harvest(run, tmp_path))

    reports_dir = tmp_path / "test_reports_smoke"
    assert sorted(path.name for path in reports_dir.iterdir()) == ["google_pixel_7_2"]
    assert sorted(path.name for path in (reports_dir / "google_pixel_7_2").iterdir()) == [
        "Recorded video.mp4",
        "Test reports.zip",
    ]
    assert len(report.failures) == 1


def test_device_directory_names_do_not_collide() -> None:
    jobs = [
        Job(arn="arn:1", name="Pixel", device_name="Pixel"),
        Job(arn="arn:2", name="Pixel", device_name="Pixel"),
        Job(arn="arn:3", name="Pixel 2", device_name="Pixel 2"),
        Job(arn="arn:4", name="Pixel", device_name="Pixel"),
    ]

    assert device_directory_names(jobs) == ["pixel", "pixel_2", "pixel_2_2", "pixel_3"]


def test_interrupted_download_leaves_no_evidence_behind(tmp_path: Path) -> None:
    def broken_stream(chunk_size: int):
        yield b"partial"
        raise requests.exceptions.ChunkedEncodingError("connection broken")

    response = mock.MagicMock()
    response.iter_content.side_effect = broken_stream
    session = mock.MagicMock()
    session.get.return_value.__enter__.return_value = response
    farm = InMemoryDeviceFarm(devices=("Google Pixel 7",))
    run = _completed_run(farm, name="Smoke")

    report = asyncio.run(_harvester(farm, HttpBlobTransport(session=session)).harvest(run, tmp_path))

    assert list((tmp_path / "test_reports_smoke").iterdir()) == []
    assert report.written == []
    assert len(report.failures) == 2
