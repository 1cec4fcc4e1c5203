from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from loguru import logger

from farmtractor.core.errors import TractorError
from farmtractor.core.result import Err, Ok, Result
from farmtractor.core.retry import Sleeper
from farmtractor.gateway.interfaces import ArtifactsGateway, BlobTransport, RunsGateway
from farmtractor.gateway.models import Artifact, ArtifactType, Job, Run

DEFAULT_WANTED_TYPES = (ArtifactType.CUSTOMER_ARTIFACT, ArtifactType.VIDEO)
_WHITESPACE = re.compile(r"\s+")


def slugify(value: str) -> str:
    """Lower-case ``value`` and replace each whitespace run with ``_``."""
    return _WHITESPACE.sub("_", value.strip().lower())


def device_directory_names(jobs: Iterable[Job]) -> list[str]:
    """Slug per job; repeated devices get ``_2``, ``_3`` and so on so that no two jobs share a directory."""
    taken: set[str] = set()
    names = []
    for job in jobs:
        base = slugify(job.device_name or job.name)
        candidate, index = base, 1
        while candidate in taken:
            index += 1
            candidate = f"{base}_{index}"
        taken.add(candidate)
        names.append(candidate)
    return names


@dataclass
class HarvestReport:
    reports_dir: Optional[Path] = None
    written: list[Path] = field(default_factory=list)
    skipped_jobs: list[str] = field(default_factory=list)
    failures: list[TractorError] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.failures and not self.skipped_jobs


class EvidenceHarvester:
    """
    Download the evidence of a completed run into ``test_reports_<run>/<device>/``.

    Jobs run concurrently and each wanted artifact type downloads concurrently
    inside its job. A failing job or artifact is logged and recorded in the
    report; its siblings keep going and ``harvest`` itself never fails.
    """

    def __init__(
        self,
        runs: RunsGateway,
        artifacts: ArtifactsGateway,
        blobs: BlobTransport,
        *,
        wanted_types: Iterable[ArtifactType] = DEFAULT_WANTED_TYPES,
        settle_delay: float = 20.0,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._wanted_types = tuple(wanted_types)
        if ArtifactType.UNKNOWN in self._wanted_types:
            raise ValueError(f"{ArtifactType.UNKNOWN.value} is not a downloadable artifact type")
        if settle_delay < 0:
            raise ValueError("settle_delay must not be negative")
        self._runs = runs
        self._artifacts = artifacts
        self._blobs = blobs
        self._settle_delay = settle_delay
        self._sleep = sleep

    async def harvest(self, run: Run, destination: Path) -> HarvestReport:
        report = HarvestReport()

        jobs = await self._runs.list_jobs(run.arn)
        if isinstance(jobs, Err):
            logger.error("Could not list the jobs of the run {}: {}", run.name, jobs.error)
            report.failures.append(jobs.error)
            return report

        reports_dir = Path(destination) / f"test_reports_{slugify(run.name)}"
        try:
            reports_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.error("Could not create the reports directory {}: {}", reports_dir, exc)
            report.failures.append(TractorError(f"Could not create {reports_dir}", cause=exc))
            return report
        report.reports_dir = reports_dir

        directories = device_directory_names(jobs.value)
        await asyncio.gather(
            *(
                self._harvest_job(job, reports_dir / directory, report)
                for job, directory in zip(jobs.value, directories)
            )
        )
        logger.info(
            "Harvested {} file(s) of the run {} into {}",
            len(report.written),
            run.name,
            reports_dir,
        )
        return report

    async def _harvest_job(self, job: Job, device_dir: Path, report: HarvestReport) -> None:
        device_name = job.device_name or job.name
        try:
            device_dir.mkdir(exist_ok=True)
        except OSError as exc:
            logger.warning("Skipping the device {}: could not create {}: {}", device_name, device_dir, exc)
            report.skipped_jobs.append(device_name)
            return

        logger.info("I will download the artifacts associated to the device {}", device_name)
        if self._settle_delay:
            await self._sleep(self._settle_delay)

        artifacts = await self._artifacts.list_artifacts(job.arn)
        if isinstance(artifacts, Err):
            logger.warning("Could not list the artifacts of {}: {}", device_name, artifacts.error)
            report.failures.append(artifacts.error)
        else:
            results = await asyncio.gather(
                *(
                    self._download(artifacts.value, artifact_type, device_name, device_dir)
                    for artifact_type in self._wanted_types
                )
            )
            for result in results:
                if isinstance(result, Err):
                    report.failures.append(result.error)
                elif result.value is not None:
                    report.written.append(result.value)

        self._remove_if_empty(device_dir)

    async def _download(
        self,
        artifacts: list[Artifact],
        artifact_type: ArtifactType,
        device_name: str,
        device_dir: Path,
    ) -> Result[Optional[Path]]:
        artifact = next((item for item in artifacts if item.type is artifact_type), None)
        if artifact is None:
            logger.info("The job of {} does not have an artifact of type {}", device_name, artifact_type.value)
            return Ok(None)
        if not artifact.url:
            logger.warning("The {} of {} has no download URL yet", artifact_type.pretty_name, device_name)
            return Err(TractorError(f"{artifact.name} of {device_name} has no download URL"))

        target = device_dir / artifact.file_name
        logger.info("I will start to download the {} of {} test run", artifact_type.pretty_name, device_name)
        downloaded = await self._blobs.download(artifact.url, target)
        if isinstance(downloaded, Err):
            logger.warning(
                "There was an error downloading the {} of {} test run: {}",
                artifact_type.pretty_name,
                device_name,
                downloaded.error,
            )
            return downloaded
        logger.info("I've finished to download the {} of {} in {}", artifact_type.pretty_name, device_name, target)
        return Ok(target)

    @staticmethod
    def _remove_if_empty(device_dir: Path) -> None:
        try:
            if not any(device_dir.iterdir()):
                device_dir.rmdir()
        except OSError as exc:
            logger.debug("Could not tidy {}: {}", device_dir, exc)
