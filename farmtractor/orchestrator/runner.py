from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

from loguru import logger

from farmtractor.core.errors import TractorError
from farmtractor.core.result import Err, Result
from farmtractor.evidence.harvester import EvidenceHarvester
from farmtractor.gateway.interfaces import RunsGateway
from farmtractor.gateway.models import (
    BillingMethod,
    Run,
    RunTestType,
    ScheduleRunRequest,
    ScheduleRunTest,
    Upload,
    UploadType,
)
from farmtractor.runs.monitor import RunMonitor
from farmtractor.runs.results_table import render_results_table
from farmtractor.uploads.cleanup import UploadJanitor
from farmtractor.uploads.fanout import ArtifactRole, ArtifactSpec, MultiArtifactFanOut
from farmtractor.uploads.validation import app_upload_type

from .resolvers import DevicePoolResolver, ProjectResolver

APP_PERFORMANCE_MONITORING_PARAMETER = "app_performance_monitoring"


class ExecutionType(str, Enum):
    NATIVE = "native"
    WEB = "web"


@dataclass(frozen=True)
class RunOptions:
    execution_type: ExecutionType = ExecutionType.NATIVE
    capture_video: bool = True
    run_name: str = ""
    reports_dir: Optional[Union[Path, str]] = None
    download_reports: bool = True
    cleanup_uploads: bool = True
    metered: bool = True
    disable_performance_monitoring: bool = False


def default_run_name(now: datetime) -> str:
    return f"Test_Run_{now.year}_{now.month}_{now.day}_{now.hour}_{now.minute}"


class TractorRunner:
    """
    Run a Device Farm test execution end to end.

    Project and device pool resolution, the artifact uploads and the run itself
    must succeed: the first failure among them is logged and raised. Once the run
    has completed, evidence download and upload cleanup are best effort and never
    change the returned run.
    """

    def __init__(
        self,
        *,
        projects: ProjectResolver,
        device_pools: DevicePoolResolver,
        uploader: MultiArtifactFanOut,
        monitor: RunMonitor,
        harvester: EvidenceHarvester,
        janitor: UploadJanitor,
        runs: RunsGateway,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._projects = projects
        self._device_pools = device_pools
        self._uploader = uploader
        self._monitor = monitor
        self._harvester = harvester
        self._janitor = janitor
        self._runs = runs
        self._clock = clock

    async def run_tests(
        self,
        project_name: str,
        device_pool_name: str,
        app_path: str,
        test_package_path: str,
        test_spec_path: str,
        options: Optional[RunOptions] = None,
    ) -> Run:
        options = options or RunOptions()
        is_web = options.execution_type is ExecutionType.WEB

        artifacts = {
            ArtifactRole.TEST_PACKAGE: ArtifactSpec(test_package_path, UploadType.APPIUM_NODE_TEST_PACKAGE),
            ArtifactRole.TEST_SPEC: ArtifactSpec(test_spec_path, UploadType.APPIUM_NODE_TEST_SPEC),
        }
        if not is_web:
            app_type = self._required(app_upload_type(app_path))
            artifacts[ArtifactRole.APP] = ArtifactSpec(app_path, app_type)

        project = self._required(await self._projects.resolve(project_name))
        device_pool = self._required(await self._device_pools.resolve(project.arn, device_pool_name))
        uploads = self._required(await self._uploader.upload_all(project.arn, artifacts))

        parameters = {}
        if options.disable_performance_monitoring:
            parameters[APP_PERFORMANCE_MONITORING_PARAMETER] = "false"
        app_upload = uploads.get(ArtifactRole.APP)
        request = ScheduleRunRequest(
            project_arn=project.arn,
            device_pool_arn=device_pool.arn,
            app_arn=app_upload.arn if app_upload else "",
            name=options.run_name.strip() or default_run_name(self._clock()),
            billing_method=BillingMethod.METERED if options.metered else BillingMethod.UNMETERED,
            video_capture=options.capture_video,
            test=ScheduleRunTest(
                type=RunTestType.APPIUM_WEB_NODE if is_web else RunTestType.APPIUM_NODE,
                test_package_arn=uploads[ArtifactRole.TEST_PACKAGE].arn,
                test_spec_arn=uploads[ArtifactRole.TEST_SPEC].arn,
                parameters=parameters,
            ),
        )
        run = self._required(await self._monitor.schedule_and_wait(request))

        if options.download_reports and options.reports_dir:
            await self._download_reports(run, Path(options.reports_dir))
        if options.cleanup_uploads:
            await self._delete_uploads(uploads.values())
        return run

    async def _download_reports(self, run: Run, reports_dir: Path) -> None:
        try:
            report = await self._harvester.harvest(run, reports_dir)
        except Exception:
            logger.exception("Downloading the evidence of the run {} failed", run.name)
            return
        if not report.succeeded:
            logger.warning(
                "Some evidence of the run {} could not be downloaded ({} failure(s), {} skipped device(s))",
                run.name,
                len(report.failures),
                len(report.skipped_jobs),
            )

    async def _delete_uploads(self, uploads: Iterable[Upload]) -> None:
        try:
            await self._janitor.delete_uploads(uploads)
        except Exception:
            logger.exception("Deleting the uploads of the run failed")

    def run_tests_sync(self, *args, **kwargs) -> Run:
        """Blocking wrapper around :meth:`run_tests` for callers without an event loop."""
        return asyncio.run(self.run_tests(*args, **kwargs))

    async def get_device_results_table(self, run: Run) -> str:
        jobs = await self._runs.list_jobs(run.arn)
        if isinstance(jobs, Err):
            logger.warning("Could not list the jobs of the run {}: {}", run.name, jobs.error)
            return ""
        return render_results_table(jobs.value)

    @staticmethod
    def _required(result: Result):
        if isinstance(result, Err):
            error: TractorError = result.error
            logger.opt(exception=error).error("The test run could not be executed: {}", error)
            raise error
        return result.value
