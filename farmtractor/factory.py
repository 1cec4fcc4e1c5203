from __future__ import annotations

from dataclasses import replace
from typing import Optional

from loguru import logger

from farmtractor.config import PollingSettings, TractorConfig, load_config
from farmtractor.evidence.harvester import EvidenceHarvester
from farmtractor.gateway.blobs import HttpBlobTransport
from farmtractor.gateway.devicefarm import BotoDeviceFarmGateway
from farmtractor.gateway.factory import build_devicefarm_client
from farmtractor.gateway.interfaces import BlobTransport, DeviceFarmGateway
from farmtractor.gateway.memory import InMemoryBlobStore, InMemoryDeviceFarm
from farmtractor.orchestrator.resolvers import DevicePoolResolver, ProjectResolver
from farmtractor.orchestrator.runner import TractorRunner
from farmtractor.runs.monitor import RunMonitor
from farmtractor.uploads.cleanup import UploadJanitor
from farmtractor.uploads.coordinator import ArtifactUploadCoordinator
from farmtractor.uploads.fanout import MultiArtifactFanOut

# The in-memory farm answers instantly, so demo runs only keep a token delay.
DEMO_MAX_DELAY = 0.05


def _demo_polling(polling: PollingSettings) -> PollingSettings:
    return replace(
        polling,
        upload_poll_interval=min(polling.upload_poll_interval, DEMO_MAX_DELAY),
        run_poll_interval=min(polling.run_poll_interval, DEMO_MAX_DELAY),
        artifact_settle_delay=0.0,
    )


def build_runner(
    config: Optional[TractorConfig] = None,
    *,
    gateway: Optional[DeviceFarmGateway] = None,
    blobs: Optional[BlobTransport] = None,
) -> TractorRunner:
    """
    Assemble a :class:`TractorRunner` for ``config``.

    ``demo`` mode wires the in-memory farm; ``real`` mode builds a boto3 Device
    Farm client and streams artifacts over HTTP. Explicit ``gateway``/``blobs``
    win over both.
    """

    config = config or load_config()
    polling = config.polling

    if config.is_demo:
        logger.info("Running in demo mode against the in-memory device farm")
        polling = _demo_polling(polling)
        gateway = gateway or InMemoryDeviceFarm()
        blobs = blobs or InMemoryBlobStore()
    else:
        if gateway is None:
            gateway = BotoDeviceFarmGateway(build_devicefarm_client(config.aws))
        blobs = blobs or HttpBlobTransport(request_timeout=polling.request_timeout)

    coordinator = ArtifactUploadCoordinator(
        gateway,
        blobs,
        poll_interval=polling.upload_poll_interval,
        max_attempts=polling.upload_max_attempts,
    )
    return TractorRunner(
        projects=ProjectResolver(gateway),
        device_pools=DevicePoolResolver(gateway),
        uploader=MultiArtifactFanOut(coordinator),
        monitor=RunMonitor(gateway, poll_interval=polling.run_poll_interval),
        harvester=EvidenceHarvester(gateway, gateway, blobs, settle_delay=polling.artifact_settle_delay),
        janitor=UploadJanitor(gateway),
        runs=gateway,
    )
