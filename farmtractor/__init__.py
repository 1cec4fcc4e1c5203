"""
Drive Appium test executions on AWS Device Farm: upload the app and test bundle,
schedule the run, wait for it and download the per-device evidence.
"""

from farmtractor.factory import build_runner
from farmtractor.orchestrator.runner import ExecutionType, RunOptions, TractorRunner

__all__ = ["ExecutionType", "RunOptions", "TractorRunner", "build_runner"]
