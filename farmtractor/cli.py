from __future__ import annotations

import argparse
import asyncio
import sys
from typing import List, Optional

from botocore.exceptions import BotoCoreError
from loguru import logger

from farmtractor.config import TractorConfig, load_config
from farmtractor.core.errors import TractorError
from farmtractor.factory import build_runner
from farmtractor.gateway.models import ExecutionResult, Run
from farmtractor.orchestrator.runner import ExecutionType, RunOptions, TractorRunner

EXIT_PASSED = 0
EXIT_NOT_PASSED = 1
EXIT_PRE_RUN_FAILURE = 2


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="farmtractor",
        description="Upload an Appium test bundle to AWS Device Farm, run it and collect the evidence.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Schedule a test run and wait until it finishes.")
    run.add_argument("--project", required=True, help="Device Farm project name; created when missing.")
    run.add_argument("--device-pool", default="", help="Device pool name (default: first pool of the project).")
    run.add_argument("--app", default="", help="Path to the .apk or .ipa under test (not needed with --web).")
    run.add_argument("--test-package", required=True, help="Path to the zipped Appium Node test package.")
    run.add_argument("--test-spec", required=True, help="Path to the .yml test spec.")
    run.add_argument("--web", action="store_true", help="Run a mobile web test instead of a native app test.")
    run.add_argument("--run-name", default="", help="Run name (default: Test_Run_<date>_<time>).")
    run.add_argument("--reports-dir", default="", help="Directory where the test evidence is downloaded.")
    run.add_argument("--no-download", action="store_true", help="Do not download the test evidence.")
    run.add_argument("--keep-uploads", action="store_true", help="Do not delete the uploads after the run.")
    run.add_argument("--unmetered", action="store_true", help="Bill the run against unmetered device slots.")
    run.add_argument("--no-video", action="store_true", help="Disable video capture.")
    run.add_argument(
        "--disable-performance-monitoring",
        action="store_true",
        help="Turn off Device Farm app performance monitoring.",
    )
    run.add_argument("--demo", action="store_true", help="Use the in-memory device farm instead of AWS.")
    run.add_argument("--log-level", default=None, help="Log level (default: FARMTRACTOR_LOG_LEVEL or INFO).")
    return parser.parse_args(argv)


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def _apply_overrides(config: TractorConfig, args: argparse.Namespace) -> TractorConfig:
    if args.demo:
        config.mode = "demo"
    if args.log_level:
        config.log_level = args.log_level.upper()
    return config


def _options_from_args(args: argparse.Namespace) -> RunOptions:
    return RunOptions(
        execution_type=ExecutionType.WEB if args.web else ExecutionType.NATIVE,
        capture_video=not args.no_video,
        run_name=args.run_name,
        reports_dir=args.reports_dir or None,
        download_reports=not args.no_download,
        cleanup_uploads=not args.keep_uploads,
        metered=not args.unmetered,
        disable_performance_monitoring=args.disable_performance_monitoring,
    )


async def _run(runner: TractorRunner, args: argparse.Namespace) -> tuple[Run, str]:
    run = await runner.run_tests(
        args.project,
        args.device_pool,
        args.app,
        args.test_package,
        args.test_spec,
        _options_from_args(args),
    )
    table = await runner.get_device_results_table(run)
    return run, table


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    config = _apply_overrides(load_config(), args)
    _configure_logging(config.log_level)

    try:
        runner = build_runner(config)
    except BotoCoreError as exc:
        logger.error("Could not create the Device Farm client: {}", exc)
        return EXIT_PRE_RUN_FAILURE

    try:
        run, table = asyncio.run(_run(runner, args))
    except TractorError as exc:
        logger.error("The test run could not be executed: {}", exc)
        return EXIT_PRE_RUN_FAILURE

    if table:
        print(table)
    print(f"Run {run.name} finished with result {run.result.value}")
    return EXIT_PASSED if run.result is ExecutionResult.PASSED else EXIT_NOT_PASSED


if __name__ == "__main__":
    sys.exit(main())
