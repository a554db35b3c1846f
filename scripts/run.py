#!/usr/bin/env python3
"""Main entrypoint — validates configuration and runs the monitoring cycles.

Usage::

    # Run the scheduler (quick checks + daily briefing) until interrupted
    python scripts/run.py

    # Custom config file
    python scripts/run.py --config config/settings.yaml

    # Run a single cycle and exit
    python scripts/run.py --once full
    python scripts/run.py --once quick
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys

import structlog

from forge_ops.core.config import ConfigError, Settings, load_settings, missing_required
from forge_ops.core.logging import setup_logging
from forge_ops.monitor.factory import MonitorStack, create_monitor_stack

logger = structlog.get_logger(__name__)


def validate_settings(settings: Settings) -> bool:
    """Print every missing required variable to stderr. True when complete."""
    missing = missing_required(settings)
    if not missing:
        return True
    print("Missing required environment variables:", file=sys.stderr)
    for key in missing:
        print(f"   - {key}", file=sys.stderr)
    print(
        "\nSet all required variables in the environment, .env or config/settings.yaml.",
        file=sys.stderr,
    )
    return False


def report_invalid_settings(exc: ConfigError) -> None:
    """Print every invalid setting to stderr."""
    print("Invalid configuration values:", file=sys.stderr)
    for problem in exc.problems:
        print(f"   - {problem}", file=sys.stderr)


async def run_once(stack: MonitorStack, cycle: str) -> None:
    if cycle == "full":
        await stack.scheduler.run_full_now()
    else:
        await stack.scheduler.run_quick_now()


async def run_forever(stack: MonitorStack) -> None:
    await stack.scheduler.start()
    logger.info("ops_running")

    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("shutdown_signal_received")
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows: signal handlers not supported on ProactorEventLoop
            pass

    try:
        await stop_event.wait()
    except KeyboardInterrupt:
        logger.info("keyboard_interrupt")

    logger.info("ops_shutting_down")
    await stack.scheduler.stop()


async def run(args: argparse.Namespace) -> int:
    """Validate configuration, wire the stack and run it."""
    try:
        settings = load_settings(args.config, env_file=args.env_file)
    except ConfigError as exc:
        report_invalid_settings(exc)
        return 1
    setup_logging(level=args.log_level)

    if not validate_settings(settings):
        logger.error("startup_config_missing", missing=missing_required(settings))
        return 1

    logger.info(
        "ops_starting",
        briefing_hour=settings.schedule.briefing_hour,
        timezone=settings.schedule.timezone,
        endpoints=len(settings.uptime.targets()),
    )

    stack = create_monitor_stack(settings)
    try:
        if args.once:
            await run_once(stack, args.once)
        else:
            await run_forever(stack)
    finally:
        await stack.close()

    logger.info("ops_stopped")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Run the ops monitoring worker.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to settings YAML (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Dotenv file with secrets (default: .env)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level override: DEBUG, INFO, WARNING, ERROR",
    )
    parser.add_argument(
        "--once",
        choices=("full", "quick"),
        default=None,
        help="Run a single cycle and exit",
    )
    args = parser.parse_args()

    code = asyncio.run(run(args))
    sys.exit(code)


if __name__ == "__main__":
    main()
