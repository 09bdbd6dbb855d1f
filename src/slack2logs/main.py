"""Main entry point for slack2logs.

This module provides the process entry points that orchestrate:
- Slack collection (live Socket Mode listener or historical backfill)
- Delivery of the collected records to VictoriaLogs
- HTTP server with health and metrics endpoints (live mode)

Run modes:
- live: listen to channel events until interrupted (default)
- backfill: import the full history of the configured channels, then exit

Usage:
    # Live mode (default)
    slack2logs

    # Backfill
    slack2logs-backfill
    RUN_MODE=backfill python -m slack2logs.main
    python -m slack2logs.main --mode backfill
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
import sys
import time
from typing import Any

import structlog

from slack2logs.api.router import create_app, create_server
from slack2logs.collectors.slack_collector import RunMode, SlackCollector
from slack2logs.config import Settings, get_settings
from slack2logs.delivery.victorialogs import VictoriaLogsClient
from slack2logs.errors import Slack2LogsError
from slack2logs.processor import Processor


def configure_logging(settings: Settings) -> None:
    """Configure structlog for structured logging.

    Sets up JSON logging for production environments and
    colorful console logging for development.

    Args:
        settings: Application settings containing log configuration.
    """
    shared_processors: list[Any] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.app.log_format == "json":
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.app.log_level),
    )

    # Set third-party loggers to WARNING to reduce noise
    for logger_name in ["uvicorn", "uvicorn.access", "uvicorn.error", "slack_sdk", "aiohttp"]:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def get_run_mode(argv: list[str] | None = None, default: RunMode | None = None) -> RunMode:
    """Determine the run mode from CLI args or environment variable.

    Checks command line arguments first, then falls back to the RUN_MODE
    environment variable, then to ``default`` (live if not given).

    Returns:
        The determined RunMode.
    """
    parser = argparse.ArgumentParser(description="Relay Slack channel messages into VictoriaLogs")
    parser.add_argument(
        "--mode",
        "-m",
        type=str,
        choices=[m.value for m in RunMode],
        default=None,
        help="Run mode: live or backfill (default: live)",
    )
    args, _ = parser.parse_known_args(argv)

    if args.mode:
        return RunMode(args.mode)

    fallback = default or RunMode.LIVE
    env_mode = os.environ.get("RUN_MODE", fallback.value).lower()
    try:
        return RunMode(env_mode)
    except ValueError:
        return fallback


async def run(settings: Settings, mode: RunMode) -> None:
    """Collect and deliver records until collection ends or is interrupted.

    SIGINT and SIGTERM cancel the collection task; the collector then closes
    its sink, the pump flushes what is left and returns.

    Raises:
        Slack2LogsError: If collection failed.
    """
    log = structlog.get_logger(__name__).bind(component="runner", mode=mode.value)
    started = time.monotonic()

    collector = SlackCollector(settings)
    server = None
    server_task: asyncio.Task[None] | None = None

    if mode is RunMode.LIVE:
        server = create_server(create_app(settings, mode.value), settings)
        server_task = asyncio.create_task(server.serve())
        log.info(
            "http_server_started",
            host=settings.app.http_host,
            port=settings.app.http_port,
        )

    collection = asyncio.create_task(collector.run(mode))

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, collection.cancel)

    try:
        async with VictoriaLogsClient(settings.vmlogs) as client:
            log.info("delivery_configured", url=client.url)
            await Processor(collector, client).run()

        try:
            await collection
        except asyncio.CancelledError:
            log.info("collection_interrupted")
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
        if not collection.done():
            collection.cancel()
        if server is not None and server_task is not None:
            server.should_exit = True
            await server_task
            log.info("http_server_stopped")

    if mode is RunMode.BACKFILL:
        log.info("backfill_finished", elapsed_seconds=round(time.monotonic() - started, 3))


def main(default_mode: RunMode | None = None) -> None:
    """Main entry point for the application."""
    settings = get_settings()
    run_mode = get_run_mode(default=default_mode or RunMode(settings.app.run_mode))

    configure_logging(settings)

    log = structlog.get_logger(__name__)
    log.info(
        "main_starting",
        run_mode=run_mode.value,
        app_name=settings.app.app_name,
        version=settings.app.app_version,
    )

    try:
        asyncio.run(run(settings, run_mode))
    except KeyboardInterrupt:
        log.info("application_interrupted")
    except Slack2LogsError as e:
        log.error(
            "application_fatal_error",
            error_type=type(e).__name__,
            error_message=str(e),
        )
        sys.exit(1)


def backfill_main() -> None:
    """Entry point for the backfill command."""
    main(default_mode=RunMode.BACKFILL)


__all__ = [
    "backfill_main",
    "configure_logging",
    "get_run_mode",
    "main",
    "run",
]


if __name__ == "__main__":
    main()
