"""``devsocial-health-check``: diagnose a running API worker.

Runs the six worker diagnostics (server, memory, database, redis,
response time, queue backlog) and prints one line per check. Exits 0 when
every check passed and 1 otherwise, so it can back a container health
check or a deploy gate.

Usage:
    devsocial-health-check --port 8000 --memory-threshold 512 --response-time-threshold 2000
"""

import argparse
import asyncio
import sys
from typing import Callable, Optional, Sequence

import httpx

from devsocial.core.health.diagnostics import (
    DeferredCheck,
    MemoryCheck,
    ProbeCheck,
    QueueBacklogCheck,
    ResponseTimeCheck,
    ServerCheck,
    WorkerDiagnostics,
)
from devsocial.core.health.protocols import WorkerCheck
from devsocial.schemas.health import HealthReport

HEADER = "🔍 Checking worker health..."


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="devsocial-health-check",
        description="Check the health of a running API worker.",
    )
    parser.add_argument("--port", type=int, default=8000, help="Worker server port")
    parser.add_argument(
        "--memory-threshold", type=int, default=512, help="Memory threshold in MB"
    )
    parser.add_argument(
        "--response-time-threshold",
        type=int,
        default=2000,
        help="Response time threshold in milliseconds",
    )
    return parser


def format_report(report: HealthReport) -> list[str]:
    """Render *report* as the lines printed after the header."""
    lines = [
        f"{'✅' if result.passed else '❌'} {result.message}" for result in report.results
    ]
    lines.append("")
    if report.ok:
        lines.append(f"🎉 All health checks passed! ({report.passed}/{report.total})")
    else:
        lines.append(
            f"⚠️  Some health checks failed. ({report.passed}/{report.total} passed)"
        )
    return lines


def _default_diagnostics(
    client: httpx.AsyncClient, args: argparse.Namespace
) -> WorkerDiagnostics:
    """The six-check sweep against the local worker.

    Checks that need engines, pools or settings build them on first run, so
    a broken dependency fails its own check and the rest still report.
    """
    # Imported lazily so --help never builds engines or connection pools.

    def memory() -> WorkerCheck:
        from devsocial.core.worker.memory import ProcessMemoryProbe

        return MemoryCheck(ProcessMemoryProbe(), args.memory_threshold)

    def database() -> WorkerCheck:
        from devsocial.adapters.health import PostgresHealthProbe
        from devsocial.db.session import health_check_engine

        return ProbeCheck("database", "Database", PostgresHealthProbe(health_check_engine))

    def redis() -> WorkerCheck:
        from devsocial.adapters.health import RedisHealthProbe
        from devsocial.core.redis_client import redis_client

        return ProbeCheck("redis", "Redis", RedisHealthProbe(redis_client.client))

    def workers() -> WorkerCheck:
        from devsocial.adapters.queue import RedisJobQueue
        from devsocial.core.config import settings
        from devsocial.core.redis_client import redis_client

        return QueueBacklogCheck(RedisJobQueue(redis_client.client), settings.backlog_queues)

    return WorkerDiagnostics(
        [
            ServerCheck(client, args.port),
            DeferredCheck("memory", "Memory", memory),
            DeferredCheck("database", "Database", database),
            DeferredCheck("redis", "Redis", redis),
            ResponseTimeCheck(client, args.port, args.response_time_threshold),
            DeferredCheck("workers", "Queue worker", workers),
        ]
    )


async def _close_connections() -> None:
    """Close whatever the checks opened; modules never imported opened nothing."""
    redis_module = sys.modules.get("devsocial.core.redis_client")
    if redis_module is not None:
        await redis_module.redis_client.close()
    session_module = sys.modules.get("devsocial.db.session")
    if session_module is not None:
        await session_module.health_check_engine.dispose()


async def run_health_check(
    args: argparse.Namespace,
    *,
    diagnostics: Optional[WorkerDiagnostics] = None,
    out: Callable[[str], None] = print,
) -> int:
    """Run the diagnostics, print the report and return the exit code."""
    out(HEADER)
    if diagnostics is not None:
        report = await diagnostics.run()
    else:
        async with httpx.AsyncClient() as client:
            try:
                report = await _default_diagnostics(client, args).run()
            finally:
                await _close_connections()

    for line in format_report(report):
        out(line)
    return report.exit_code


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return asyncio.run(run_health_check(args))


if __name__ == "__main__":
    sys.exit(main())
