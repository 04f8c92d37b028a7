"""Health check module for service dependencies."""

import asyncio
import platform
import resource
import sys
import time
from dataclasses import dataclass
from typing import Literal

from .database import Database

STARTED_AT = time.monotonic()


@dataclass
class ServiceHealth:
    """Health status for a service dependency."""

    status: Literal["connected", "unreachable", "error"]
    latency_ms: float | None = None
    error: str | None = None


async def check_database(database: Database) -> ServiceHealth:
    """Check database connectivity with SELECT 1 query.

    Args:
        database: Application database

    Returns:
        ServiceHealth with connection status and latency
    """
    start = time.perf_counter()
    try:
        async with asyncio.timeout(2.0):
            connected = await database.ping()
        if not connected:
            return ServiceHealth(status="error", error="connection failed")
        latency = (time.perf_counter() - start) * 1000
        return ServiceHealth(status="connected", latency_ms=round(latency, 2))
    except asyncio.TimeoutError:
        return ServiceHealth(status="unreachable", error="timeout")


def process_metrics() -> dict:
    """Basic process metrics: uptime and peak resident memory."""
    peak_kb = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    if sys.platform == "darwin":
        peak_kb //= 1024
    return {
        "uptime_seconds": round(time.monotonic() - STARTED_AT, 2),
        "memory_peak_mb": round(peak_kb / 1024, 1),
        "python_version": platform.python_version(),
    }
