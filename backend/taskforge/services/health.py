"""Health report for liveness probing: process memory/GC stats and database connectivity."""

import gc
import logging
import time
from enum import Enum
from typing import Any

import psutil
from pydantic import BaseModel, Field
from sqlalchemy.engine import Engine

from taskforge.database import ping

logger = logging.getLogger(__name__)


class HealthStatus(str, Enum):
    HEALTHY = "Healthy"
    DEGRADED = "Degraded"
    UNHEALTHY = "Unhealthy"


_SEVERITY = [HealthStatus.HEALTHY, HealthStatus.DEGRADED, HealthStatus.UNHEALTHY]


class HealthEntry(BaseModel):
    status: HealthStatus
    description: str
    data: dict[str, Any] = Field(default_factory=dict)


class HealthReport(BaseModel):
    status: HealthStatus
    results: dict[str, HealthEntry]


def _allocated_bytes() -> int:
    # Current resident set size, not the peak
    return psutil.Process().memory_info().rss


def check_gc_info(threshold_bytes: int) -> HealthEntry:
    allocated = _allocated_bytes()
    data: dict[str, Any] = {"Allocated": allocated}
    for generation, stats in enumerate(gc.get_stats()):
        data[f"Gen{generation}Collections"] = stats["collections"]

    status = HealthStatus.DEGRADED if allocated >= threshold_bytes else HealthStatus.HEALTHY
    return HealthEntry(
        status=status,
        description=f"Reports degraded status if allocated bytes >= {threshold_bytes}",
        data=data,
    )


def check_database(engine: Engine | None = None) -> HealthEntry:
    started = time.perf_counter()
    try:
        ping(engine)
    except Exception as e:
        logger.error(f"Database health check failed: {e!r}")
        return HealthEntry(
            status=HealthStatus.UNHEALTHY,
            description="Database is unreachable",
            data={"error": type(e).__name__},
        )
    elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
    return HealthEntry(
        status=HealthStatus.HEALTHY,
        description="Database is reachable",
        data={"ElapsedMilliseconds": elapsed_ms},
    )


def build_report(threshold_bytes: int, engine: Engine | None = None) -> HealthReport:
    results = {
        "gcinfo": check_gc_info(threshold_bytes),
        "database": check_database(engine),
    }
    status = max((entry.status for entry in results.values()), key=_SEVERITY.index)
    return HealthReport(status=status, results=results)
