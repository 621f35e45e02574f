from __future__ import annotations

import logging
import os
import resource
import sys
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_STARTED_AT = time.monotonic()
_MB = 1024 * 1024


def memory_usage_mb() -> dict[str, int]:
    """Current and peak resident set size of this process, in MB.

    ``ru_maxrss`` is reported in kilobytes on Linux and bytes on macOS.
    Current RSS comes from ``/proc`` where it exists, otherwise the peak
    stands in for it.
    """
    peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    peak_bytes = peak if sys.platform == "darwin" else peak * 1024

    try:
        with open("/proc/self/statm") as statm:
            rss_bytes = int(statm.read().split()[1]) * os.sysconf("SC_PAGE_SIZE")
    except (OSError, ValueError, IndexError):
        rss_bytes = peak_bytes

    return {"rss": round(rss_bytes / _MB), "peakRss": round(peak_bytes / _MB)}


@router.get("/health")
def health_check(db: Session = Depends(get_db)) -> JSONResponse:
    """Health check endpoint.

    Reports uptime, pings the database and samples process memory. Used by
    load balancers and monitoring systems; never rate limited.

    Returns:
        JSONResponse: 200 with ``status: healthy``, or 503 when the database
            does not answer. High memory only raises a ``warning`` on the
            memory check.
    """
    started = time.perf_counter()
    payload: dict = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": f"{round(time.monotonic() - _STARTED_AT)}s",
        "checks": {},
    }

    try:
        db.execute(text("SELECT 1"))
        payload["checks"]["database"] = {
            "status": "healthy",
            "dialect": db.get_bind().dialect.name,
            "ping": "success",
        }
    except SQLAlchemyError as exc:
        logger.error("health.database_unreachable", extra={"error_type": type(exc).__name__})
        payload["checks"]["database"] = {"status": "unhealthy"}
        payload["status"] = "unhealthy"

    usage = memory_usage_mb()
    memory_ok = usage["rss"] < settings.app.memory_warning_mb
    if not memory_ok:
        logger.warning(
            "health.memory_high",
            extra={"rss_mb": usage["rss"], "threshold_mb": settings.app.memory_warning_mb},
        )
    payload["checks"]["memory"] = {
        "status": "healthy" if memory_ok else "warning",
        "usage": usage,
        "unit": "MB",
    }

    payload["responseTime"] = f"{(time.perf_counter() - started) * 1000:.0f}ms"
    status_code = 200 if payload["status"] == "healthy" else 503
    return JSONResponse(status_code=status_code, content=payload)
