"""
Health check routes.
Liveness and database readiness probes for load balancers.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from sqlalchemy import text
from datetime import datetime, timezone
import time
import logging

from app.db.database import get_db
from app.core.rate_limiting import limiter, HEALTH_LIMIT

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

# Track startup time for uptime reporting
_STARTUP_TIME = time.time()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("")
async def liveness_check():
    """Returns 200 while the process is serving."""
    return {"ok": True, "uptime_seconds": int(time.time() - _STARTUP_TIME), "timestamp": _now()}


@router.get("/ready")
@limiter.limit(HEALTH_LIMIT)
def readiness_check(request: Request, db: Session = Depends(get_db)):
    """Reports whether the catalog database answers a trivial query."""
    try:
        db.execute(text("SELECT 1"))
        return {"ready": True, "timestamp": _now()}
    except Exception as e:
        logger.error(f"Readiness check failed: {e!r}")
        return {"ready": False, "error": "database unavailable", "timestamp": _now()}
