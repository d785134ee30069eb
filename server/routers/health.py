"""
Health check endpoints for deployment.

Provides:
- /health - Basic liveness check (is the app running?)
- /ready - Readiness check (can the app take another table?)
"""

import json
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Response

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

# Service references (set during app initialization)
_session_manager = None


def set_health_dependencies(session_manager=None):
    """Set dependencies for health checks."""
    global _session_manager
    _session_manager = session_manager


@router.get("/health")
async def health_check():
    """
    Basic liveness check - is the app running?

    This endpoint should always return 200 if the process is alive.
    """
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/ready")
async def readiness_check():
    """
    Readiness check - can the app take another session?

    Returns 503 once the session limit is reached.
    """
    checks = {}
    ready = True

    if _session_manager is not None:
        active = len(_session_manager.sessions)
        checks["sessions"] = {
            "active": active,
            "games_in_progress": _session_manager.games_in_progress(),
            "limit": _session_manager.max_sessions,
        }
        if active >= _session_manager.max_sessions:
            checks["sessions"]["status"] = "full"
            ready = False
        else:
            checks["sessions"]["status"] = "ok"
    else:
        checks["sessions"] = {"status": "not_configured"}

    status_code = 200 if ready else 503
    return Response(
        content=json.dumps({
            "status": "ok" if ready else "full",
            "checks": checks,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }),
        status_code=status_code,
        media_type="application/json",
    )
