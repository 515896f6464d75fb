import time

from fastapi import APIRouter, Request

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("")
def health(request: Request):
    """Liveness check; reports database reachability without failing on it."""
    return {
        "ok": True,
        "uptime": round(time.monotonic() - request.app.state.started_at, 3),
        "database": "ok" if request.app.state.db.ping() else "unavailable",
    }
