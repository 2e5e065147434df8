"""Health check endpoint."""

from fastapi import APIRouter, Request
from datetime import datetime, timezone

from .. import __version__

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("/")
async def health_check():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": _now(),
        "service": "peel-n-edit",
        "version": __version__,
    }


@router.get("/ready")
async def readiness_check(request: Request):
    """Ready once the session registry is wired up."""
    registry = getattr(request.app.state, "registry", None)
    return {
        "ready": registry is not None,
        "active_sessions": len(registry) if registry is not None else 0,
        "timestamp": _now(),
    }
