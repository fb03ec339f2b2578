"""Health check endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, Request, Response

from assistant_relay import __version__

router = APIRouter()

# Track startup time
_startup_time = datetime.now(timezone.utc)


@router.get("/health")
async def health_check():
    """
    Basic health check endpoint.
    Returns 200 if the service is running.
    """
    now = datetime.now(timezone.utc)
    return {
        "status": "healthy",
        "service": "assistant-relay",
        "version": __version__,
        "timestamp": now.isoformat(),
        "uptime_seconds": (now - _startup_time).total_seconds(),
    }


@router.get("/ready")
async def readiness_check(request: Request, response: Response):
    """
    Readiness check endpoint.
    Ready once startup has built the conversation handler and resolved the assistant.
    """
    checks = {
        "conversation_handler": getattr(request.app.state, "conversation_handler", None) is not None,
        "assistant": bool(getattr(request.app.state, "assistant_id", None)),
    }
    all_healthy = all(checks.values())
    if not all_healthy:
        response.status_code = 503

    return {
        "status": "ready" if all_healthy else "degraded",
        "checks": checks,
    }


@router.get("/live")
async def liveness_check():
    """Returns 200 if the process is alive."""
    return {"status": "alive"}
