"""Health check routes."""

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    return {"status": "healthy", "service": "lead-qualifier-api", "version": "1.0.0"}


@router.get("/ready")
async def ready(request: Request):
    """Readiness check - verifies a valid scoring config is active."""
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        return {"status": "not_ready", "detail": "engine not initialized"}
    return {"status": "ready", "config_version": engine.config.version}
