"""Health check endpoint for the gcproxy API server."""

from fastapi import APIRouter, Response

from gcproxy.core.logging import get_logger


router = APIRouter()
logger = get_logger(__name__)


@router.get("/health")
async def health_check(response: Response) -> dict[str, str]:
    """Liveness probe; only verifies the process is serving requests."""
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    logger.debug("health_check_request")
    return {"status": "ok"}
