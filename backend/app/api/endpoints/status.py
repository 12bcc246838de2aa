"""
Status and health check endpoints.

WHAT: Health monitoring for the configured LLM endpoints
WHY: Quick diagnostics for frontend and ops
HOW: Static config summary plus a live ping of every candidate
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends

from ...core.config import settings
from ...llm.provider import LLMProvider
from ...llm.provider_factory import get_provider
from ...utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/healthz")
async def healthz():
    """Lightweight health check; does not call the model."""
    return {
        "ok": True,
        "model": settings.OPENAI_MODEL,
        "protocol": settings.LLM_PROTOCOL,
        "endpoints": settings.get_base_url_candidates(),
    }


@router.get("/api/llm/status")
async def llm_status(provider: LLMProvider = Depends(get_provider)):
    """
    Check every configured LLM endpoint.

    Returns:
        JSON with per-endpoint availability; overall status is "healthy" when
        at least one endpoint answers
    """
    endpoints = [asdict(status) for status in await provider.ping()]
    available = any(endpoint["available"] for endpoint in endpoints)
    if not available:
        logger.warning("No LLM endpoint is reachable")

    return {
        "status": "healthy" if available else "degraded",
        "model": settings.OPENAI_MODEL,
        "protocol": settings.LLM_PROTOCOL,
        "endpoints": endpoints,
    }
