from typing import Any, Dict

from fastapi import APIRouter

from ..config import settings
from ..providers.oneinch import get_oneinch_provider

router = APIRouter()


@router.get("/healthz")
async def health_check() -> Dict[str, Any]:
    """Report which external services are configured."""
    provider_status: Dict[str, Any] = {
        "oneinch": await get_oneinch_provider().health_check(),
        "llm": {
            "status": "configured" if settings.has_llm_key else "unconfigured",
            "provider": settings.llm_provider,
            "model": settings.llm_model,
        },
    }

    quotes_ready = provider_status["oneinch"]["status"] == "configured"
    return {
        "status": "healthy" if quotes_ready else "degraded",
        "providers": provider_status,
        "default_chain_id": settings.default_chain_id,
    }
