"""API routes for HeaderMatch."""

import logging

from fastapi import APIRouter, HTTPException

from ..domain import MatchingReport, MatchRequest
from ..errors import ProviderInitializationError, UnknownProviderError, ValidationError
from ..matching import ColumnMatchingService, describe_failure

logger = logging.getLogger(__name__)

router = APIRouter()


def get_service() -> ColumnMatchingService:
    """Get the global matching service instance."""
    from .app import get_service as _get_service

    return _get_service()


@router.get("/health")
async def health_check():
    """Health check endpoint with diagnostics."""
    from ..config import settings

    # Gather non-secret diagnostics
    config = {
        "default_provider": settings.default_provider,
        "default_model": settings.default_model,
        "openai_key_present": bool(settings.openai_api_key),
        "openrouter_key_present": bool(settings.openrouter_api_key),
        "anthropic_key_present": bool(settings.anthropic_api_key),
        "aws_region_configured": bool(settings.aws_region),
    }

    return {
        "status": "ok",
        "service": "headermatch",
        "config": config,
    }


@router.get("/providers")
async def list_providers():
    """List the registered provider identifiers."""
    providers = get_service().list_available_providers()
    return {"count": len(providers), "providers": providers}


@router.post("/match", response_model=MatchingReport, response_model_by_alias=True)
def match_columns(request: MatchRequest):
    """Match source headers against target headers."""
    service = get_service()
    try:
        return service.match(request)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=describe_failure(e))
    except UnknownProviderError as e:
        raise HTTPException(status_code=404, detail=describe_failure(e))
    except ProviderInitializationError as e:
        logger.error(f"Provider initialization failed: {e.formatted_message()}")
        raise HTTPException(status_code=400, detail=describe_failure(e))
