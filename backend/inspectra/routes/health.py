"""
Inspectra Backend — Health Check Route
========================================

What:  Liveness plus a lightweight probe of the inference service.

Status levels:
    - healthy:   inference reachable
    - degraded:  credential missing or inference unreachable; text notes
                 still work, image extraction does not
"""

import logging
import time

from fastapi import APIRouter, Depends

from inspectra import __version__
from inspectra.config import Settings
from inspectra.dependencies import get_llm_service, get_session_service, get_settings
from inspectra.schemas.api import HealthResponse
from inspectra.services.llm_base import LLMService
from inspectra.services.session_service import SessionService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    app_settings: Settings = Depends(get_settings),
    llm: LLMService = Depends(get_llm_service),
    sessions: SessionService = Depends(get_session_service),
) -> HealthResponse:
    if not app_settings.has_api_key:
        inference = "not_configured"
    else:
        try:
            inference = "available" if await llm.health_check() else "unavailable"
        except Exception as e:
            logger.warning("Health check: inference unreachable: %s", e)
            inference = "unavailable"

    return HealthResponse(
        status="healthy" if inference == "available" else "degraded",
        version=__version__,
        inference=inference,
        model=app_settings.openai_model,
        sessions=len(sessions),
        uptime_seconds=round(time.time() - _start_time, 2),
    )
