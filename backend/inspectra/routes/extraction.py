"""
Inspectra Backend — Extraction Routes
=======================================

What:  Step 2 of the workflow: run the pipeline, cancel it, correct results.

Per-item failures are not HTTP errors: POST /extract answers 200 with one
result per item, failed items carrying their stage-qualified message. Only
batch-level problems fail the request:
    - empty session             → 400
    - extraction already running → 400
    - credential missing         → 500
"""

import logging

from fastapi import APIRouter, Depends

from inspectra.dependencies import get_session_service
from inspectra.schemas.api import CancelResponse, ErrorResponse, ExtractionResponse, ResultUpdateRequest
from inspectra.schemas.pipeline import PipelineResult
from inspectra.services.session_service import SessionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions", tags=["Extraction"])


@router.post(
    "/{session_id}/extract",
    response_model=ExtractionResponse,
    responses={
        400: {"description": "Nothing to extract", "model": ErrorResponse},
        404: {"description": "Session not found", "model": ErrorResponse},
        500: {"description": "Inference not configured", "model": ErrorResponse},
    },
    summary="Extract text from every loaded item",
)
async def extract(
    session_id: str,
    sessions: SessionService = Depends(get_session_service),
) -> ExtractionResponse:
    results = await sessions.extract(session_id)
    return ExtractionResponse.from_results(results)


@router.post(
    "/{session_id}/extract/cancel",
    response_model=CancelResponse,
    summary="Cancel the running extraction",
    description=(
        "Items whose stages have not finished come back with status `cancelled`. "
        "Model calls already in flight are allowed to complete."
    ),
)
async def cancel_extraction(
    session_id: str,
    sessions: SessionService = Depends(get_session_service),
) -> CancelResponse:
    return CancelResponse(cancelled=sessions.cancel_extraction(session_id))


@router.patch(
    "/{session_id}/results/{item_id}",
    response_model=PipelineResult,
    responses={404: {"description": "Session or result not found", "model": ErrorResponse}},
    summary="Edit one extracted result",
)
async def update_result(
    session_id: str,
    item_id: str,
    body: ResultUpdateRequest,
    sessions: SessionService = Depends(get_session_service),
) -> PipelineResult:
    return sessions.update_result(session_id, item_id, body.content)
