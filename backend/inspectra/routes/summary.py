"""
Inspectra Backend — Summary Routes
====================================

What:  Step 3 of the workflow: one summary across every current result.

The summary reads result content as it is at request time, edits included.
GET reports `stale: true` once results change after generation; the client
decides whether to regenerate.
"""

from fastapi import APIRouter, Depends

from inspectra.dependencies import get_session_service
from inspectra.exceptions import NotFoundError
from inspectra.schemas.api import ErrorResponse, SummaryRequest, SummaryResponse
from inspectra.services.session_service import SessionService

router = APIRouter(prefix="/api/sessions", tags=["Summary"])


@router.post(
    "/{session_id}/summary",
    response_model=SummaryResponse,
    responses={
        400: {"description": "No results to summarize", "model": ErrorResponse},
        503: {"description": "Summary generation failed", "model": ErrorResponse},
    },
    summary="Generate a summary",
)
async def generate_summary(
    session_id: str,
    body: SummaryRequest,
    sessions: SessionService = Depends(get_session_service),
) -> SummaryResponse:
    summary = await sessions.summarize(session_id, body.language)
    return SummaryResponse(
        text=summary.text,
        language=summary.language,
        generated_at=summary.generated_at,
    )


@router.get(
    "/{session_id}/summary",
    response_model=SummaryResponse,
    responses={404: {"description": "No summary generated yet", "model": ErrorResponse}},
    summary="Get the last summary",
)
async def get_summary(
    session_id: str,
    sessions: SessionService = Depends(get_session_service),
) -> SummaryResponse:
    workspace = sessions.get(session_id)
    if workspace.summary is None:
        raise NotFoundError(resource="summary", resource_id=session_id)
    return SummaryResponse(
        text=workspace.summary.text,
        language=workspace.summary.language,
        generated_at=workspace.summary.generated_at,
        stale=workspace.summary_is_stale,
    )
