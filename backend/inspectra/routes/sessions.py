"""
Inspectra Backend — Session and Item Routes
=============================================

What:  Workspace lifecycle and step 1 of the workflow (loading items).
Who:   Called by the browser client's upload zone and text-note editor.

Uploads are read fully into memory; size is bounded by FileService and the
bytes stay in the workspace until the item or the session is removed.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, File, Response, UploadFile

from inspectra.dependencies import get_session_service
from inspectra.schemas.api import (
    ErrorResponse,
    ItemResponse,
    SummaryResponse,
    TextNoteRequest,
    WorkspaceResponse,
)
from inspectra.schemas.pipeline import ImageInput
from inspectra.services.session_service import SessionService, Workspace, preview_url

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions", tags=["Sessions"])

NOT_FOUND = {404: {"description": "Session or item not found", "model": ErrorResponse}}


def item_response(workspace: Workspace, item) -> ItemResponse:
    url = preview_url(workspace.id, item.id) if isinstance(item, ImageInput) else None
    return ItemResponse.from_item(item, url)


def workspace_response(workspace: Workspace) -> WorkspaceResponse:
    summary = None
    if workspace.summary is not None:
        summary = SummaryResponse(
            text=workspace.summary.text,
            language=workspace.summary.language,
            generated_at=workspace.summary.generated_at,
            stale=workspace.summary_is_stale,
        )
    return WorkspaceResponse(
        id=workspace.id,
        created_at=workspace.created_at,
        items=[item_response(workspace, item) for item in workspace.items],
        results=workspace.results,
        extracting=workspace.is_extracting,
        summary=summary,
    )


# ── Workspace lifecycle ───────────────────────────────────────────────────


@router.post("", status_code=201, response_model=WorkspaceResponse, summary="Create a session")
async def create_session(
    sessions: SessionService = Depends(get_session_service),
) -> WorkspaceResponse:
    return workspace_response(sessions.create())


@router.get(
    "/{session_id}",
    response_model=WorkspaceResponse,
    responses=NOT_FOUND,
    summary="Get session state",
)
async def get_session(
    session_id: str,
    sessions: SessionService = Depends(get_session_service),
) -> WorkspaceResponse:
    return workspace_response(sessions.get(session_id))


@router.delete("/{session_id}", status_code=204, responses=NOT_FOUND, summary="Discard a session")
async def delete_session(
    session_id: str,
    sessions: SessionService = Depends(get_session_service),
) -> Response:
    sessions.delete(session_id)
    return Response(status_code=204)


# ── Items ─────────────────────────────────────────────────────────────────


@router.post(
    "/{session_id}/images",
    status_code=201,
    response_model=List[ItemResponse],
    responses={
        400: {"description": "Invalid file type or size", "model": ErrorResponse},
        **NOT_FOUND,
    },
    summary="Upload note images",
    description="Multipart upload of one or more JPEG, PNG, WEBP or GIF images.",
)
async def upload_images(
    session_id: str,
    files: List[UploadFile] = File(..., description="Note images"),
    sessions: SessionService = Depends(get_session_service),
) -> List[ItemResponse]:
    workspace = sessions.get(session_id)
    uploads = []
    try:
        for upload in files:
            content = await upload.read()
            uploads.append((upload.filename or "upload.jpg", content, upload.content_type))
    finally:
        for upload in files:
            await upload.close()

    images = sessions.add_images(session_id, uploads)
    return [item_response(workspace, image) for image in images]


@router.post(
    "/{session_id}/texts",
    status_code=201,
    response_model=ItemResponse,
    responses={400: {"description": "Empty note", "model": ErrorResponse}, **NOT_FOUND},
    summary="Add a text note",
)
async def add_text_note(
    session_id: str,
    body: TextNoteRequest,
    sessions: SessionService = Depends(get_session_service),
) -> ItemResponse:
    note = sessions.add_text(session_id, body.content)
    return ItemResponse.from_item(note)


@router.delete(
    "/{session_id}/items/{item_id}",
    status_code=204,
    responses=NOT_FOUND,
    summary="Remove an item",
)
async def remove_item(
    session_id: str,
    item_id: str,
    sessions: SessionService = Depends(get_session_service),
) -> Response:
    sessions.remove_item(session_id, item_id)
    return Response(status_code=204)


@router.get(
    "/{session_id}/items/{item_id}/preview",
    responses={200: {"description": "Raw image bytes"}, **NOT_FOUND},
    summary="Serve an uploaded image",
)
async def preview_image(
    session_id: str,
    item_id: str,
    sessions: SessionService = Depends(get_session_service),
) -> Response:
    image = sessions.get_image(session_id, item_id)
    content = image.content if isinstance(image.content, bytes) else image.content.encode()
    return Response(
        content=content,
        media_type=image.mime_type,
        headers={"Cache-Control": "private, max-age=3600"},
    )
