"""
Inspectra Backend — Pydantic Request/Response Schemas
=======================================================

What:  The API contract between the browser client and the backend.
How:   FastAPI validates request bodies against these models, serializes
       responses through them and generates the OpenAPI docs from them.

Design Decision:
    Kept apart from the pipeline model: image bytes never leave the server
    inline, an item is described by its metadata and a preview URL.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from inspectra.schemas.pipeline import ImageInput, InputItem, PipelineResult


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class TextNoteRequest(BaseModel):
    content: str = Field(description="Free text of the note, used as-is")


class ResultUpdateRequest(BaseModel):
    """Manual correction of one extracted result."""

    content: str = Field(description="Replacement content for the result")


class SummaryRequest(BaseModel):
    language: str = Field(
        default="english",
        description="Output language: english, german, french or italian (others fall back to english)",
    )

    @field_validator("language")
    @classmethod
    def normalize_language(cls, v: str) -> str:
        return (v or "english").strip().lower() or "english"


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class ItemResponse(BaseModel):
    """
    What:  One loaded item, without its payload.
    Who:   Returned by the upload and text endpoints and inside WorkspaceResponse.
    """

    id: str = Field(description="Item identifier, unique within the session")
    filename: str = Field(description="Original upload name or synthesized text note name")
    kind: Literal["image", "text"]
    mime_type: Optional[str] = Field(default=None, description="Image MIME type (images only)")
    size: int = Field(description="Payload size in bytes (images) or characters (text)")
    preview_url: Optional[str] = Field(default=None, description="Where the raw image is served")
    text: Optional[str] = Field(default=None, description="Note text (text items only)")

    @classmethod
    def from_item(cls, item: InputItem, preview_url: Optional[str] = None) -> "ItemResponse":
        if isinstance(item, ImageInput):
            return cls(
                id=item.id,
                filename=item.filename,
                kind="image",
                mime_type=item.mime_type,
                size=len(item.content),
                preview_url=preview_url,
            )
        return cls(
            id=item.id,
            filename=item.filename,
            kind="text",
            size=len(item.content),
            text=item.content,
        )


class SummaryResponse(BaseModel):
    text: str = Field(description="Summary text as produced by the model")
    language: str = Field(description="Requested output language")
    generated_at: datetime
    stale: bool = Field(
        default=False,
        description="True when results were extracted or edited after this summary was generated",
    )


class WorkspaceResponse(BaseModel):
    """Full state of one session."""

    id: str
    created_at: datetime
    items: List[ItemResponse]
    results: List[PipelineResult]
    extracting: bool = Field(description="Whether an extraction is in progress")
    summary: Optional[SummaryResponse] = None


class ExtractionResponse(BaseModel):
    """
    Who:   Returned by POST /extract.

    `failed` and `cancelled` count per-item outcomes; the request itself
    succeeds as long as every item got a result.
    """

    results: List[PipelineResult]
    total: int
    failed: int
    cancelled: int

    @classmethod
    def from_results(cls, results: List[PipelineResult]) -> "ExtractionResponse":
        return cls(
            results=results,
            total=len(results),
            failed=sum(1 for r in results if r.status == "failed"),
            cancelled=sum(1 for r in results if r.status == "cancelled"),
        )


class CancelResponse(BaseModel):
    cancelled: bool = Field(description="False when no extraction was running")


class ErrorResponse(BaseModel):
    """
    Standard error envelope for every non-2xx response.

    Fields:
        error:       Machine-readable code (validation_error, not_found, ...)
        message:     Human-readable description, safe to show to the user
        details:     Optional structured context
        request_id:  Correlation id, also in the X-Request-ID header
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, degraded")
    version: str = Field(description="Application version")
    inference: str = Field(description="Inference service: available, unavailable, not_configured")
    model: str = Field(description="Configured model identifier")
    sessions: int = Field(description="Workspaces currently held in memory")
    uptime_seconds: float = Field(description="Seconds since service started")
