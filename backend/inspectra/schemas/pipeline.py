"""
Inspectra Backend — Pipeline Data Model
=========================================

What:  Items submitted for extraction, the per-item results the pipeline
       produces, and the summary built from them.
Who:   Produced by SessionService and NotePipeline; serialized by routes.

Lifecycle:
    InputItem       created on upload / text submission, destroyed on removal
    PipelineResult  created by an extraction run, content editable in place,
                    replaced wholesale by the next run
    Summary         created on demand, never auto-invalidated
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Iterator, List, Literal, NamedTuple, Optional, Tuple, Union

from pydantic import BaseModel, Field


class DetectedLanguage(str, Enum):
    """Dominant language of an image's handwriting, or the `unknown` sentinel."""

    GERMAN = "german"
    ENGLISH = "english"
    FRENCH = "french"
    ITALIAN = "italian"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, token: Optional[str]) -> "DetectedLanguage":
        """Case-insensitive mapping onto the closed set; anything else is UNKNOWN."""
        if not token:
            return cls.UNKNOWN
        try:
            return cls(token.strip().lower())
        except ValueError:
            return cls.UNKNOWN

    @classmethod
    def supported(cls) -> List["DetectedLanguage"]:
        return [lang for lang in cls if lang is not cls.UNKNOWN]


class Variant(str, Enum):
    """Transcription bias: accuracy, completeness, structure."""

    A = "A"
    B = "B"
    C = "C"


def new_item_id() -> str:
    return uuid.uuid4().hex


class ImageInput(BaseModel):
    """
    A photographed note.

    `content` is the raw image bytes, or an already-encoded string
    (bare base64 or a complete `data:` URL).
    """

    id: str = Field(default_factory=new_item_id)
    filename: str
    content: Union[bytes, str] = Field(repr=False)
    mime_type: str = Field(default="image/jpeg")
    kind: Literal["image"] = "image"


class TextInput(BaseModel):
    """A free-text note, used as-is without any model call."""

    id: str = Field(default_factory=new_item_id)
    filename: str
    content: str
    kind: Literal["text"] = "text"


InputItem = Union[ImageInput, TextInput]


class TranscriptionTriple(NamedTuple):
    """The three ensemble outputs, always in A, B, C order."""

    a: str
    b: str
    c: str

    def labeled(self) -> Iterator[Tuple[Variant, str]]:
        return zip((Variant.A, Variant.B, Variant.C), self)


ResultStatus = Literal["completed", "failed", "cancelled"]


class PipelineResult(BaseModel):
    """
    Extracted content for exactly one InputItem.

    On a stage failure `content` holds the human-readable error message and
    `status` is `failed`; the entry itself is always produced.
    """

    id: str
    filename: str
    kind: Literal["image", "text"]
    preview_url: Optional[str] = None
    content: str
    original_text: Optional[str] = None
    status: ResultStatus = "completed"

    @classmethod
    def from_text(cls, item: TextInput) -> "PipelineResult":
        return cls(
            id=item.id,
            filename=item.filename,
            kind="text",
            content=item.content,
            original_text=item.content,
        )

    @classmethod
    def from_image(
        cls,
        item: ImageInput,
        content: str,
        status: ResultStatus = "completed",
        preview_url: Optional[str] = None,
    ) -> "PipelineResult":
        return cls(
            id=item.id,
            filename=item.filename,
            kind="image",
            preview_url=preview_url,
            content=content,
            original_text=f"[Image: {item.filename}]",
            status=status,
        )


class Summary(BaseModel):
    """Cross-item summary; `source_version` is the result-list version it was built from."""

    text: str
    language: str
    source_version: int = 0
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
