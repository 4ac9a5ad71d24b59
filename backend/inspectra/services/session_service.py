"""
Inspectra Backend — Workspace Session Service
===============================================

What:  In-memory workspaces holding one user's items, results and summary.
How:   A workspace is the server-side counterpart of one page session:
       created on demand, mutated by the three-step workflow, discarded on
       delete or process restart. Nothing is persisted.

Workflow:
    ┌──────────────┐    ┌───────────────────┐    ┌──────────────────┐
    │  Load items  │───▶│  Extract + edit   │───▶│    Summarize     │
    │ (image/text) │    │  (NotePipeline)   │    │  (Summarizer)    │
    └──────────────┘    └───────────────────┘    └──────────────────┘

Staleness:
    Every extraction and every edit bumps `results_version`. A summary
    remembers the version it was built from; a mismatch means the summary
    may be outdated. Summaries are never regenerated automatically.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from inspectra.config import Settings
from inspectra.exceptions import NotFoundError, ValidationError
from inspectra.schemas.pipeline import ImageInput, InputItem, PipelineResult, Summary, TextInput
from inspectra.services.file_service import FileService
from inspectra.services.pipeline import NotePipeline
from inspectra.services.prompts import resolve_summary_language
from inspectra.services.summarizer import Summarizer

logger = logging.getLogger(__name__)

TEXT_NOTE_FILENAME = "digital_notes_{index:02d}.txt"

# (filename, content, declared content type)
Upload = Tuple[str, bytes, Optional[str]]


class Workspace:
    """Mutable state of one session. Owned and mutated only by SessionService."""

    def __init__(self, workspace_id: str):
        self.id = workspace_id
        self.created_at = datetime.now(timezone.utc)
        self.items: List[InputItem] = []
        self.results: List[PipelineResult] = []
        self.results_version = 0
        self.summary: Optional[Summary] = None
        self.text_note_count = 0
        self.cancel_event: Optional[asyncio.Event] = None

    @property
    def is_extracting(self) -> bool:
        return self.cancel_event is not None

    @property
    def summary_is_stale(self) -> bool:
        return self.summary is not None and self.summary.source_version != self.results_version

    def find_item(self, item_id: str) -> InputItem:
        for item in self.items:
            if item.id == item_id:
                return item
        raise NotFoundError(resource="item", resource_id=item_id)

    def find_result(self, item_id: str) -> PipelineResult:
        for result in self.results:
            if result.id == item_id:
                return result
        raise NotFoundError(resource="result", resource_id=item_id)


def preview_url(workspace_id: str, item_id: str) -> str:
    return f"/api/sessions/{workspace_id}/items/{item_id}/preview"


class SessionService:
    """
    Registry and workflow operations for workspaces.

    Single event loop: operations between awaits are atomic, so the
    registry needs no locking.
    """

    def __init__(
        self,
        settings: Settings,
        pipeline: NotePipeline,
        summarizer: Summarizer,
        file_service: Optional[FileService] = None,
    ):
        self.settings = settings
        self.pipeline = pipeline
        self.summarizer = summarizer
        self.file_service = file_service or FileService(settings)
        self._workspaces: Dict[str, Workspace] = {}

    def __len__(self) -> int:
        return len(self._workspaces)

    # ── Workspace lifecycle ───────────────────────────────────────────────

    def create(self) -> Workspace:
        workspace = Workspace(uuid.uuid4().hex)
        self._workspaces[workspace.id] = workspace
        logger.info("Workspace created: %s", workspace.id)
        return workspace

    def get(self, workspace_id: str) -> Workspace:
        workspace = self._workspaces.get(workspace_id)
        if workspace is None:
            raise NotFoundError(resource="session", resource_id=workspace_id)
        return workspace

    def delete(self, workspace_id: str) -> None:
        workspace = self.get(workspace_id)
        if workspace.cancel_event is not None:
            workspace.cancel_event.set()
        del self._workspaces[workspace_id]
        logger.info("Workspace deleted: %s", workspace_id)

    # ── Step 1: items ─────────────────────────────────────────────────────

    def _check_capacity(self, workspace: Workspace, incoming: int) -> None:
        limit = self.settings.max_items_per_session
        if len(workspace.items) + incoming > limit:
            raise ValidationError(
                message=f"A session can hold at most {limit} items.",
                field="items",
                context={"current": len(workspace.items), "incoming": incoming},
            )

    def add_images(self, workspace_id: str, uploads: Iterable[Upload]) -> List[ImageInput]:
        """Validate every upload first; nothing is added if one is rejected."""
        workspace = self.get(workspace_id)
        uploads = list(uploads)
        if not uploads:
            raise ValidationError(message="No files were uploaded.", field="files")
        self._check_capacity(workspace, len(uploads))

        images = [
            ImageInput(
                filename=filename,
                content=content,
                mime_type=self.file_service.validate_image(filename, content, content_type),
            )
            for filename, content, content_type in uploads
        ]
        workspace.items.extend(images)
        logger.info("Workspace %s: %d image(s) added", workspace_id, len(images))
        return images

    def add_text(self, workspace_id: str, content: str) -> TextInput:
        workspace = self.get(workspace_id)
        text = (content or "").strip()
        if not text:
            raise ValidationError(message="Text note is empty.", field="content")
        self._check_capacity(workspace, 1)

        workspace.text_note_count += 1
        note = TextInput(
            filename=TEXT_NOTE_FILENAME.format(index=workspace.text_note_count),
            content=text,
        )
        workspace.items.append(note)
        logger.info("Workspace %s: text note %s added", workspace_id, note.filename)
        return note

    def remove_item(self, workspace_id: str, item_id: str) -> None:
        """Drops the item and, for images, the bytes its preview is served from."""
        workspace = self.get(workspace_id)
        item = workspace.find_item(item_id)
        workspace.items.remove(item)
        logger.info("Workspace %s: item %s removed", workspace_id, item.filename)

    def get_image(self, workspace_id: str, item_id: str) -> ImageInput:
        item = self.get(workspace_id).find_item(item_id)
        if not isinstance(item, ImageInput):
            raise NotFoundError(resource="image", resource_id=item_id)
        return item

    # ── Step 2: extraction and review ─────────────────────────────────────

    async def extract(self, workspace_id: str) -> List[PipelineResult]:
        """Run the pipeline over a snapshot of the items; results are replaced wholesale."""
        workspace = self.get(workspace_id)
        if workspace.is_extracting:
            raise ValidationError(message="An extraction is already running for this session.")

        items = list(workspace.items)
        previews = {
            item.id: preview_url(workspace.id, item.id)
            for item in items
            if isinstance(item, ImageInput)
        }

        workspace.cancel_event = asyncio.Event()
        try:
            results = await self.pipeline.run(items, workspace.cancel_event, previews)
        finally:
            workspace.cancel_event = None

        workspace.results = results
        workspace.results_version += 1
        return results

    def cancel_extraction(self, workspace_id: str) -> bool:
        """Returns False when no extraction is running."""
        workspace = self.get(workspace_id)
        if workspace.cancel_event is None:
            return False
        workspace.cancel_event.set()
        logger.info("Workspace %s: extraction cancel requested", workspace_id)
        return True

    def update_result(self, workspace_id: str, item_id: str, content: str) -> PipelineResult:
        workspace = self.get(workspace_id)
        result = workspace.find_result(item_id)
        result.content = content
        workspace.results_version += 1
        return result

    # ── Step 3: summary ───────────────────────────────────────────────────

    async def summarize(self, workspace_id: str, language: str) -> Summary:
        workspace = self.get(workspace_id)
        version = workspace.results_version
        text = await self.summarizer.summarize(list(workspace.results), language)
        workspace.summary = Summary(
            text=text,
            language=resolve_summary_language(language),
            source_version=version,
        )
        return workspace.summary
