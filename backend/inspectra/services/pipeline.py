"""
Inspectra Backend — Extraction Pipeline Orchestrator
======================================================

What:  Turns a batch of InputItems into exactly one PipelineResult per item.
How:   Text items are used as-is. Each image runs its own stage chain:

    ┌──────────────────┐    ┌─────────────────────┐    ┌──────────────┐
    │ encode + detect  │───▶│ transcribe A, B, C  │───▶│    judge     │
    │ (language)       │    │ (gather_all)        │    │ (reconcile)  │
    └──────────────────┘    └─────────────────────┘    └──────────────┘

    All image chains start together and are collected with gather_settled.

Failure isolation:
    A stage failure ends that image's chain only. Its result carries the
    stage-qualified message ("Language detection failed: …",
    "Transcription failed: …", "Judge step failed: …") with status
    `failed`; sibling images are unaffected and the batch still returns
    one result per item.

Cancellation:
    An optional asyncio.Event is checked before and after every stage. Once
    set, the remaining stages of each image are skipped and the item gets a
    `cancelled` result. In-flight calls run to completion.

Result order:
    Text results first (submission order), then image results (submission
    order). Text results never wait on image latency.
"""

import asyncio
import logging
import time
from typing import List, Mapping, Optional, Sequence

from inspectra.config import Settings
from inspectra.exceptions import (
    ExtractionCancelledError,
    InspectraError,
    LanguageDetectionError,
    StageError,
    ValidationError,
)
from inspectra.schemas.pipeline import ImageInput, InputItem, PipelineResult, TextInput
from inspectra.services.concurrency import gather_settled
from inspectra.services.encoder import ImageEncoder
from inspectra.services.judge import Judge
from inspectra.services.language_detector import LanguageDetector
from inspectra.services.llm_base import LLMService
from inspectra.services.transcriber import EnsembleTranscriber

logger = logging.getLogger(__name__)


def _check_cancelled(cancel_event: Optional[asyncio.Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise ExtractionCancelledError()


class NotePipeline:
    """
    Sequences Detector → Ensemble → Judge per image, concurrently across images.

    Stage collaborators default to instances built on the shared LLMService;
    any of them can be injected for testing.
    """

    def __init__(
        self,
        llm: LLMService,
        settings: Settings,
        encoder: Optional[ImageEncoder] = None,
        detector: Optional[LanguageDetector] = None,
        transcriber: Optional[EnsembleTranscriber] = None,
        judge: Optional[Judge] = None,
    ):
        self.llm = llm
        self.settings = settings
        self.encoder = encoder or ImageEncoder()
        self.detector = detector or LanguageDetector(llm, settings)
        self.transcriber = transcriber or EnsembleTranscriber(llm, settings)
        self.judge = judge or Judge(llm, settings)

    async def run(
        self,
        items: Sequence[InputItem],
        cancel_event: Optional[asyncio.Event] = None,
        previews: Optional[Mapping[str, str]] = None,
    ) -> List[PipelineResult]:
        """
        Extract every item of a batch.

        Args:
            items: At least one image or text item.
            cancel_event: Optional cancellation token for this run.
            previews: Optional item id → preview URL, copied onto image results.

        Returns:
            One PipelineResult per item: text results, then image results.

        Raises:
            ValidationError: The batch is empty.
            ConfigurationError: The batch has images and no credential is configured.
        """
        if not items:
            raise ValidationError("Add at least one image or text note before extracting", field="items")

        text_items = [item for item in items if isinstance(item, TextInput)]
        image_items = [item for item in items if isinstance(item, ImageInput)]
        previews = previews or {}

        if image_items:
            # Missing credential fails the whole action, before any call
            self.llm.ensure_configured()

        results = [PipelineResult.from_text(item) for item in text_items]

        logger.info(
            "Extraction started: %d text item(s), %d image(s)",
            len(text_items),
            len(image_items),
        )
        start_time = time.perf_counter()

        outcomes = await gather_settled(
            *(self.process_image(item, cancel_event, previews.get(item.id)) for item in image_items)
        )

        for item, outcome in zip(image_items, outcomes):
            if isinstance(outcome, PipelineResult):
                results.append(outcome)
                continue
            if isinstance(outcome, asyncio.CancelledError):
                results.append(
                    PipelineResult.from_image(item, "Extraction cancelled", "cancelled", previews.get(item.id))
                )
                continue
            # Anything escaping process_image still yields this item's result
            message = outcome.message if isinstance(outcome, InspectraError) else str(outcome)
            logger.error("Unexpected failure for %s: %s", item.filename, message, exc_info=outcome)
            results.append(
                PipelineResult.from_image(item, message or "Failed to analyze image", "failed", previews.get(item.id))
            )

        failed = sum(1 for r in results if r.status == "failed")
        logger.info(
            "Extraction finished in %.0fms: %d result(s), %d failed",
            (time.perf_counter() - start_time) * 1000,
            len(results),
            failed,
        )
        return results

    async def process_image(
        self,
        item: ImageInput,
        cancel_event: Optional[asyncio.Event] = None,
        preview_url: Optional[str] = None,
    ) -> PipelineResult:
        """Run one image's stage chain; stage failures become the result content."""
        start_time = time.perf_counter()
        try:
            _check_cancelled(cancel_event)
            try:
                image_url = await self.encoder.encode(item)
                language = await self.detector.detect(image_url)
            except ExtractionCancelledError:
                raise
            except InspectraError as e:
                raise LanguageDetectionError.wrap(e) from e
            _check_cancelled(cancel_event)

            triple = await self.transcriber.transcribe_all(image_url, language)
            _check_cancelled(cancel_event)

            text = await self.judge.reconcile(triple, image_url, language)
            _check_cancelled(cancel_event)

        except ExtractionCancelledError as e:
            logger.info("Extraction cancelled for %s", item.filename)
            return PipelineResult.from_image(item, e.message, "cancelled", preview_url)
        except StageError as e:
            logger.warning("%s: %s", item.filename, e.message)
            return PipelineResult.from_image(item, e.message, "failed", preview_url)

        logger.info(
            "%s reconciled in %.0fms (language=%s, %d chars)",
            item.filename,
            (time.perf_counter() - start_time) * 1000,
            language.value,
            len(text),
        )
        return PipelineResult.from_image(item, text, "completed", preview_url)
