"""
Inspectra Backend — Ensemble Transcriber
==========================================

What:  Three independent transcriptions of one image, each with a differently
       biased prompt (A accuracy, B completeness, C structure).
How:   The three calls start together through gather_all. All three must
       succeed: the judge needs the full ensemble, so the first failure
       cancels the rest and surfaces as TranscriptionError.
"""

import logging

from inspectra.config import Settings
from inspectra.exceptions import ConfigurationError, TranscriptionError
from inspectra.schemas.pipeline import DetectedLanguage, TranscriptionTriple, Variant
from inspectra.services.concurrency import gather_all
from inspectra.services.llm_base import LLMService
from inspectra.services.prompts import transcription_prompt

logger = logging.getLogger(__name__)


class EnsembleTranscriber:
    def __init__(self, llm: LLMService, settings: Settings):
        self.llm = llm
        self.settings = settings

    async def transcribe(self, image_url: str, variant: Variant, language: DetectedLanguage) -> str:
        """Single variant call. Errors propagate unwrapped."""
        return await self.llm.complete(
            transcription_prompt(variant, language),
            image_url,
            max_tokens=self.settings.transcription_max_tokens,
        )

    async def transcribe_all(self, image_url: str, language: DetectedLanguage) -> TranscriptionTriple:
        """
        Run variants A, B, C concurrently.

        Returns:
            TranscriptionTriple in A, B, C order, independent of completion order.

        Raises:
            TranscriptionError: wrapping the first underlying failure.
        """
        try:
            a, b, c = await gather_all(
                self.transcribe(image_url, Variant.A, language),
                self.transcribe(image_url, Variant.B, language),
                self.transcribe(image_url, Variant.C, language),
            )
        except ConfigurationError:
            raise
        except Exception as e:
            logger.warning("Ensemble transcription failed: %s", e)
            raise TranscriptionError.wrap(e) from e

        return TranscriptionTriple(a, b, c)
