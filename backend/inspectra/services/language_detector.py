"""
Inspectra Backend — Language Detector
=======================================

What:  Classifies the dominant language of an image's handwriting into
       {german, english, french, italian} or `unknown`.
How:   One model call with the detection prompt; the reply is matched
       against `DOMINANT_LANGUAGE: <token>`.

Failure policy:
    detect_outcome() reports what happened, including the error.
    detect() is the single place where any error collapses to `unknown`,
    so detection never blocks the rest of the image's pipeline.
    A missing credential is the one exception: it is a configuration
    problem, not a detection problem, and is re-raised.
"""

import logging
import re
from typing import NamedTuple, Optional

from inspectra.config import Settings
from inspectra.exceptions import ConfigurationError, LanguageDetectionError
from inspectra.schemas.pipeline import DetectedLanguage
from inspectra.services.llm_base import LLMService
from inspectra.services.prompts import DETECTION_MARKER, language_detection_prompt

logger = logging.getLogger(__name__)

DETECTION_PATTERN = re.compile(rf"{DETECTION_MARKER}:\s*(\w+)", re.IGNORECASE)


class DetectionOutcome(NamedTuple):
    language: DetectedLanguage
    error: Optional[Exception] = None


def parse_detection_reply(reply: str) -> DetectedLanguage:
    """Map a model reply onto the closed language set; no match means UNKNOWN."""
    match = DETECTION_PATTERN.search(reply or "")
    return DetectedLanguage.parse(match.group(1) if match else None)


class LanguageDetector:
    def __init__(self, llm: LLMService, settings: Settings):
        self.llm = llm
        self.settings = settings

    async def detect_outcome(self, image_url: str) -> DetectionOutcome:
        try:
            reply = await self.llm.complete(
                language_detection_prompt(),
                image_url,
                max_tokens=self.settings.detection_max_tokens,
            )
        except ConfigurationError:
            raise
        except Exception as e:
            return DetectionOutcome(DetectedLanguage.UNKNOWN, e)

        language = parse_detection_reply(reply.strip())
        if language is DetectedLanguage.UNKNOWN:
            return DetectionOutcome(
                language,
                LanguageDetectionError(f"unrecognized reply {reply.strip()[:80]!r}"),
            )
        return DetectionOutcome(language)

    async def detect(self, image_url: str) -> DetectedLanguage:
        """Best-effort detection: every failure becomes DetectedLanguage.UNKNOWN."""
        outcome = await self.detect_outcome(image_url)
        if outcome.error is not None:
            logger.warning("Language detection fell back to unknown: %s", outcome.error)
        return outcome.language
