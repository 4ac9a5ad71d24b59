"""
Inspectra Backend — Judge / Reconciler
========================================

What:  Merges the three ensemble transcriptions into one final text.
How:   One call carrying the judge prompt (all three transcriptions,
       labeled) plus the original image, which the model uses to settle
       disagreements. Spans it cannot settle come back as `[alt1, alt2, alt3]`.

The reply is final: bracket syntax is not parsed or validated, malformed
alternatives pass through unchanged.
"""

import logging

from inspectra.config import Settings
from inspectra.exceptions import ConfigurationError, JudgeError
from inspectra.schemas.pipeline import DetectedLanguage, TranscriptionTriple
from inspectra.services.llm_base import LLMService
from inspectra.services.prompts import judge_prompt

logger = logging.getLogger(__name__)


class Judge:
    def __init__(self, llm: LLMService, settings: Settings):
        self.llm = llm
        self.settings = settings

    async def reconcile(
        self,
        triple: TranscriptionTriple,
        image_url: str,
        language: DetectedLanguage,
    ) -> str:
        """
        Raises:
            JudgeError: the call failed or returned no content.
        """
        try:
            text = await self.llm.complete(
                judge_prompt(triple, language),
                image_url,
                max_tokens=self.settings.judge_max_tokens,
            )
        except ConfigurationError:
            raise
        except Exception as e:
            logger.warning("Judge call failed: %s", e)
            raise JudgeError.wrap(e) from e

        if not text or not text.strip():
            raise JudgeError("No response content from the model")
        return text
