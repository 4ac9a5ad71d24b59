"""
Inspectra Backend — Summarizer
================================

What:  Merges every current result into one bounded-length summary in the
       selected output language.
How:   Language template + one labeled section per result (filename, kind,
       current content) → one model call. Edited content is read at call
       time; nothing is cached between summaries.

Never retried: the call is made with a single attempt whatever the
configured retry policy is.
"""

import logging
from typing import Sequence

from inspectra.config import Settings
from inspectra.exceptions import ConfigurationError, EmptySummaryInputError, SummaryError
from inspectra.schemas.pipeline import PipelineResult
from inspectra.services.llm_base import LLMService
from inspectra.services.prompts import (
    DEFAULT_SUMMARY_LANGUAGE,
    resolve_summary_language,
    summary_body,
    summary_prompt,
)

logger = logging.getLogger(__name__)


class Summarizer:
    def __init__(self, llm: LLMService, settings: Settings):
        self.llm = llm
        self.settings = settings

    def build_prompt(self, results: Sequence[PipelineResult], language: str) -> str:
        template = summary_prompt(language, self.settings.summary_word_limit)
        return f"{template}\n\n{summary_body(results)}"

    async def summarize(
        self,
        results: Sequence[PipelineResult],
        language: str = DEFAULT_SUMMARY_LANGUAGE,
    ) -> str:
        """
        Generate the cross-item summary.

        Returns:
            The model's summary text, verbatim.

        Raises:
            EmptySummaryInputError: `results` is empty (no call is made).
            ConfigurationError: No credential configured.
            SummaryError: The call failed or returned no content.
        """
        if not results:
            raise EmptySummaryInputError()

        prompt = self.build_prompt(results, language)
        logger.info(
            "Generating %s summary over %d result(s)",
            resolve_summary_language(language),
            len(results),
        )

        try:
            summary = await self.llm.complete(
                prompt,
                max_tokens=self.settings.summary_max_tokens,
                attempts=1,
            )
        except ConfigurationError:
            raise
        except Exception as e:
            cause = getattr(e, "message", None) or str(e) or type(e).__name__
            logger.error("Summary generation failed: %s", cause)
            raise SummaryError(
                message=f"Summary generation failed: {cause}",
                context={"error_type": type(e).__name__, "language": language},
            ) from e

        if not summary or not summary.strip():
            logger.error("Summary generation returned no content")
            raise SummaryError(
                message="Summary generation failed: No response content from the model",
                context={"language": language},
            )
        return summary
