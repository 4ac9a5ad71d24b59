"""
Inspectra Backend — OpenAI Inference Service
==============================================

What:  Concrete LLMService on top of the OpenAI chat-completions API.
How:   Builds one `user` message with a text part and an optional
       `image_url` part (inline data URL), sends it with `max_tokens`, and
       returns the text of the first choice.
Who:   Shared by every pipeline stage (detector, transcriber, judge,
       summarizer) through constructor injection.

Request shape:
    {
        "model": "gpt-4o",
        "messages": [{"role": "user", "content": [
            {"type": "text", "text": "<prompt>"},
            {"type": "image_url", "image_url": {"url": "data:image/jpeg;base64,..."}}
        ]}],
        "max_tokens": 1500
    }

Error translation:
    credential missing        → ConfigurationError (raised before any request)
    openai.APIError           → LLMServiceError("OpenAI API error: ...")
    no text on first choice   → LLMServiceError("No response content from the model")
    anything else             → LLMServiceError(original message)

Retry:
    Transient vendor errors (connection, timeout, 429, 5xx) go through a
    tenacity AsyncRetrying loop bounded by `attempts`. The default of one
    attempt means no automatic retry. SDK-level retries are disabled so the
    attempt count is exactly what the caller asked for.
"""

import logging
import time
import uuid
from typing import Any, Dict, List, Optional

import openai
from openai import AsyncOpenAI
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from inspectra.config import Settings
from inspectra.exceptions import InspectraError, LLMServiceError
from inspectra.services.llm_base import LLMService

logger = logging.getLogger(__name__)

# Vendor errors worth another attempt when attempts > 1
TRANSIENT_ERRORS = (
    openai.APIConnectionError,  # includes APITimeoutError
    openai.RateLimitError,
    openai.InternalServerError,
)


def build_messages(prompt: str, image_url: Optional[str] = None) -> List[Dict[str, Any]]:
    """Single user message: text part first, then the optional image part."""
    content: List[Dict[str, Any]] = [{"type": "text", "text": prompt}]
    if image_url:
        content.append({"type": "image_url", "image_url": {"url": image_url}})
    return [{"role": "user", "content": content}]


class OpenAIService(LLMService):
    """
    OpenAI chat-completions implementation of LLMService.

    The AsyncOpenAI client is created lazily on the first call, after the
    credential check, so the service can be constructed (and the app can
    boot) without a key.
    """

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None):
        self.settings = settings
        self._client = client

        logger.info(
            "OpenAIService initialized with model=%s, max_attempts=%d",
            settings.openai_model,
            settings.llm_max_attempts,
        )

    def ensure_configured(self) -> None:
        self.settings.require_api_key()

    def _get_client(self) -> AsyncOpenAI:
        # Credential is checked on every call, before any request is built
        api_key = self.settings.require_api_key()
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=api_key,
                base_url=self.settings.openai_base_url,
                max_retries=0,
            )
        return self._client

    async def complete(
        self,
        prompt: str,
        image_url: Optional[str] = None,
        *,
        max_tokens: int,
        attempts: Optional[int] = None,
    ) -> str:
        client = self._get_client()
        messages = build_messages(prompt, image_url)
        max_attempts = attempts or self.settings.llm_max_attempts
        request_id = str(uuid.uuid4())[:8]

        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(TRANSIENT_ERRORS),
                stop=stop_after_attempt(max_attempts),
                wait=wait_exponential_jitter(
                    initial=self.settings.retry_min_wait,
                    max=self.settings.retry_max_wait,
                    jitter=1,
                ),
                before_sleep=before_sleep_log(logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    text = await self._create_completion(client, messages, max_tokens, request_id)
        except InspectraError:
            raise
        except openai.APIError as e:
            logger.error("[%s] OpenAI API error: %s", request_id, e.message)
            raise LLMServiceError(
                message=f"OpenAI API error: {e.message}",
                context={"request_id": request_id, "error_type": type(e).__name__},
            ) from e
        except Exception as e:
            logger.error("[%s] Unexpected inference error: %s", request_id, str(e), exc_info=True)
            raise LLMServiceError(
                message=str(e) or "Unknown error",
                context={"request_id": request_id, "error_type": type(e).__name__},
            ) from e

        return text

    async def _create_completion(
        self,
        client: AsyncOpenAI,
        messages: List[Dict[str, Any]],
        max_tokens: int,
        request_id: str,
    ) -> str:
        start_time = time.perf_counter()

        response = await client.chat.completions.create(
            model=self.settings.openai_model,
            messages=messages,
            max_tokens=max_tokens,
        )

        duration_ms = (time.perf_counter() - start_time) * 1000
        content = response.choices[0].message.content if response.choices else None

        if not content or not content.strip():
            logger.warning("[%s] Empty completion after %.0fms", request_id, duration_ms)
            raise LLMServiceError(
                message="No response content from the model",
                context={"request_id": request_id},
            )

        logger.info(
            "[%s] Completion finished in %.0fms, %d chars (image=%s)",
            request_id,
            duration_ms,
            len(content),
            len(messages[0]["content"]) > 1,
        )
        return content

    async def health_check(self) -> bool:
        """Lists models (no token cost). False when unconfigured or unreachable."""
        if not self.settings.has_api_key:
            return False
        try:
            await self._get_client().models.list()
            return True
        except Exception as e:
            logger.warning("Inference health check failed: %s", str(e))
            return False
