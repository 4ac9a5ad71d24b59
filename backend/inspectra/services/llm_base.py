"""
Inspectra Backend — Abstract Inference Service Interface
==========================================================

What:  Contract every pipeline stage uses to reach the language model.
How:   Concrete implementations (OpenAIService) inherit from LLMService and
       implement complete(). Stages receive an LLMService in their
       constructor, so tests plug in a scripted fake without touching the
       network or the environment.
"""

from abc import ABC, abstractmethod
from typing import Optional


class LLMService(ABC):
    """
    Abstract interface for one request/response call to a vision-capable model.

    Contract:
        - complete() sends one prompt plus an optional inline image and
          returns the model's text
        - never returns empty text; an empty reply is an LLMServiceError
        - vendor and transport failures surface as LLMServiceError
        - a missing credential surfaces as ConfigurationError, before any
          network attempt
    """

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        image_url: Optional[str] = None,
        *,
        max_tokens: int,
        attempts: Optional[int] = None,
    ) -> str:
        """
        Run one inference request.

        Args:
            prompt: Instruction text, sent as the first content part.
            image_url: Optional data URL, sent as an image content part.
            max_tokens: Upper bound on generated tokens.
            attempts: Total attempts for this call. None uses the configured
                default; the summary stage passes 1.

        Returns:
            str: The text of the first choice.

        Raises:
            ConfigurationError: No credential configured.
            LLMServiceError: The call failed or returned no text.
        """
        ...

    def ensure_configured(self) -> None:
        """Raise ConfigurationError if calls cannot be made at all. No-op by default."""

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Lightweight reachability check (no completion tokens spent).

        Returns: True if the service is reachable and authenticated.
        """
        ...
