"""
Inspectra Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for every failure the pipeline and the
       API can produce.
How:   Each exception carries a user-facing message and an optional context
       dict (logged, never returned verbatim). Global handlers in main.py map
       them to HTTP status codes.

Exception Hierarchy:
    InspectraError (base)
    ├── ConfigurationError        → 500 (credential missing, no call attempted)
    ├── ValidationError           → 400 (client can fix the input)
    ├── NotFoundError             → 404
    ├── EncodingError             → aborts one image's pipeline
    ├── LLMServiceError           → 503 (inference service failed)
    ├── StageError                → per-item result content, never an HTTP error
    │   ├── LanguageDetectionError
    │   ├── TranscriptionError
    │   └── JudgeError
    ├── ExtractionCancelledError  → per-item "cancelled" result
    ├── EmptySummaryInputError    → 400 (no results to summarize)
    └── SummaryError              → 503 (summary action only)

Propagation policy:
    Stage errors stay inside one image's sub-pipeline and become that item's
    result content. Summary errors propagate to the caller of the summary
    action and leave extracted results untouched.
"""

from typing import Any, Dict, Optional


class InspectraError(Exception):
    """
    Base exception for all Inspectra application errors.

    Attributes:
        message:  User-facing error description
        context:  Additional debug info (logged, not returned to the client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ConfigurationError(InspectraError):
    """
    Raised when required configuration is missing.

    When:    The inference credential is absent at call time.
    HTTP:    500 Internal Server Error
    Raised synchronously, before any network attempt.
    """

    def __init__(
        self,
        message: str = "The service is not configured correctly",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ValidationError(InspectraError):
    """
    Raised when client input fails validation.

    When:    Unsupported upload type, oversized file, empty text note,
             extraction requested on an empty workspace.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(InspectraError):
    """
    Raised when a workspace, item or result does not exist.

    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class EncodingError(InspectraError):
    """Raised when an image payload cannot be turned into a data URL."""

    def __init__(
        self,
        message: str = "Error reading file",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class LLMServiceError(InspectraError):
    """
    Raised when an inference call fails.

    What:    Vendor API error, transport failure, or a reply with no text.
    HTTP:    503 Service Unavailable (when it reaches a route)

    Vendor errors carry the "OpenAI API error: " prefix so infrastructure
    failures can be told apart from parsing/logic failures.
    """

    def __init__(
        self,
        message: str = "The inference service is temporarily unavailable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StageError(InspectraError):
    """
    Failure of one pipeline stage for one image.

    The message is stage-qualified (`"<prefix>: <cause>"`) and becomes the
    item's result content.
    """

    prefix = "Stage failed"

    def __init__(
        self,
        cause: str = "Unknown error",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.cause = cause
        super().__init__(message=f"{self.prefix}: {cause}", context=context)

    @classmethod
    def wrap(cls, exc: BaseException) -> "StageError":
        """Wrap an underlying failure, keeping its message as the cause."""
        cause = exc.message if isinstance(exc, InspectraError) else (str(exc) or type(exc).__name__)
        return cls(cause, context={"error_type": type(exc).__name__})


class LanguageDetectionError(StageError):
    prefix = "Language detection failed"


class TranscriptionError(StageError):
    prefix = "Transcription failed"


class JudgeError(StageError):
    prefix = "Judge step failed"


class ExtractionCancelledError(InspectraError):
    """Raised inside an image sub-pipeline once the user cancelled the run."""

    def __init__(
        self,
        message: str = "Extraction cancelled",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class EmptySummaryInputError(InspectraError):
    """
    Raised when a summary is requested over an empty result list.

    HTTP:    400 Bad Request. No inference call is made.
    """

    def __init__(
        self,
        message: str = "No insights provided for summary generation",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


EmptyInputError = EmptySummaryInputError


class SummaryError(InspectraError):
    """
    Raised when the summary call fails or returns no content.

    HTTP:    503 Service Unavailable. Extracted results are unaffected.
    """

    def __init__(
        self,
        message: str = "Summary generation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
