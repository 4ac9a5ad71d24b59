"""
Inspectra Backend — Test Configuration (conftest.py)
======================================================

What:  Shared fixtures for the whole suite.
How:   Every pipeline stage talks to the model through LLMService, so tests
       plug in FakeLLM: it records each call and answers from a handler,
       falling back to canned replies keyed on the prompt text. No network,
       no API key.

Fixture Hierarchy:
    ├── app_settings:        Settings with a fake key, isolated from .env
    ├── fake_llm:            FakeLLM with the canned replies
    ├── sample_image_bytes:  Minimal JPEG for upload tests
    ├── sample_png_bytes:    1x1 PNG for upload tests
    ├── session_service:     SessionService wired to fake_llm
    └── test_client:         HTTPX AsyncClient over the ASGI app, with
                             dependency overrides pointing at the above
"""

import asyncio
import base64
import os
from typing import Callable, List, NamedTuple, Optional, Union

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Before any inspectra import: the module-level settings read the environment
os.environ["OPENAI_API_KEY"] = "test-key-not-real"
os.environ["LOG_LEVEL"] = "WARNING"

from inspectra.config import Settings  # noqa: E402
from inspectra.exceptions import ConfigurationError  # noqa: E402
from inspectra.services.llm_base import LLMService  # noqa: E402
from inspectra.services.pipeline import NotePipeline  # noqa: E402
from inspectra.services.session_service import SessionService  # noqa: E402
from inspectra.services.summarizer import Summarizer  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Fake inference service
# ══════════════════════════════════════════════════════════════════════════

# Prompt fragments identifying each stage
DETECTION_MARK = "DOMINANT_LANGUAGE: <language>"
JUDGE_MARK = "three transcriptions of the same handwritten image"
VARIANT_MARKS = {
    "A": "Prioritize accuracy",
    "B": "Transcribe everything visible",
    "C": "Preserve the exact layout",
}
SUMMARY_MARK = "--- Source 1:"

Reply = Union[str, BaseException, None]
Handler = Callable[[str, Optional[str]], Reply]


class LLMCall(NamedTuple):
    prompt: str
    image_url: Optional[str]
    max_tokens: int
    attempts: Optional[int]


def canned_reply(prompt: str, image_url: Optional[str]) -> str:
    if DETECTION_MARK in prompt:
        return "DOMINANT_LANGUAGE: german"
    if JUDGE_MARK in prompt:
        return "reconciled text"
    for variant, mark in VARIANT_MARKS.items():
        if mark in prompt:
            return f"transcription {variant}"
    if SUMMARY_MARK in prompt:
        return "summary text"
    return "ok"


class FakeLLM(LLMService):
    """
    Scripted LLMService.

    `handler(prompt, image_url)` may return a reply string, an exception to
    raise, or None to use the canned reply for that stage.
    """

    def __init__(self, handler: Optional[Handler] = None, configured: bool = True):
        self.handler = handler
        self.configured = configured
        self.calls: List[LLMCall] = []

    async def complete(self, prompt, image_url=None, *, max_tokens, attempts=None):
        self.ensure_configured()
        self.calls.append(LLMCall(prompt, image_url, max_tokens, attempts))
        # Yield so concurrent callers interleave like real network calls
        await asyncio.sleep(0)
        reply = self.handler(prompt, image_url) if self.handler else None
        if isinstance(reply, BaseException):
            raise reply
        return reply if reply is not None else canned_reply(prompt, image_url)

    def ensure_configured(self) -> None:
        if not self.configured:
            raise ConfigurationError("OpenAI API key is not configured.")

    async def health_check(self) -> bool:
        return self.configured

    def calls_matching(self, fragment: str) -> List[LLMCall]:
        return [call for call in self.calls if fragment in call.prompt]


# ══════════════════════════════════════════════════════════════════════════
# Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def app_settings() -> Settings:
    return Settings(openai_api_key="test-key-not-real", _env_file=None)


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def sample_image_bytes() -> bytes:
    """Minimal JPEG: SOI + JFIF header + EOI. Passes validation, not a real photo."""
    return (
        b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
        b"\xff\xd9"
    )


@pytest.fixture
def sample_png_bytes() -> bytes:
    """A complete 1x1 RGBA PNG."""
    return base64.b64decode(
        "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
    )


def build_session_service(llm: LLMService, settings: Settings) -> SessionService:
    return SessionService(
        settings=settings,
        pipeline=NotePipeline(llm, settings),
        summarizer=Summarizer(llm, settings),
    )


@pytest.fixture
def session_service(fake_llm, app_settings) -> SessionService:
    return build_session_service(fake_llm, app_settings)


@pytest_asyncio.fixture
async def test_client(fake_llm, app_settings, session_service):
    """
    Async client against a fresh app instance.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
    """
    from inspectra.dependencies import get_llm_service, get_session_service, get_settings
    from inspectra.main import create_app

    app = create_app()
    app.dependency_overrides[get_settings] = lambda: app_settings
    app.dependency_overrides[get_llm_service] = lambda: fake_llm
    app.dependency_overrides[get_session_service] = lambda: session_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
