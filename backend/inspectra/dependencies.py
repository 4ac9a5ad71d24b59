"""
Inspectra Backend — Dependency Providers
==========================================

What:  Builds the service graph once per process and hands it to routes.
How:   Cached provider functions used with FastAPI's Depends(); tests swap
       any of them through app.dependency_overrides.

Service graph:
    Settings ──▶ OpenAIService ──▶ NotePipeline ─┐
                               └─▶ Summarizer ───┼─▶ SessionService
    Settings ──▶ FileService ────────────────────┘
"""

from functools import lru_cache

from inspectra.config import Settings, settings
from inspectra.services.file_service import FileService
from inspectra.services.llm_base import LLMService
from inspectra.services.openai_service import OpenAIService
from inspectra.services.pipeline import NotePipeline
from inspectra.services.session_service import SessionService
from inspectra.services.summarizer import Summarizer


def get_settings() -> Settings:
    return settings


@lru_cache
def get_llm_service() -> LLMService:
    return OpenAIService(get_settings())


@lru_cache
def get_session_service() -> SessionService:
    app_settings = get_settings()
    llm = get_llm_service()
    return SessionService(
        settings=app_settings,
        pipeline=NotePipeline(llm, app_settings),
        summarizer=Summarizer(llm, app_settings),
        file_service=FileService(app_settings),
    )
