"""
Inspectra Backend — Summarizer Tests
======================================
"""

import pytest

from inspectra.exceptions import ConfigurationError, EmptyInputError, LLMServiceError, SummaryError
from inspectra.schemas.pipeline import PipelineResult
from inspectra.services.summarizer import Summarizer

from conftest import FakeLLM


@pytest.fixture
def results():
    return [
        PipelineResult(id="1", filename="page-1.png", kind="image", content="Valve V3 leaking"),
        PipelineResult(id="2", filename="digital_notes_01.txt", kind="text", content="Follow-up Monday"),
    ]


@pytest.mark.asyncio
async def test_empty_results_make_no_call(fake_llm, app_settings):
    with pytest.raises(EmptyInputError, match="No insights provided for summary generation"):
        await Summarizer(fake_llm, app_settings).summarize([], "english")
    assert fake_llm.calls == []


@pytest.mark.asyncio
async def test_single_call_carries_template_and_every_result(fake_llm, app_settings, results):
    summary = await Summarizer(fake_llm, app_settings).summarize(results, "german")

    assert summary == "summary text"
    (call,) = fake_llm.calls
    assert call.image_url is None
    assert call.max_tokens == app_settings.summary_max_tokens
    assert call.attempts == 1
    assert "WICHTIG: Generieren Sie die gesamte Zusammenfassung auf Deutsch." in call.prompt
    assert "--- Source 1: page-1.png (transcribed from image) ---\nValve V3 leaking" in call.prompt
    assert "--- Source 2: digital_notes_01.txt (text note) ---\nFollow-up Monday" in call.prompt


@pytest.mark.asyncio
async def test_reads_edited_content(fake_llm, app_settings, results):
    results[0].content = "Valve V3 replaced"

    await Summarizer(fake_llm, app_settings).summarize(results)

    assert "Valve V3 replaced" in fake_llm.calls[0].prompt
    assert "Valve V3 leaking" not in fake_llm.calls[0].prompt


@pytest.mark.asyncio
async def test_unknown_language_uses_english_template(fake_llm, app_settings, results):
    await Summarizer(fake_llm, app_settings).summarize(results, "Klingon")
    assert "IMPORTANT: Generate the entire summary in English." in fake_llm.calls[0].prompt


@pytest.mark.asyncio
async def test_call_failure_becomes_summary_error(app_settings, results):
    llm = FakeLLM(lambda prompt, url: LLMServiceError("OpenAI API error: quota exceeded"))

    with pytest.raises(SummaryError, match="Summary generation failed: OpenAI API error: quota exceeded"):
        await Summarizer(llm, app_settings).summarize(results)
    assert len(llm.calls) == 1


@pytest.mark.asyncio
async def test_missing_credential_propagates(app_settings, results):
    with pytest.raises(ConfigurationError):
        await Summarizer(FakeLLM(configured=False), app_settings).summarize(results)


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", ["", "   "])
async def test_empty_reply_becomes_summary_error(app_settings, results, reply):
    llm = FakeLLM(lambda prompt, url: reply)

    with pytest.raises(SummaryError, match="Summary generation failed: No response content from the model"):
        await Summarizer(llm, app_settings).summarize(results)
