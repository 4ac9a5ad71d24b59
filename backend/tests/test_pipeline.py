"""
Inspectra Backend — Extraction Pipeline Tests
===============================================

What:  End-to-end orchestration over a scripted inference service.

Test Strategy:
    ✅ One result per item, texts first, image order kept
    ✅ Text items never reach the model
    ✅ Each image makes exactly five calls (detect, A, B, C, judge)
    ✅ Stage failures stay on their own item, with stage-qualified messages
    ✅ Detection failure falls back to unknown and the image still completes
    ✅ Cancellation before and during a run
"""

import asyncio

import pytest

from inspectra.exceptions import ConfigurationError, LLMServiceError, ValidationError
from inspectra.schemas.pipeline import ImageInput, TextInput
from inspectra.services.pipeline import NotePipeline

from conftest import DETECTION_MARK, JUDGE_MARK, VARIANT_MARKS, FakeLLM


def image(name: str) -> ImageInput:
    # Pre-encoded payload: the image name ends up in every call's image_url
    return ImageInput(filename=f"{name}.png", content=f"data:image/png;base64,{name}")


def text(name: str, content: str) -> TextInput:
    return TextInput(filename=name, content=content)


class TestPipelineRun:
    @pytest.mark.asyncio
    async def test_empty_batch_rejected(self, fake_llm, app_settings):
        with pytest.raises(ValidationError):
            await NotePipeline(fake_llm, app_settings).run([])
        assert fake_llm.calls == []

    @pytest.mark.asyncio
    async def test_text_only_batch_makes_no_calls(self, fake_llm, app_settings):
        items = [text("digital_notes_01.txt", "first"), text("digital_notes_02.txt", "second")]

        results = await NotePipeline(fake_llm, app_settings).run(items)

        assert fake_llm.calls == []
        assert [r.content for r in results] == ["first", "second"]
        assert [r.original_text for r in results] == ["first", "second"]
        assert all(r.status == "completed" and r.kind == "text" for r in results)

    @pytest.mark.asyncio
    async def test_text_only_batch_works_without_credential(self, app_settings):
        llm = FakeLLM(configured=False)
        results = await NotePipeline(llm, app_settings).run([text("digital_notes_01.txt", "hi")])
        assert results[0].content == "hi"

    @pytest.mark.asyncio
    async def test_mixed_batch_orders_texts_then_images(self, fake_llm, app_settings):
        items = [image("img1"), text("digital_notes_01.txt", "typed"), image("img2")]

        results = await NotePipeline(fake_llm, app_settings).run(items)

        assert [r.filename for r in results] == ["digital_notes_01.txt", "img1.png", "img2.png"]
        assert {r.id for r in results} == {item.id for item in items}
        for result in results[1:]:
            assert result.kind == "image"
            assert result.status == "completed"
            assert result.content == "reconciled text"
            assert result.original_text == f"[Image: {result.filename}]"

    @pytest.mark.asyncio
    async def test_each_image_makes_five_calls(self, fake_llm, app_settings):
        await NotePipeline(fake_llm, app_settings).run([image("img1"), image("img2")])

        assert len(fake_llm.calls) == 10
        for name in ("img1", "img2"):
            calls = [c for c in fake_llm.calls if c.image_url.endswith(name)]
            assert len(calls) == 5
            assert len([c for c in calls if DETECTION_MARK in c.prompt]) == 1
            assert len([c for c in calls if JUDGE_MARK in c.prompt]) == 1

    @pytest.mark.asyncio
    async def test_detected_language_reaches_later_stages(self, fake_llm, app_settings):
        await NotePipeline(fake_llm, app_settings).run([image("img1")])

        for mark in list(VARIANT_MARKS.values()):
            (call,) = fake_llm.calls_matching(mark)
            assert "The main language of this document is German" in call.prompt
        (judge_call,) = fake_llm.calls_matching(JUDGE_MARK)
        assert "Main language: German." in judge_call.prompt
        assert "transcription A" in judge_call.prompt

    @pytest.mark.asyncio
    async def test_preview_urls_are_copied(self, fake_llm, app_settings):
        item = image("img1")
        results = await NotePipeline(fake_llm, app_settings).run([item], previews={item.id: "/p/1"})
        assert results[0].preview_url == "/p/1"

    @pytest.mark.asyncio
    async def test_missing_credential_fails_whole_action(self, app_settings):
        llm = FakeLLM(configured=False)
        with pytest.raises(ConfigurationError):
            await NotePipeline(llm, app_settings).run([image("img1"), text("n.txt", "x")])
        assert llm.calls == []


class TestFailureIsolation:
    @pytest.mark.asyncio
    async def test_detection_failure_falls_back_to_unknown(self, app_settings):
        def handler(prompt, url):
            if DETECTION_MARK in prompt:
                return LLMServiceError("OpenAI API error: timeout")
            return None

        llm = FakeLLM(handler)
        (result,) = await NotePipeline(llm, app_settings).run([image("img1")])

        assert result.status == "completed"
        assert result.content == "reconciled text"
        (call,) = llm.calls_matching(VARIANT_MARKS["A"])
        assert "may be in one or more of" in call.prompt

    @pytest.mark.asyncio
    async def test_transcription_failure_is_isolated(self, app_settings):
        def handler(prompt, url):
            if url.endswith("img2") and VARIANT_MARKS["C"] in prompt:
                return LLMServiceError("OpenAI API error: overloaded")
            return None

        llm = FakeLLM(handler)
        results = await NotePipeline(llm, app_settings).run([image("img1"), image("img2"), image("img3")])

        by_name = {r.filename: r for r in results}
        assert by_name["img2.png"].status == "failed"
        assert by_name["img2.png"].content == "Transcription failed: OpenAI API error: overloaded"
        assert by_name["img1.png"].content == "reconciled text"
        assert by_name["img3.png"].content == "reconciled text"
        # No judge call for the failed image
        assert not [c for c in llm.calls_matching(JUDGE_MARK) if c.image_url.endswith("img2")]

    @pytest.mark.asyncio
    async def test_judge_failure_is_stage_qualified(self, app_settings):
        def handler(prompt, url):
            if JUDGE_MARK in prompt:
                return LLMServiceError("No response content from the model")
            return None

        (result,) = await NotePipeline(FakeLLM(handler), app_settings).run([image("img1")])

        assert result.status == "failed"
        assert result.content == "Judge step failed: No response content from the model"

    @pytest.mark.asyncio
    async def test_encoding_failure_reported_as_detection_stage(self, fake_llm, app_settings):
        broken = ImageInput(filename="empty.png", content=b"")

        results = await NotePipeline(fake_llm, app_settings).run([broken, image("img1")])

        assert results[0].status == "failed"
        assert results[0].content.startswith("Language detection failed: ")
        assert results[1].status == "completed"


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancelled_before_start(self, fake_llm, app_settings):
        event = asyncio.Event()
        event.set()

        results = await NotePipeline(fake_llm, app_settings).run(
            [text("n.txt", "kept"), image("img1")], cancel_event=event
        )

        assert results[0].status == "completed"
        assert results[1].status == "cancelled"
        assert results[1].content == "Extraction cancelled"
        assert fake_llm.calls == []

    @pytest.mark.asyncio
    async def test_cancelled_mid_run_skips_remaining_stages(self, app_settings):
        event = asyncio.Event()

        def handler(prompt, url):
            if DETECTION_MARK in prompt:
                event.set()
            return None

        llm = FakeLLM(handler)
        (result,) = await NotePipeline(llm, app_settings).run([image("img1")], cancel_event=event)

        assert result.status == "cancelled"
        assert len(llm.calls) == 1


@pytest.mark.asyncio
async def test_empty_judge_reply_fails_only_that_image(app_settings):
    def handler(prompt, url):
        if JUDGE_MARK in prompt and url.endswith("img1"):
            return ""
        return None

    results = await NotePipeline(FakeLLM(handler), app_settings).run([image("img1"), image("img2")])

    assert results[0].status == "failed"
    assert results[0].content == "Judge step failed: No response content from the model"
    assert results[1].status == "completed"
