"""
Inspectra Backend — Prompt Builder Tests
==========================================

What:  Wording guarantees the downstream stages rely on.
"""

import itertools

import pytest

from inspectra.schemas.pipeline import DetectedLanguage, PipelineResult, TranscriptionTriple, Variant
from inspectra.services.prompts import (
    DETECTION_MARKER,
    SUMMARY_TEMPLATES,
    judge_prompt,
    language_detection_prompt,
    resolve_summary_language,
    summary_body,
    summary_prompt,
    transcription_prompt,
)


class TestDetectionPrompt:
    def test_asks_for_marker_line(self):
        prompt = language_detection_prompt()
        assert f"{DETECTION_MARKER}: <language>" in prompt
        for language in ("german", "english", "french", "italian"):
            assert language in prompt


class TestTranscriptionPrompt:
    def test_known_language_is_named(self):
        prompt = transcription_prompt(Variant.A, DetectedLanguage.GERMAN)
        assert "The main language of this document is German" in prompt

    def test_unknown_language_lists_every_candidate(self):
        prompt = transcription_prompt(Variant.A, DetectedLanguage.UNKNOWN)
        assert "main language of this document" not in prompt
        for name in ("German", "English", "French", "Italian"):
            assert name in prompt

    def test_variants_differ_only_in_bias(self):
        a, b, c = (transcription_prompt(v, DetectedLanguage.ENGLISH) for v in Variant)
        assert len({a, b, c}) == 3
        assert "Prioritize accuracy" in a
        assert "Transcribe everything visible" in b
        assert "Preserve the exact layout" in c
        for prompt in (a, b, c):
            assert "word[alt1/alt2]" in prompt
            assert "Return ONLY the transcribed text" in prompt


class TestJudgePrompt:
    def test_contains_three_labeled_transcriptions_in_order(self):
        triple = TranscriptionTriple("first take", "second take", "third take")
        prompt = judge_prompt(triple, DetectedLanguage.FRENCH)

        positions = [prompt.index(f"--- Transcription {i} ---") for i in (1, 2, 3)]
        assert positions == sorted(positions)
        assert prompt.index("first take") < prompt.index("second take") < prompt.index("third take")
        assert "Main language: French." in prompt

    @pytest.mark.parametrize(
        "order", list(itertools.permutations(["Ventil offen", "Ventil 0ffen", "Ventile offen"]))
    )
    def test_every_input_order_keeps_all_texts_verbatim(self, order):
        prompt = judge_prompt(TranscriptionTriple(*order), DetectedLanguage.GERMAN)

        for position, text in enumerate(order, start=1):
            assert f"--- Transcription {position} ---\n{text}" in prompt
        assert prompt.count("--- Transcription") == 3

        baseline = judge_prompt(TranscriptionTriple("x", "y", "z"), DetectedLanguage.GERMAN)
        assert prompt.split("--- Transcription 1 ---")[0] == baseline.split("--- Transcription 1 ---")[0]

    def test_documents_bracket_alternatives(self):
        prompt = judge_prompt(TranscriptionTriple("a", "b", "c"), DetectedLanguage.UNKNOWN)
        assert "[word1, word2, word3]" in prompt
        assert "not determined" in prompt


class TestSummaryPrompt:
    @pytest.mark.parametrize(
        "language, marker",
        [
            ("english", "IMPORTANT: Generate the entire summary in English."),
            ("german", "WICHTIG: Generieren Sie die gesamte Zusammenfassung auf Deutsch."),
            ("french", "IMPORTANT : Générez l'intégralité du résumé en français."),
            ("italian", "IMPORTANTE: Genera l'intero riassunto in italiano."),
        ],
    )
    def test_each_language_names_its_output_language(self, language, marker):
        assert summary_prompt(language).rstrip().endswith(marker)

    def test_lookup_is_case_insensitive(self):
        assert summary_prompt("GERMAN") == summary_prompt("german")

    def test_unknown_language_falls_back_to_english(self):
        assert resolve_summary_language("klingon") == "english"
        assert resolve_summary_language(None) == "english"
        assert summary_prompt("klingon") == summary_prompt("english")

    def test_word_limit_is_filled_in(self):
        assert "1000 words" in summary_prompt("english")
        assert "250 Wörtern" in summary_prompt("german", word_limit=250)
        for template in SUMMARY_TEMPLATES.values():
            assert "{word_limit}" in template

    def test_body_labels_each_source(self):
        results = [
            PipelineResult(id="1", filename="page-1.png", kind="image", content="hello"),
            PipelineResult(id="2", filename="digital_notes_01.txt", kind="text", content="world"),
        ]
        body = summary_body(results)
        assert "--- Source 1: page-1.png (transcribed from image) ---\nhello" in body
        assert "--- Source 2: digital_notes_01.txt (text note) ---\nworld" in body
