"""
Inspectra Backend — Prompt Builder
====================================

What:  Prompt text for every pipeline stage.
How:   Pure functions over their inputs; no I/O, no failure modes.

Stages:
    language_detection_prompt()          one-line `DOMINANT_LANGUAGE: <x>` answer
    transcription_prompt(variant, lang)  base rules + language clause + variant bias
    judge_prompt(triple, lang)           merge three transcriptions into one
    summary_prompt(language)             one template per output language
    summary_body(results)                the per-item sections the summary reads
"""

from typing import Dict, Sequence

from inspectra.schemas.pipeline import (
    DetectedLanguage,
    PipelineResult,
    TranscriptionTriple,
    Variant,
)

DETECTION_MARKER = "DOMINANT_LANGUAGE"

DEFAULT_SUMMARY_WORD_LIMIT = 1000


def _display_name(language: DetectedLanguage) -> str:
    return language.value.capitalize()


def _supported_languages() -> str:
    return ", ".join(_display_name(lang) for lang in DetectedLanguage.supported())


# ══════════════════════════════════════════════════════════════════════════
# Language Detection
# ══════════════════════════════════════════════════════════════════════════

def language_detection_prompt() -> str:
    choices = ", ".join(lang.value for lang in DetectedLanguage.supported())
    return (
        "Look at this image of handwritten notes. Determine the dominant language of the text "
        f"(one of: {choices}). Other languages (DE, EN, FR, IT) may appear briefly in the document.\n"
        "\n"
        "Reply with exactly one line in this format:\n"
        f"{DETECTION_MARKER}: <language>\n"
        "\n"
        f"Example: {DETECTION_MARKER}: german"
    )


# ══════════════════════════════════════════════════════════════════════════
# Transcription (ensemble variants)
# ══════════════════════════════════════════════════════════════════════════

VARIANT_INSTRUCTIONS: Dict[Variant, str] = {
    Variant.A: (
        "Prioritize accuracy. Transcribe only what you can read with high confidence. "
        "For ambiguous characters or words use word[alt1/alt2]. Preserve layout and line breaks."
    ),
    Variant.B: (
        "Transcribe everything visible, including unclear parts. Always give your best guess "
        "and mark uncertainty with word[alt1/alt2] where needed. Preserve structure."
    ),
    Variant.C: (
        "Preserve the exact layout, line breaks, indentation, and sections. "
        "Transcribe all text; use word[alt1/alt2] for ambiguous words."
    ),
}


def _transcription_language_clause(language: DetectedLanguage) -> str:
    if language is DetectedLanguage.UNKNOWN:
        return (
            f"The document may be in one or more of: {_supported_languages()}. "
            "Transcribe each part in its language."
        )
    return (
        f"The main language of this document is {_display_name(language)}. "
        "Transcribe in that language; short phrases may also appear in DE, EN, FR, IT."
    )


def transcription_prompt(variant: Variant, language: DetectedLanguage) -> str:
    base = (
        "You are an expert at extracting and transcribing text from images of handwritten "
        "or printed notes.\n"
        f"{_transcription_language_clause(language)}\n"
        "\n"
        "Preserve ALL acronyms, abbreviations, and words in CAPITAL LETTERS exactly as they appear.\n"
        "Return ONLY the transcribed text. Do NOT include any introductory sentences. "
        "Start immediately with the actual transcribed text."
    )
    return (
        f"{base}\n\n{VARIANT_INSTRUCTIONS[variant]}\n\n"
        "Extract all text from this image following these guidelines."
    )


# ══════════════════════════════════════════════════════════════════════════
# Judge
# ══════════════════════════════════════════════════════════════════════════

def _judge_language_clause(language: DetectedLanguage) -> str:
    if language is DetectedLanguage.UNKNOWN:
        return f"Main language: not determined (may mix {_supported_languages()})."
    return f"Main language: {_display_name(language)}."


def judge_prompt(triple: TranscriptionTriple, language: DetectedLanguage) -> str:
    """
    Merge instructions followed by the three labeled transcriptions.

    Labels are identifiers only; no transcription is ranked above another.
    """
    sections = "\n\n".join(
        f"--- Transcription {index} ---\n{text}"
        for index, (_, text) in enumerate(triple.labeled(), start=1)
    )
    return (
        "You are given three transcriptions of the same handwritten image. The notes describe "
        "a single inspection (one scenario). Produce one final transcription that is internally "
        "consistent and describes that one scenario.\n"
        "\n"
        "Use the image to resolve ambiguities where the three versions disagree. For words that "
        "remain very unclear (no clarity from the image or agreement between versions), output "
        "alternatives in exactly this format: [word1, word2, word3] for the user to choose.\n"
        "\n"
        f"Preserve layout and structure. {_judge_language_clause(language)}\n"
        "\n"
        "Return ONLY the final transcribed text. Do NOT include any introductory sentences. "
        "Start immediately with the actual text.\n"
        "\n"
        f"{sections}"
    )


# ══════════════════════════════════════════════════════════════════════════
# Summary
# ══════════════════════════════════════════════════════════════════════════

SUMMARY_TEMPLATES: Dict[str, str] = {
    "english": (
        "You are summarizing transcribed text content that has been extracted from images and "
        'text notes. The filenames below (like "image-4.png") are just organizational labels - you '
        "are working with TEXT TRANSCRIPTIONS that have already been extracted, NOT image files to "
        "view. All content below is plain text that has been transcribed from the original sources.\n"
        "\n"
        "Summarize all the following transcribed text content into a single comprehensive document "
        "with a maximum of {word_limit} words (about two pages). Organize the content logically and "
        "ensure all key points are included. Describe only what the notes contain. Do not add "
        "additional comments other than the summary. No recommendations to the user. "
        "IMPORTANT: Generate the entire summary in English."
    ),
    "german": (
        "Sie fassen transkribierten Textinhalt zusammen, der aus Bildern und Textnotizen extrahiert "
        'wurde. Die Dateinamen unten (wie "image-4.png") sind nur organisatorische Bezeichnungen - '
        "Sie arbeiten mit TEXT-TRANSKRIPTIONEN, die bereits extrahiert wurden, NICHT mit Bilddateien "
        "zum Ansehen. Der gesamte Inhalt unten ist Klartext, der aus den ursprünglichen Quellen "
        "transkribiert wurde.\n"
        "\n"
        "Fassen Sie den gesamten folgenden transkribierten Textinhalt in einem einzigen umfassenden "
        "Dokument mit maximal {word_limit} Wörtern (etwa zwei Seiten) zusammen. Organisieren Sie den "
        "Inhalt logisch und stellen Sie sicher, dass alle wichtigen Punkte enthalten sind. Beschreiben "
        "Sie nur, was die Notizen enthalten. Fügen Sie keine zusätzlichen Kommentare außer der "
        "Zusammenfassung hinzu. Keine Empfehlungen an den Benutzer. "
        "WICHTIG: Generieren Sie die gesamte Zusammenfassung auf Deutsch."
    ),
    "french": (
        "Vous résumez du contenu textuel transcrit qui a été extrait d'images et de notes "
        'textuelles. Les noms de fichiers ci-dessous (comme "image-4.png") ne sont que des étiquettes '
        "organisationnelles - vous travaillez avec des TRANSCRIPTIONS DE TEXTE qui ont déjà été "
        "extraites, PAS avec des fichiers image à visualiser. Tout le contenu ci-dessous est du "
        "texte brut qui a été transcrit à partir des sources originales.\n"
        "\n"
        "Résumez tout le contenu textuel transcrit suivant en un seul document complet avec un "
        "maximum de {word_limit} mots (environ deux pages). Organisez le contenu de manière logique et "
        "assurez-vous que tous les points clés sont inclus. Décrivez uniquement ce que contiennent "
        "les notes. N'ajoutez pas de commentaires supplémentaires autres que le résumé. Aucune "
        "recommandation à l'utilisateur. "
        "IMPORTANT : Générez l'intégralité du résumé en français."
    ),
    "italian": (
        "Stai riassumendo contenuti testuali trascritti che sono stati estratti da immagini e "
        'note testuali. I nomi dei file qui sotto (come "image-4.png") sono solo etichette '
        "organizzative - stai lavorando con TRASCRIZIONI DI TESTO che sono già state estratte, NON "
        "con file immagine da visualizzare. Tutto il contenuto qui sotto è testo semplice che è "
        "stato trascritto dalle fonti originali.\n"
        "\n"
        "Riassumi tutto il seguente contenuto testuale trascritto in un unico documento completo con "
        "un massimo di {word_limit} parole (circa due pagine). Organizza il contenuto in modo logico e "
        "assicurati che tutti i punti chiave siano inclusi. Descrivi solo ciò che contengono le note. "
        "Non aggiungere commenti aggiuntivi oltre al riassunto. Nessuna raccomandazione all'utente. "
        "IMPORTANTE: Genera l'intero riassunto in italiano."
    ),
}

DEFAULT_SUMMARY_LANGUAGE = "english"


def resolve_summary_language(language: str | None) -> str:
    """Lower-cased template key; unrecognized values fall back to English."""
    key = (language or "").strip().lower()
    return key if key in SUMMARY_TEMPLATES else DEFAULT_SUMMARY_LANGUAGE


def summary_prompt(language: str | None, word_limit: int = DEFAULT_SUMMARY_WORD_LIMIT) -> str:
    return SUMMARY_TEMPLATES[resolve_summary_language(language)].format(word_limit=word_limit)


def summary_body(results: Sequence[PipelineResult]) -> str:
    """One labeled section per result, carrying its current (possibly edited) content."""
    sections = []
    for index, result in enumerate(results, start=1):
        origin = "transcribed from image" if result.kind == "image" else "text note"
        sections.append(f"--- Source {index}: {result.filename} ({origin}) ---\n{result.content}\n")
    return "\n".join(sections)
