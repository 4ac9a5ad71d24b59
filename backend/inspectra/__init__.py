"""
Inspectra Backend — Application Package
=========================================

What: Note-digitization service for handwritten inspection notes.
How:  Images and free-text notes are collected in an in-memory workspace,
      run through a multi-stage LLM pipeline (language detection → three
      transcription variants → judge), reviewed, and merged into one summary.

Layers:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (Pipeline & Workspace)   │  ← stages, orchestration
    ├─────────────────────────────────────┤
    │        Schemas (Pydantic data)      │  ← items, results, API contracts
    ├─────────────────────────────────────┤
    │     Inference client (OpenAI)       │  ← one call per request
    └─────────────────────────────────────┘

All state is kept in memory for the lifetime of a workspace session;
nothing is persisted.
"""

__version__ = "1.0.0"
