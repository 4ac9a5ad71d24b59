# Services package init
"""
Inspectra Backend — Services Layer
====================================

What:  Business logic between the routes (HTTP) and the inference service.

Service Inventory:
    - LLMService (abstract):  Interface for vision/text completion providers
    - OpenAIService:          Chat-completions implementation (openai SDK)
    - ImageEncoder:           Image payload → data URL
    - prompts:                Every prompt the pipeline sends
    - LanguageDetector:       Dominant handwriting language of one image
    - EnsembleTranscriber:    Three concurrent, differently-biased transcriptions
    - Judge:                  Reconciles the three into one text
    - NotePipeline:           Per-item orchestration with failure isolation
    - Summarizer:             One summary across all results
    - FileService:            Upload validation
    - SessionService:         In-memory workspaces and the three-step workflow
"""
