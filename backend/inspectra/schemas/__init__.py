# Schemas package init
"""
Inspectra Backend — Schemas Package
=====================================

    - pipeline.py:  Pipeline data model (items, results, summary)
    - api.py:       HTTP request/response contracts
"""
