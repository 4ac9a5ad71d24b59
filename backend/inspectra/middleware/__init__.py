# Middleware package init
"""
Inspectra Backend — Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    Responses travel the chain in reverse, so the access log sees the final
    status code and the X-Request-ID header is set on every response.
"""
