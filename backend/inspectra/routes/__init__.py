# Routes package init
"""
Inspectra Backend — API Routes Package
========================================

Route Inventory:
    - health.py:      GET    /health
    - sessions.py:    POST   /api/sessions
                      GET    /api/sessions/{sid}
                      DELETE /api/sessions/{sid}
                      POST   /api/sessions/{sid}/images
                      POST   /api/sessions/{sid}/texts
                      DELETE /api/sessions/{sid}/items/{item_id}
                      GET    /api/sessions/{sid}/items/{item_id}/preview
    - extraction.py:  POST   /api/sessions/{sid}/extract
                      POST   /api/sessions/{sid}/extract/cancel
                      PATCH  /api/sessions/{sid}/results/{item_id}
    - summary.py:     POST   /api/sessions/{sid}/summary
                      GET    /api/sessions/{sid}/summary

Routes stay thin: parse the request, call SessionService, shape the
response. Errors propagate to the global handlers in main.py.
"""
