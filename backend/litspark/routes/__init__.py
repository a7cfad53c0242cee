"""
LitSpark Uploads — API Routes Package
========================================

Route Inventory:
    - uploads.py:  /api/uploads/...   (upload, download, info, delete)
    - health.py:   GET /health        (service health check)

Routes stay thin: they pick the form field, upload kind and partition,
and delegate everything else to the services.
"""
