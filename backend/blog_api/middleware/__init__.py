"""
Modern Blog API — Middleware Package
======================================

Cross-cutting request handling.

Starlette middleware (every request):
    Request → [Request ID] → [Access Log] → [Rate Limit (writes)] → [GZip] → [CORS] → route

Per-route dependency:
    auth.get_current_user: bearer token → User, on protected routes only
"""
