# Middleware package init
"""
Sprint Planning Backend — Middleware Package
==============================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    - Request ID is added to response headers (set during request phase)
    - Logging captures response status and duration (computed at response phase)

Both are plain HTTP middleware; WebSocket traffic on /client/ bypasses them.
"""
