"""
Linite Backend — Middleware Package
====================================

Middleware Chain (outermost first):
    Request → [Request ID] → [Logging] → [Rate Limit] → [CORS/GZip] → Route

    Request ID runs first so every later log line, including rate-limit
    rejections, carries the id.
"""
