# Middleware package init
"""
Inkwell Backend: Middleware Package
====================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    The request ID is set before the access log line is written, so every
    log entry and error payload of a request carries the same ID.
"""
