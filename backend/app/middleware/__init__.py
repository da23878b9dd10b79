# Middleware package init
"""
CircuitMap Backend — Middleware Package
=========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID: generate the correlation ID used by every log line
    2. Logging: log method, path, status and duration with that ID
"""
