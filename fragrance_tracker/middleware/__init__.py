# Middleware package init
"""
Fragrance Tracker Backend: Middleware Package
==============================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID: correlation ID for logs and the error envelope
    2. Logging: method, path, status and duration, tagged with the request ID
    3. GZip / CORS: Starlette built-ins

    Responses travel the chain in reverse, so the request ID header is set
    last and the logged duration covers everything below it.
"""
