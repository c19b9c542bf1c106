"""
Yellow Book API: Middleware Package
====================================

Middleware Chain (request direction):
    Request → [Request ID] → [Rate Limit] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID: sets the correlation ID, so even a 429 carries X-Request-ID
    2. Rate Limit: rejects over-limit clients before any route work
    3. Logging:    access line with status and duration
    4. GZip/CORS:  Starlette built-ins

Responses travel the chain in reverse, so X-Request-ID is on every response.
"""
