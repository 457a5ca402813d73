# Middleware package init
"""
Storefront Backend — Middleware Package
=========================================

Middleware Chain (request direction):
    Request → [Request ID] → [Logging] → [Rate Limit] → [GZip] → [CORS] → Route

    1. Request ID first so every later log line and error envelope,
       including 429s from the limiter, carries the id
    2. Logging wraps everything below it, so durations include the handler
    3. Rate Limit only inspects the auth paths and passes the rest through
"""
