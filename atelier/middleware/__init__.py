"""
Atelier Backend — Middleware Package
======================================

Middleware Chain (request order):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    - Rate Limit first: abusive clients are rejected before any work
      (Square webhooks and cron calls are exempt)
    - Request ID before Logging so every access line carries the ID
"""
