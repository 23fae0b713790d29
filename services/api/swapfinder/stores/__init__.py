"""Data stores for persistence and caching.

Stores handle:
- PostgreSQL: DB session, engine lifecycle
- Redis: caching of external responses, TTL policies

No business/matching logic in stores - that belongs in services.
"""
