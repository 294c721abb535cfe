"""Data stores for persistence.

Stores handle:
- Database engine and session lifecycle (SQLite or PostgreSQL)
- Transaction boundaries (commit on success, rollback on error)

No business/ranking logic in stores - that belongs in services.
"""
