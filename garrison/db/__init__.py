"""Database utilities for Garrison.

This module contains:
- Connection pool management
- Alembic migrations
"""

from garrison.db.pool import PostgresPool

__all__ = ["PostgresPool"]
