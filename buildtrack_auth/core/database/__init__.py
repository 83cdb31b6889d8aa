"""
Centralized database layer for BuildTrack Auth.

Structure:
- entities/: SQLModel table models (users, sessions, audit log, verification codes)
- repositories/: Async data access layer, one repository per table
- session.py: Global engine and session factory management
- utils.py: Database utility functions (engine, session factory, table creation)
"""

from .base import Base, new_uuid, utc_now
from .session import (
    async_session_maker,
    engine,
    get_session,
    init_db,
)
from .utils import (
    create_all,
    create_engine,
    create_sessionmaker,
)

__all__ = [
    "Base",
    "async_session_maker",
    "create_all",
    "create_engine",
    "create_sessionmaker",
    "engine",
    "get_session",
    "init_db",
    "new_uuid",
    "utc_now",
]
