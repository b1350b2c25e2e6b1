"""Database models and session management.

This package contains all SQLAlchemy ORM models and database utilities.
"""

from pollstats.models.database import Base, engine, SessionLocal, get_db, init_database
from pollstats.models.response import PollResponse
from pollstats.models.interaction import PollInteraction

__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "get_db",
    "init_database",
    "PollResponse",
    "PollInteraction",
]
