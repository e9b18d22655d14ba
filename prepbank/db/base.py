"""Database base class and shared column types."""

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all database models.

    Models register on import; ``prepbank.models`` imports all of them so
    ``Base.metadata`` is complete for Alembic and ``create_all``.
    """

    pass
