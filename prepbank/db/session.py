"""Session factory and the request-scoped session dependency."""

from collections.abc import Generator

from sqlalchemy.orm import Session, sessionmaker

from prepbank.db.engine import engine

# Rows stay readable after the per-batch commits of an import
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def get_db() -> Generator[Session, None, None]:
    """One session per request; uncommitted work is rolled back on error."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
