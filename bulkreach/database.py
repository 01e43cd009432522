"""
Database engine, session management, and base model class.

SQLAlchemy 2.0 with async support:

  - engine: The async database engine
  - AsyncSessionLocal: Factory for creating async database sessions
  - Base: Declarative base class that all ORM models inherit from
  - init_models(): Creates missing tables (and the SQLite file's directory)
  - get_db(): FastAPI dependency that provides a session per request

Unit of work:
  Each API request gets its own session via get_db(), and that session's
  transaction is the atomic unit for everything the request changes.
  Services only flush; get_db decides whether the work is committed or
  rolled back once the route handler returns or raises. Campaign funding
  is the one exception: it commits from the route (funding_service.commit_funding)
  so an uploaded media file can be removed when the commit fails.
"""

from pathlib import Path

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from bulkreach.config import settings
from bulkreach.exceptions import BulkReachError, PersistenceFailureError


# echo=True in debug mode logs all SQL statements.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
)

# expire_on_commit=False prevents lazy-load errors after commit: attribute
# access on an expired object would need a synchronous DB call, which
# fails in async context.
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


async def init_models() -> None:
    """Create all tables that don't exist yet, making the SQLite file's directory first."""
    url = engine.url
    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db():
    """
    FastAPI dependency that provides a database session.

    Usage in a route:
        @router.get("/items")
        async def list_items(db: AsyncSession = Depends(get_db)):
            ...

    Outcome of the request's unit of work:
      - success: commit
      - PersistenceFailureError (including balance conflicts): rollback, so a
        half-applied campaign funding never reaches the database
      - other domain errors: commit, so audit rows written on purpose before
        raising (failed credit/debit journal entries) are kept
      - anything else: rollback
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except PersistenceFailureError:
            await session.rollback()
            raise
        except BulkReachError:
            await session.commit()
            raise
        except Exception:
            await session.rollback()
            raise
