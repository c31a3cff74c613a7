"""
Database connection and session setup.

SQLite is used for development and tests, PostgreSQL in production.
Both get a bounded wait so a locked store surfaces as an error instead of
hanging the request.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from collector_app.config import settings


def _engine_options(database_url: str) -> dict:
    """Dialect-specific connect args carrying the store timeout"""
    if database_url.startswith("sqlite"):
        return {
            "connect_args": {
                "check_same_thread": False,
                "timeout": settings.db_timeout_seconds,
            }
        }
    return {
        "connect_args": {
            "options": f"-c statement_timeout={settings.db_timeout_seconds * 1000}"
        },
        "pool_pre_ping": True,  # Verify connections before using
        "pool_timeout": settings.db_timeout_seconds,
    }


def build_engine(database_url: str):
    return create_engine(database_url, **_engine_options(database_url))


engine = build_engine(settings.database_url)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for ORM models
Base = declarative_base()


def get_db():
    """
    Dependency for FastAPI routes to get a database session.

    Usage:
        @router.get("/items")
        def list_items(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
