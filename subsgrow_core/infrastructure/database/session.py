"""Database session management"""

from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from subsgrow_core.config import settings
from subsgrow_core.infrastructure.database.models import Base


def build_engine(database_url: str) -> Engine:
    """Create an engine; pooling options only apply to server databases"""
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})

    # Recycle after 1 hour to avoid stale connections
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=5,
        pool_recycle=3600,
    )


def build_session_factory(database_url: str, create_schema: bool = True) -> sessionmaker:
    engine = build_engine(database_url)
    if create_schema:
        Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@lru_cache(maxsize=1)
def default_session_factory() -> sessionmaker:
    """Session factory for the configured database, built on first use"""
    return build_session_factory(settings.database_url)
