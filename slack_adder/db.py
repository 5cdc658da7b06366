"""Database engine and session utilities."""

from __future__ import annotations

from contextlib import contextmanager
from functools import lru_cache
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from slack_adder.config import get_settings

Base = declarative_base()


def create_db_engine(database_url: str) -> Engine:
    """Create a SQLAlchemy engine for *database_url*."""

    connect_args = {}
    if database_url.startswith("sqlite"):
        # Flask serves requests from several threads.
        connect_args["check_same_thread"] = False
    return create_engine(database_url, future=True, echo=False, connect_args=connect_args)


@lru_cache()
def get_engine() -> Engine:
    """Create or return a cached engine for the configured database."""

    return create_db_engine(get_settings().database_url)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """Provide a transactional scope for DB operations."""

    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
