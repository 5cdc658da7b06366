"""Slack Adder package initialisation."""

from .config import AppSettings, get_settings  # noqa: F401
from .db import Base, create_db_engine, create_session_factory, get_engine, session_scope  # noqa: F401
from .logging_config import configure_logging  # noqa: F401
from .models import AccessToken, TokenStoreError  # noqa: F401
from .tokens import TokenStore, init_token_store  # noqa: F401

__all__ = [
    "AppSettings",
    "get_settings",
    "Base",
    "get_engine",
    "create_db_engine",
    "create_session_factory",
    "session_scope",
    "AccessToken",
    "TokenStore",
    "TokenStoreError",
    "init_token_store",
    "configure_logging",
]
