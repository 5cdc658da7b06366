"""SQLAlchemy models for persisted Slack credentials."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from slack_adder.db import Base


class AccessToken(Base):
    """The OAuth access token issued to a single Slack workspace."""

    __tablename__ = "tokens"

    team_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    access_token: Mapped[str] = mapped_column(Text, nullable=False)
    installed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )


class TokenStoreError(Exception):
    """Raised when the token table cannot be read or written."""
