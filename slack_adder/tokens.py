"""Per-workspace access token storage."""

from __future__ import annotations

from datetime import UTC, datetime

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from slack_adder.db import Base, session_scope
from slack_adder.models import AccessToken, TokenStoreError

logger = structlog.get_logger(__name__)

_DIALECT_INSERTS = {"sqlite": sqlite.insert, "postgresql": postgresql.insert}


def init_token_store(engine: Engine) -> None:
    """Create the token table if it does not exist yet."""

    Base.metadata.create_all(engine, tables=[AccessToken.__table__])


def _upsert(session: Session, *, team_id: str, token: str) -> None:
    """Insert or replace the row for *team_id* in a single statement."""

    values = {"team_id": team_id, "access_token": token, "installed_at": datetime.now(UTC)}
    dialect_insert = _DIALECT_INSERTS.get(session.get_bind().dialect.name)
    if dialect_insert is None:
        session.merge(AccessToken(**values))
        return

    stmt = dialect_insert(AccessToken).values(**values)
    session.execute(
        stmt.on_conflict_do_update(
            index_elements=[AccessToken.team_id],
            set_={"access_token": stmt.excluded.access_token, "installed_at": stmt.excluded.installed_at},
        )
    )


class TokenStore:
    """Map Slack team ids to access tokens.

    Every call runs in its own transaction, so concurrent requests touching the
    same team never observe a partially written row. ``put`` overwrites any
    previous token and ``delete`` of an unknown team is a no-op.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def put(self, team_id: str, token: str) -> None:
        try:
            with session_scope(self._session_factory) as session:
                _upsert(session, team_id=team_id, token=token)
        except SQLAlchemyError as exc:
            raise TokenStoreError(f"error writing token for team {team_id}: {exc}") from exc
        logger.info("token_stored", team_id=team_id)

    def get(self, team_id: str) -> str | None:
        try:
            with session_scope(self._session_factory) as session:
                return session.execute(
                    select(AccessToken.access_token).where(AccessToken.team_id == team_id)
                ).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise TokenStoreError(f"error reading token for team {team_id}: {exc}") from exc

    def delete(self, team_id: str) -> None:
        try:
            with session_scope(self._session_factory) as session:
                session.execute(delete(AccessToken).where(AccessToken.team_id == team_id))
        except SQLAlchemyError as exc:
            raise TokenStoreError(f"error deleting token for team {team_id}: {exc}") from exc
        logger.info("token_deleted", team_id=team_id)

    def ping(self) -> None:
        """Check that the token table is reachable."""

        try:
            with session_scope(self._session_factory) as session:
                session.execute(select(func.count()).select_from(AccessToken))
        except SQLAlchemyError as exc:
            raise TokenStoreError(f"token table unavailable: {exc}") from exc
