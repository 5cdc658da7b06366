"""Tests for the per-workspace token store."""

from pathlib import Path
import sys

import pytest
from sqlalchemy import event, inspect

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from slack_adder.db import create_db_engine, create_session_factory, session_scope  # noqa: E402
from slack_adder.models import AccessToken, TokenStoreError  # noqa: E402
from slack_adder.tokens import TokenStore, init_token_store  # noqa: E402


@pytest.fixture
def engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'tokens.db'}")
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    init_token_store(engine)
    return TokenStore(create_session_factory(engine))


def test_init_creates_tokens_table(engine):
    init_token_store(engine)
    init_token_store(engine)

    inspector = inspect(engine)
    assert "tokens" in inspector.get_table_names()
    columns = {column["name"] for column in inspector.get_columns("tokens")}
    assert columns.issuperset({"team_id", "access_token"})


def test_get_unknown_team_returns_none(store):
    assert store.get("T404") is None


def test_put_then_get(store):
    store.put("T1", "xoxb-first")

    assert store.get("T1") == "xoxb-first"


def test_put_overwrites_previous_token(store, engine):
    store.put("T1", "xoxb-first")
    store.put("T1", "xoxb-second")

    assert store.get("T1") == "xoxb-second"
    with engine.connect() as connection:
        rows = connection.exec_driver_sql("SELECT COUNT(*) FROM tokens WHERE team_id = 'T1'").scalar_one()
    assert rows == 1


def test_teams_are_isolated(store):
    store.put("T1", "xoxb-one")
    store.put("T2", "xoxb-two")
    store.delete("T1")

    assert store.get("T1") is None
    assert store.get("T2") == "xoxb-two"


def test_delete_is_idempotent(store):
    store.put("T1", "xoxb-first")

    store.delete("T1")
    store.delete("T1")

    assert store.get("T1") is None


def test_missing_table_surfaces_store_error(engine):
    store = TokenStore(create_session_factory(engine))

    with pytest.raises(TokenStoreError):
        store.get("T1")
    with pytest.raises(TokenStoreError):
        store.put("T1", "xoxb")
    with pytest.raises(TokenStoreError):
        store.ping()


def test_ping_succeeds_once_initialised(store):
    store.ping()


def test_put_is_a_single_upsert_statement(store, engine):
    statements = []

    def record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(engine, "before_cursor_execute", record)
    try:
        store.put("T1", "xoxb-first")
        store.put("T1", "xoxb-second")
    finally:
        event.remove(engine, "before_cursor_execute", record)

    assert len(statements) == 2
    assert all(statement.startswith("INSERT INTO tokens") for statement in statements)
    assert all("ON CONFLICT (team_id) DO UPDATE" in statement for statement in statements)
    assert store.get("T1") == "xoxb-second"


def test_session_scope_rolls_back_on_error(store, engine):
    factory = create_session_factory(engine)

    with pytest.raises(RuntimeError):
        with session_scope(factory) as session:
            session.add(AccessToken(team_id="T1", access_token="xoxb-lost"))
            session.flush()
            raise RuntimeError("boom")

    assert store.get("T1") is None
