"""Utility script to reset the local token database.

Usage:
    python scripts/reset_local_db.py

Environment:
    Ensure DATABASE_URL (and the other required SLACK_* settings) are
    available in the current shell before running this script. Every stored
    workspace token is discarded, so each workspace must reinstall the app.
"""

from __future__ import annotations

from slack_adder.db import get_engine
from slack_adder.models import AccessToken, Base


def reset_database() -> None:
    engine = get_engine()
    Base.metadata.drop_all(engine, tables=[AccessToken.__table__])
    Base.metadata.create_all(engine, tables=[AccessToken.__table__])
    print("Local token database reset.")


if __name__ == "__main__":
    reset_database()
