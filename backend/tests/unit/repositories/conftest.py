"""Shared fixtures for repository integration tests.

Provides a file-backed SQLite engine (so several threads can hold their
own connections), a session factory, and a row-seeding helper.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from dueworker.database import Base

# Force model registration so create_all picks up every table.
import dueworker.infra.db.models.due_item  # noqa: F401
from dueworker.infra.db.models.due_item import DueItemRow

BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine(tmp_path):
    """Function-scoped SQLite engine on a temporary file."""
    eng = create_engine(
        f"sqlite:///{tmp_path / 'dueworker-test.db'}",
        connect_args={"check_same_thread": False, "timeout": 15},
    )

    @event.listens_for(eng, "connect")
    def _set_sqlite_pragma(dbapi_conn, _):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA busy_timeout=15000")
        cursor.close()

    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def seed(session_factory):
    """Insert due item rows.  Returns a callable taking keyword dicts."""

    def _seed(*rows: dict) -> None:
        with session_factory() as session:
            for values in rows:
                values = dict(values)
                values.setdefault("created_at", BASE_TIME)
                values.setdefault("topic", f"topic {values['id']}")
                values.setdefault("url", f"https://example.com/{values['id']}")
                session.add(DueItemRow(**values))
            session.commit()

    return _seed
