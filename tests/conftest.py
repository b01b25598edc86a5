from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from typing import Any

os.environ.setdefault("CHOREQUEST_DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("CHOREQUEST_REDIS_URL", "redis://localhost:6379/0")
os.environ.setdefault("CHOREQUEST_APP_ENV", "test")
os.environ.setdefault("CHOREQUEST_TIMEZONE", "UTC")

import pytest  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from chorequest.db.base import Base  # noqa: E402
from chorequest.models import Chore, ChoreDifficulty, ChoreStatus, Family, Kid, RecurrencePattern  # noqa: E402


@pytest.fixture()
def db() -> Iterator[Session]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Match Postgres: enforce foreign keys, including ON DELETE SET NULL.
    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def family(db: Session) -> Family:
    family = Family(name="The Testers")
    db.add(family)
    db.commit()
    return family


@pytest.fixture()
def make_kid(db: Session, family: Family) -> Callable[..., Kid]:
    def factory(**overrides: Any) -> Kid:
        values: dict[str, Any] = {
            "family_id": family.id,
            "name": "Ada",
            "points": 0,
            "total_xp": 0,
            "current_streak": 0,
            "longest_streak": 0,
        }
        values.update(overrides)
        kid = Kid(**values)
        db.add(kid)
        db.commit()
        return kid

    return factory


@pytest.fixture()
def make_chore(db: Session, family: Family) -> Callable[..., Chore]:
    def factory(**overrides: Any) -> Chore:
        values: dict[str, Any] = {
            "family_id": family.id,
            "title": "Feed the cat",
            "points": 10,
            "difficulty": ChoreDifficulty.EASY,
            "status": ChoreStatus.PENDING,
        }
        values.update(overrides)
        pattern = values.get("recurrence_pattern")
        if pattern is not None:
            values["recurrence_pattern"] = RecurrencePattern(pattern)
        values.setdefault("is_recurring", pattern is not None)
        chore = Chore(**values)
        db.add(chore)
        db.commit()
        return chore

    return factory
