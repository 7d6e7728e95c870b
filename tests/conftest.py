from __future__ import annotations

from uuid import uuid4

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import db.models  # noqa: F401
from db.base import Base
from rundowns.actors import Actor
from rundowns.aggregate import create_rundown
from rundowns.catalog import StoryRecord


class FakeStoryCatalog:
    def __init__(self, records: list[StoryRecord]) -> None:
        self.records = {record.id: record for record in records}
        self.lookups: list[int] = []

    def get_approved_story(self, story_id: int) -> StoryRecord | None:
        self.lookups.append(story_id)
        return self.records.get(story_id)

    def search_approved(self, *, search=None, tag=None, limit=50, offset=0) -> list[StoryRecord]:
        rows = list(self.records.values())
        if search:
            rows = [row for row in rows if search.lower() in row.title.lower()]
        if tag:
            rows = [row for row in rows if tag in row.tags]
        return rows[offset : offset + limit]


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture()
def session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def owner() -> Actor:
    return Actor.from_role(uuid4(), "student")


@pytest.fixture()
def teacher() -> Actor:
    return Actor.from_role(uuid4(), "teacher")


@pytest.fixture()
def admin() -> Actor:
    return Actor.from_role(uuid4(), "amitrace_admin")


@pytest.fixture()
def stranger() -> Actor:
    return Actor.from_role(uuid4(), "student")


@pytest.fixture()
def catalog() -> FakeStoryCatalog:
    return FakeStoryCatalog(
        [
            StoryRecord(
                id=42,
                title="Campus food pantry",
                description="How the pantry keeps shelves full",
                questions=("Who started it?", "What is most needed?"),
                interviewees=("Dana Ortiz",),
                tags=("community", "food"),
            ),
            StoryRecord(id=7, title="Robotics finals", tags=("stem",)),
            StoryRecord(id=9, title="Library late hours"),
        ]
    )


@pytest.fixture()
def draft(session, owner):
    rundown = create_rundown(session, actor=owner, title="Episode 12")
    session.commit()
    return rundown
