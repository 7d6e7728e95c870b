"""Read-only access to the curated story catalog.

The catalog tables belong to the story curation subsystem and live in the same
database. They are declared on their own ``MetaData`` so this service never
creates or migrates them; only approved stories are ever returned.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    MetaData,
    Table,
    Text,
    desc,
    or_,
    select,
)
from sqlalchemy.orm import Session

catalog_metadata = MetaData()

story_ideas = Table(
    "story_ideas",
    catalog_metadata,
    Column("id", BigInteger, primary_key=True),
    Column("idea_title", Text),
    Column("idea_description", Text),
    *[Column(f"question_{number}", Text) for number in range(1, 7)],
    Column("is_approved", Boolean),
    Column("created_at", DateTime(timezone=True)),
)

tags = Table(
    "tags",
    catalog_metadata,
    Column("id", BigInteger, primary_key=True),
    Column("tag_name", Text),
)

story_tags = Table(
    "story_tags",
    catalog_metadata,
    Column("story_id", BigInteger, primary_key=True),
    Column("tag_id", BigInteger, primary_key=True),
)

interviewees = Table(
    "interviewees",
    catalog_metadata,
    Column("id", BigInteger, primary_key=True),
    Column("name", Text),
)

story_interviewees = Table(
    "story_interviewees",
    catalog_metadata,
    Column("story_id", BigInteger, primary_key=True),
    Column("interviewee_id", BigInteger, primary_key=True),
)

QUESTION_KEYS = tuple(f"question_{number}" for number in range(1, 7))


@dataclass(frozen=True)
class StoryRecord:
    id: int
    title: str
    description: str | None = None
    questions: tuple[str, ...] = ()
    interviewees: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()


class StoryCatalog(Protocol):
    def get_approved_story(self, story_id: int) -> StoryRecord | None: ...

    def search_approved(
        self,
        *,
        search: str | None = None,
        tag: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[StoryRecord]: ...


class SqlStoryCatalog:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get_approved_story(self, story_id: int) -> StoryRecord | None:
        row = self.session.execute(
            select(story_ideas).where(
                story_ideas.c.id == story_id,
                story_ideas.c.is_approved.is_(True),
            )
        ).mappings().first()
        if row is None:
            return None
        return self._record(row)

    def search_approved(
        self,
        *,
        search: str | None = None,
        tag: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[StoryRecord]:
        stmt = select(story_ideas).where(story_ideas.c.is_approved.is_(True))
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(
                    story_ideas.c.idea_title.ilike(pattern),
                    story_ideas.c.idea_description.ilike(pattern),
                )
            )
        if tag:
            tagged = (
                select(story_tags.c.story_id)
                .join(tags, tags.c.id == story_tags.c.tag_id)
                .where(story_tags.c.story_id == story_ideas.c.id, tags.c.tag_name == tag)
            )
            stmt = stmt.where(tagged.exists())
        stmt = (
            stmt.order_by(desc(story_ideas.c.created_at), desc(story_ideas.c.id))
            .limit(limit)
            .offset(offset)
        )
        rows = self.session.execute(stmt).mappings().all()
        return [self._record(row) for row in rows]

    def _record(self, row) -> StoryRecord:
        story_id = row["id"]
        tag_names = self.session.execute(
            select(tags.c.tag_name)
            .join(story_tags, story_tags.c.tag_id == tags.c.id)
            .where(story_tags.c.story_id == story_id)
            .order_by(tags.c.tag_name)
        ).scalars().all()
        people = self.session.execute(
            select(interviewees.c.name)
            .join(story_interviewees, story_interviewees.c.interviewee_id == interviewees.c.id)
            .where(story_interviewees.c.story_id == story_id)
            .order_by(interviewees.c.name)
        ).scalars().all()
        questions = tuple(
            row[key].strip() for key in QUESTION_KEYS if row[key] and row[key].strip()
        )
        return StoryRecord(
            id=int(story_id),
            title=row["idea_title"] or "",
            description=row["idea_description"],
            questions=questions,
            interviewees=tuple(people),
            tags=tuple(tag_names),
        )


class DisabledStoryCatalog:
    def get_approved_story(self, story_id: int) -> StoryRecord | None:
        return None

    def search_approved(self, **_filters) -> list[StoryRecord]:
        return []


def get_catalog(session: Session) -> StoryCatalog:
    if os.getenv("STORY_CATALOG_ENABLED", "1").lower() in {"0", "false", "no"}:
        return DisabledStoryCatalog()
    return SqlStoryCatalog(session)
