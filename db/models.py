from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

RUNDOWN_STATUSES = ("draft", "submitted", "approved", "rejected")
SEGMENT_TYPES = ("intro", "story", "interview", "break", "commercial", "music", "outro")
BOUNDARY_TYPES = ("intro", "outro")
TALENT_ROLES = ("host", "co-host", "guest", "expert")

JSONType = JSON().with_variant(JSONB(), "postgresql")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _one_of(column: str, values: tuple[str, ...]) -> str:
    quoted = ", ".join(f"'{value}'" for value in values)
    return f"{column} in ({quoted})"


class Rundown(Base):
    __tablename__ = "rundowns"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    title: Mapped[str] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[UUID] = mapped_column(Uuid)
    class_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    status: Mapped[str] = mapped_column(Text, default="draft")
    scheduled_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    total_duration: Mapped[int] = mapped_column(Integer, default=0)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    segments: Mapped[list["RundownSegment"]] = relationship(
        back_populates="rundown",
        cascade="all, delete-orphan",
        order_by="RundownSegment.order_index",
        passive_deletes=True,
    )
    talent: Mapped[list["RundownTalent"]] = relationship(
        back_populates="rundown",
        cascade="all, delete-orphan",
        order_by="RundownTalent.created_at",
        passive_deletes=True,
    )
    story_links: Mapped[list["RundownStoryLink"]] = relationship(
        back_populates="rundown",
        cascade="all, delete-orphan",
        order_by="RundownStoryLink.order_index",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint(_one_of("status", RUNDOWN_STATUSES), name="ck_rundowns_status"),
        CheckConstraint("total_duration >= 0", name="ck_rundowns_total_duration_non_negative"),
        Index("ix_rundowns_created_by", "created_by"),
        Index("ix_rundowns_status", "status"),
    )


class RundownSegment(Base):
    __tablename__ = "rundown_segments"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    rundown_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("rundowns.id", ondelete="CASCADE"),
    )
    title: Mapped[str] = mapped_column(Text)
    segment_type: Mapped[str] = mapped_column("type", Text)
    content: Mapped[dict] = mapped_column(JSONType, default=dict)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration: Mapped[int] = mapped_column(Integer, default=0)
    order_index: Mapped[int] = mapped_column(Integer)
    is_pinned: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    rundown: Mapped["Rundown"] = relationship(back_populates="segments")

    __table_args__ = (
        UniqueConstraint("rundown_id", "order_index", name="uq_rundown_segments_rundown_order"),
        CheckConstraint(_one_of("type", SEGMENT_TYPES), name="ck_rundown_segments_type"),
        CheckConstraint("duration >= 0", name="ck_rundown_segments_duration_non_negative"),
        CheckConstraint(
            f"NOT is_pinned OR {_one_of('type', BOUNDARY_TYPES)}",
            name="ck_rundown_segments_pinned_boundary",
        ),
    )


class RundownTalent(Base):
    __tablename__ = "rundown_talent"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    rundown_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("rundowns.id", ondelete="CASCADE"),
    )
    name: Mapped[str] = mapped_column(Text)
    role: Mapped[str] = mapped_column(Text)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    contact_info: Mapped[dict] = mapped_column(JSONType, default=dict)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    rundown: Mapped["Rundown"] = relationship(back_populates="talent")

    __table_args__ = (
        CheckConstraint(_one_of("role", TALENT_ROLES), name="ck_rundown_talent_role"),
    )


Index(
    "uq_rundown_talent_rundown_name_ci",
    RundownTalent.rundown_id,
    func.lower(RundownTalent.name),
    unique=True,
)


class RundownStoryLink(Base):
    __tablename__ = "rundown_stories"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    rundown_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("rundowns.id", ondelete="CASCADE"),
    )
    segment_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("rundown_segments.id", ondelete="SET NULL"),
        nullable=True,
    )
    source_story_id: Mapped[int] = mapped_column(BigInteger)
    story_title: Mapped[str] = mapped_column(Text)
    story_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    story_questions: Mapped[list] = mapped_column(JSONType, default=list)
    story_interviewees: Mapped[list] = mapped_column(JSONType, default=list)
    story_tags: Mapped[list] = mapped_column(JSONType, default=list)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    rundown: Mapped["Rundown"] = relationship(back_populates="story_links")

    __table_args__ = (
        UniqueConstraint("rundown_id", "source_story_id", name="uq_rundown_stories_rundown_story"),
        Index("ix_rundown_stories_bucket", "rundown_id", "segment_id", "order_index"),
    )
