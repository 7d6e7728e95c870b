from __future__ import annotations

import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from db.models import RUNDOWN_STATUSES, Rundown, RundownStoryLink

from .actors import Actor
from .content import text_fields
from .errors import PermissionDenied, ValidationError
from .guards import editable_rundown, ensure_can_view, load_rundown, touch
from .stories import buckets
from .tags import TagReference, find_dangling_tags, render_content
from .timeline import boundary_of, build_segment, ordered_segments, recompute_total
from .workflow import allowed_actions

logger = logging.getLogger(__name__)


def _clean_title(title: str | None) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationError("rundown title must not be blank")
    return cleaned


def create_rundown(
    session: Session,
    *,
    actor: Actor,
    title: str,
    description: str | None = None,
    scheduled_date: datetime | None = None,
    class_id: int | None = None,
) -> Rundown:
    rundown = Rundown(
        title=_clean_title(title),
        description=description,
        created_by=actor.id,
        class_id=class_id,
        scheduled_date=scheduled_date,
        status="draft",
    )
    intro = build_segment("intro", pinned=True)
    outro = build_segment("outro", pinned=True)
    intro.order_index = 0
    outro.order_index = 1
    rundown.segments.extend([intro, outro])
    recompute_total(rundown)

    session.add(rundown)
    session.flush()
    logger.info("rundown created rundown_id=%s actor_id=%s", rundown.id, actor.id)
    return rundown


def get_rundown(session: Session, *, rundown_id: UUID, actor: Actor) -> Rundown:
    rundown = load_rundown(session, rundown_id)
    ensure_can_view(rundown, actor)
    return rundown


def list_rundowns(
    session: Session,
    *,
    actor: Actor,
    status: str | None = None,
    owner_id: UUID | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[Rundown]:
    """Owners see their own rundowns; reviewers see everyone's."""
    if status is not None and status not in RUNDOWN_STATUSES:
        raise ValidationError(f"unknown status: {status}")
    stmt = select(Rundown)
    if not actor.can_review:
        if owner_id is not None and owner_id != actor.id:
            raise PermissionDenied("only reviewers can list other owners' rundowns")
        owner_id = actor.id
    if owner_id is not None:
        stmt = stmt.where(Rundown.created_by == owner_id)
    if status is not None:
        stmt = stmt.where(Rundown.status == status)
    stmt = stmt.order_by(desc(Rundown.updated_at), desc(Rundown.created_at)).limit(limit).offset(offset)
    return list(session.execute(stmt).scalars().all())


def update_rundown_details(
    session: Session,
    *,
    rundown_id: UUID,
    actor: Actor,
    title: str | None = None,
    description: str | None = None,
    scheduled_date: datetime | None = None,
    class_id: int | None = None,
) -> Rundown:
    rundown = editable_rundown(session, rundown_id, actor)
    if title is not None:
        rundown.title = _clean_title(title)
    if description is not None:
        rundown.description = description
    if scheduled_date is not None:
        rundown.scheduled_date = scheduled_date
    if class_id is not None:
        rundown.class_id = class_id
    touch(rundown)
    return rundown


def delete_rundown(session: Session, *, rundown_id: UUID, actor: Actor) -> None:
    rundown = editable_rundown(session, rundown_id, actor)
    session.delete(rundown)
    session.flush()
    logger.info("rundown deleted rundown_id=%s actor_id=%s", rundown_id, actor.id)


def dangling_tags(rundown: Rundown) -> list[str]:
    texts: list[str] = []
    for segment in rundown.segments:
        texts.extend(text_fields(segment.content or {}))
    return find_dangling_tags(texts, rundown.talent)


def _serialize_link(link: RundownStoryLink) -> dict[str, Any]:
    return {
        "id": link.id,
        "segment_id": link.segment_id,
        "source_story_id": link.source_story_id,
        "title": link.story_title,
        "description": link.story_description,
        "questions": list(link.story_questions or []),
        "interviewees": list(link.story_interviewees or []),
        "tags": list(link.story_tags or []),
        "notes": link.notes,
        "order_index": link.order_index,
    }


def serialize_summary(rundown: Rundown) -> dict[str, Any]:
    return {
        "id": rundown.id,
        "title": rundown.title,
        "status": rundown.status,
        "created_by": rundown.created_by,
        "class_id": rundown.class_id,
        "scheduled_date": rundown.scheduled_date,
        "total_duration": rundown.total_duration,
        "submitted_at": rundown.submitted_at,
        "updated_at": rundown.updated_at,
        "segment_count": len(rundown.segments),
        "talent_count": len(rundown.talent),
        "story_count": len(rundown.story_links),
    }


def serialize_rundown(rundown: Rundown) -> dict[str, Any]:
    talent = list(rundown.talent)
    grouped = buckets(rundown)
    segments = []
    for segment in ordered_segments(rundown):
        segments.append(
            {
                "id": segment.id,
                "title": segment.title,
                "type": segment.segment_type,
                "boundary": boundary_of(segment).value,
                "content": render_content(segment.content or {}, talent),
                "raw_content": segment.content or {},
                "notes": segment.notes,
                "duration": segment.duration,
                "order_index": segment.order_index,
                "is_pinned": segment.is_pinned,
                "stories": [_serialize_link(link) for link in grouped.get(segment.id, [])],
            }
        )

    return {
        **serialize_summary(rundown),
        "description": rundown.description,
        "reviewed_by": rundown.reviewed_by,
        "reviewed_at": rundown.reviewed_at,
        "review_notes": rundown.review_notes,
        "created_at": rundown.created_at,
        "allowed_actions": allowed_actions(rundown.status),
        "segments": segments,
        "talent": [
            {
                "id": member.id,
                "name": member.name,
                "role": member.role,
                "bio": member.bio,
                "contact_info": member.contact_info or {},
                "notes": member.notes,
                "tag": TagReference.for_talent(member).as_dict(),
            }
            for member in talent
        ],
        "unassigned_stories": [_serialize_link(link) for link in grouped.get(None, [])],
        "dangling_tags": dangling_tags(rundown),
    }
