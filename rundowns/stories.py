from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from db.models import Rundown, RundownStoryLink

from .actors import Actor
from .catalog import StoryCatalog
from .errors import AlreadyLinked, NotFound, ValidationError
from .guards import editable_rundown, touch

logger = logging.getLogger(__name__)


def bucket(rundown: Rundown, segment_id: UUID | None) -> list[RundownStoryLink]:
    """Links bound to ``segment_id`` (None is the unassigned bucket), in order."""
    links = [link for link in rundown.story_links if link.segment_id == segment_id]
    return sorted(links, key=lambda link: link.order_index)


def buckets(rundown: Rundown) -> dict[UUID | None, list[RundownStoryLink]]:
    grouped: dict[UUID | None, list[RundownStoryLink]] = {}
    for link in rundown.story_links:
        grouped.setdefault(link.segment_id, []).append(link)
    return {key: sorted(links, key=lambda link: link.order_index) for key, links in grouped.items()}


def _renumber(links: list[RundownStoryLink]) -> None:
    for position, link in enumerate(links):
        link.order_index = position


def _ensure_segment(rundown: Rundown, segment_id: UUID | None) -> None:
    if segment_id is None:
        return
    if not any(segment.id == segment_id for segment in rundown.segments):
        raise NotFound("segment", segment_id)


def _editable_link(
    session: Session, link_id: UUID, actor: Actor
) -> tuple[RundownStoryLink, Rundown]:
    link = session.get(RundownStoryLink, link_id)
    if link is None:
        raise NotFound("story link", link_id)
    rundown = editable_rundown(session, link.rundown_id, actor)
    return link, rundown


def link_story(
    session: Session,
    *,
    rundown_id: UUID,
    actor: Actor,
    story_id: int,
    catalog: StoryCatalog,
    segment_id: UUID | None = None,
    notes: str | None = None,
) -> RundownStoryLink:
    rundown = editable_rundown(session, rundown_id, actor)
    _ensure_segment(rundown, segment_id)
    if any(link.source_story_id == story_id for link in rundown.story_links):
        raise AlreadyLinked(f"story {story_id} is already linked to this rundown")

    story = catalog.get_approved_story(story_id)
    if story is None:
        raise NotFound("approved story", story_id)

    link = RundownStoryLink(
        segment_id=segment_id,
        source_story_id=story.id,
        story_title=story.title,
        story_description=story.description,
        story_questions=list(story.questions),
        story_interviewees=list(story.interviewees),
        story_tags=list(story.tags),
        notes=notes,
        order_index=len(bucket(rundown, segment_id)),
    )
    rundown.story_links.append(link)
    try:
        session.flush()
    except IntegrityError as exc:
        raise AlreadyLinked(f"story {story_id} is already linked to this rundown") from exc

    touch(rundown)
    logger.info(
        "story linked rundown_id=%s story_id=%s segment_id=%s actor_id=%s",
        rundown.id,
        story_id,
        segment_id,
        actor.id,
    )
    return link


def move_story_link(
    session: Session,
    *,
    link_id: UUID,
    actor: Actor,
    segment_id: UUID | None,
    new_index: int,
) -> RundownStoryLink:
    if new_index < 0:
        raise ValidationError("new_index must be >= 0")
    link, rundown = _editable_link(session, link_id, actor)
    _ensure_segment(rundown, segment_id)

    source = bucket(rundown, link.segment_id)
    source.remove(link)
    destination = source if segment_id == link.segment_id else bucket(rundown, segment_id)
    destination.insert(min(new_index, len(destination)), link)
    link.segment_id = segment_id

    _renumber(destination)
    if destination is not source:
        _renumber(source)
    touch(rundown)
    logger.info(
        "story link moved rundown_id=%s link_id=%s segment_id=%s index=%s",
        rundown.id,
        link.id,
        segment_id,
        link.order_index,
    )
    return link


def update_story_notes(
    session: Session, *, link_id: UUID, actor: Actor, notes: str | None
) -> RundownStoryLink:
    link, rundown = _editable_link(session, link_id, actor)
    link.notes = notes
    touch(rundown)
    logger.info(
        "story notes updated rundown_id=%s link_id=%s actor_id=%s", rundown.id, link.id, actor.id
    )
    return link


def unlink_story(session: Session, *, link_id: UUID, actor: Actor) -> Rundown:
    link, rundown = _editable_link(session, link_id, actor)
    segment_id = link.segment_id
    rundown.story_links.remove(link)
    _renumber(bucket(rundown, segment_id))
    touch(rundown)
    logger.info(
        "story unlinked rundown_id=%s story_id=%s actor_id=%s",
        rundown.id,
        link.source_story_id,
        actor.id,
    )
    return rundown


def release_segment_links(rundown: Rundown, segment_id: UUID) -> int:
    """Move every link bound to ``segment_id`` to the end of the unassigned bucket."""
    moved = bucket(rundown, segment_id)
    if not moved:
        return 0
    unassigned = bucket(rundown, None)
    for link in moved:
        link.segment_id = None
        unassigned.append(link)
    _renumber(unassigned)
    return len(moved)
