from __future__ import annotations

import logging
from enum import Enum
from uuid import UUID

from sqlalchemy.orm import Session

from db.models import BOUNDARY_TYPES, SEGMENT_TYPES, Rundown, RundownSegment

from .actors import Actor
from .content import validate_content
from .errors import InvalidPosition, NotFound, ProtectedSegment, ValidationError
from .guards import editable_rundown, touch
from .stories import release_segment_links

logger = logging.getLogger(__name__)

DEFAULT_DURATIONS = {
    "intro": 60,
    "story": 300,
    "interview": 600,
    "break": 60,
    "commercial": 30,
    "music": 180,
    "outro": 30,
}
FALLBACK_DURATION = 120

DEFAULT_TITLES = {
    "intro": "Introduction",
    "story": "Story Segment",
    "interview": "Interview",
    "break": "Break",
    "commercial": "Commercial Break",
    "music": "Music",
    "outro": "Closing",
}


class Boundary(Enum):
    INTRO = "intro"
    OUTRO = "outro"
    ORDINARY = "ordinary"


def boundary_of(segment: RundownSegment) -> Boundary:
    if not segment.is_pinned:
        return Boundary.ORDINARY
    return Boundary.INTRO if segment.segment_type == "intro" else Boundary.OUTRO


def ordered_segments(rundown: Rundown) -> list[RundownSegment]:
    return sorted(rundown.segments, key=lambda segment: segment.order_index)


def recompute_total(rundown: Rundown) -> int:
    rundown.total_duration = sum(segment.duration for segment in rundown.segments)
    return rundown.total_duration


def _validate_seconds(seconds: int) -> int:
    if isinstance(seconds, bool) or not isinstance(seconds, int):
        raise ValidationError("duration must be a whole number of seconds")
    if seconds < 0:
        raise ValidationError("duration must be >= 0")
    return seconds


def _movable_range(ordered: list[RundownSegment]) -> tuple[int, int]:
    """Lowest and highest index an ordinary segment may take in ``ordered``."""
    low = 1 if ordered and boundary_of(ordered[0]) is Boundary.INTRO else 0
    high = len(ordered) - 1
    if ordered and boundary_of(ordered[-1]) is Boundary.OUTRO:
        high -= 1
    return low, high


def _insert_position(
    ordered: list[RundownSegment], kind: Boundary, after_index: int | None
) -> int:
    if kind is Boundary.INTRO:
        return 0
    if kind is Boundary.OUTRO:
        return len(ordered)
    # an insert widens the list by one, so the upper bound is one past the movable range
    low, high = _movable_range(ordered)
    high += 1
    if after_index is None:
        return high
    return max(low, min(after_index + 1, high))


def _reindex(session: Session, ordered: list[RundownSegment]) -> None:
    # two passes keep uq_rundown_segments_rundown_order satisfied row by row
    for position, segment in enumerate(ordered):
        segment.order_index = -(position + 1)
    session.flush()
    for position, segment in enumerate(ordered):
        segment.order_index = position
    session.flush()


def _editable_segment(
    session: Session, segment_id: UUID, actor: Actor
) -> tuple[RundownSegment, Rundown]:
    segment = session.get(RundownSegment, segment_id)
    if segment is None:
        raise NotFound("segment", segment_id)
    rundown = editable_rundown(session, segment.rundown_id, actor)
    return segment, rundown


def build_segment(
    segment_type: str,
    *,
    title: str | None = None,
    duration: int | None = None,
    content: dict | None = None,
    notes: str | None = None,
    pinned: bool = False,
) -> RundownSegment:
    if segment_type not in SEGMENT_TYPES:
        raise ValidationError(f"unknown segment type: {segment_type}")
    if pinned and segment_type not in BOUNDARY_TYPES:
        raise ValidationError("only intro and outro segments can be pinned")
    seconds = (
        DEFAULT_DURATIONS.get(segment_type, FALLBACK_DURATION)
        if duration is None
        else _validate_seconds(duration)
    )
    return RundownSegment(
        title=(title or "").strip() or DEFAULT_TITLES[segment_type],
        segment_type=segment_type,
        content=validate_content(segment_type, content),
        notes=notes,
        duration=seconds,
        is_pinned=pinned,
    )


def insert_segment(
    session: Session,
    *,
    rundown_id: UUID,
    actor: Actor,
    segment_type: str,
    title: str | None = None,
    after_index: int | None = None,
    duration: int | None = None,
    content: dict | None = None,
    notes: str | None = None,
    pinned: bool = False,
) -> RundownSegment:
    if after_index is not None and after_index < -1:
        raise ValidationError("after_index must be >= -1")
    segment = build_segment(
        segment_type,
        title=title,
        duration=duration,
        content=content,
        notes=notes,
        pinned=pinned,
    )
    rundown = editable_rundown(session, rundown_id, actor)
    ordered = ordered_segments(rundown)

    kind = boundary_of(segment)
    if kind is not Boundary.ORDINARY and any(boundary_of(item) is kind for item in ordered):
        raise InvalidPosition(f"rundown already has a pinned {kind.value}")

    position = _insert_position(ordered, kind, after_index)
    ordered.insert(position, segment)
    rundown.segments.append(segment)
    _reindex(session, ordered)
    recompute_total(rundown)
    touch(rundown)
    logger.info(
        "segment inserted rundown_id=%s segment_id=%s type=%s index=%s actor_id=%s",
        rundown.id,
        segment.id,
        segment.segment_type,
        segment.order_index,
        actor.id,
    )
    return segment


def reorder_segment(
    session: Session, *, segment_id: UUID, actor: Actor, new_index: int
) -> RundownSegment:
    segment, rundown = _editable_segment(session, segment_id, actor)
    if segment.is_pinned:
        raise InvalidPosition("pinned segments cannot be moved")
    ordered = ordered_segments(rundown)
    if not 0 <= new_index < len(ordered):
        raise InvalidPosition(f"new_index {new_index} is outside 0..{len(ordered) - 1}")
    low, high = _movable_range(ordered)
    if not low <= new_index <= high:
        raise InvalidPosition("segments cannot be placed outside the pinned intro/outro")

    ordered.remove(segment)
    ordered.insert(new_index, segment)
    _reindex(session, ordered)
    touch(rundown)
    logger.info(
        "segment reordered rundown_id=%s segment_id=%s index=%s actor_id=%s",
        rundown.id,
        segment.id,
        new_index,
        actor.id,
    )
    return segment


def remove_segment(session: Session, *, segment_id: UUID, actor: Actor) -> Rundown:
    segment, rundown = _editable_segment(session, segment_id, actor)
    if segment.is_pinned:
        raise ProtectedSegment(f"pinned {segment.segment_type} cannot be removed")

    released = release_segment_links(rundown, segment.id)
    session.flush()
    rundown.segments.remove(segment)
    _reindex(session, ordered_segments(rundown))
    recompute_total(rundown)
    touch(rundown)
    logger.info(
        "segment removed rundown_id=%s segment_id=%s released_links=%s actor_id=%s",
        rundown.id,
        segment_id,
        released,
        actor.id,
    )
    return rundown


def update_duration(
    session: Session, *, segment_id: UUID, actor: Actor, seconds: int
) -> RundownSegment:
    seconds = _validate_seconds(seconds)
    segment, rundown = _editable_segment(session, segment_id, actor)
    segment.duration = seconds
    recompute_total(rundown)
    touch(rundown)
    logger.info(
        "segment duration updated rundown_id=%s segment_id=%s seconds=%s actor_id=%s",
        rundown.id,
        segment.id,
        seconds,
        actor.id,
    )
    return segment


def update_segment(
    session: Session,
    *,
    segment_id: UUID,
    actor: Actor,
    title: str | None = None,
    content: dict | None = None,
    notes: str | None = None,
    duration: int | None = None,
) -> RundownSegment:
    segment, rundown = _editable_segment(session, segment_id, actor)
    if title is not None:
        if not title.strip():
            raise ValidationError("title must not be blank")
        segment.title = title.strip()
    if content is not None:
        segment.content = validate_content(segment.segment_type, content)
    if notes is not None:
        segment.notes = notes
    if duration is not None:
        segment.duration = _validate_seconds(duration)
        recompute_total(rundown)
    touch(rundown)
    logger.info(
        "segment updated rundown_id=%s segment_id=%s actor_id=%s", rundown.id, segment.id, actor.id
    )
    return segment


def duplicate_segment(session: Session, *, segment_id: UUID, actor: Actor) -> RundownSegment:
    segment, rundown = _editable_segment(session, segment_id, actor)
    if segment.is_pinned:
        raise ProtectedSegment(f"pinned {segment.segment_type} cannot be duplicated")

    copy = RundownSegment(
        title=f"{segment.title} (Copy)",
        segment_type=segment.segment_type,
        content=dict(segment.content or {}),
        notes=segment.notes,
        duration=segment.duration,
        is_pinned=False,
    )
    ordered = ordered_segments(rundown)
    ordered.insert(ordered.index(segment) + 1, copy)
    rundown.segments.append(copy)
    _reindex(session, ordered)
    recompute_total(rundown)
    touch(rundown)
    logger.info(
        "segment duplicated rundown_id=%s segment_id=%s copy_id=%s actor_id=%s",
        rundown.id,
        segment.id,
        copy.id,
        actor.id,
    )
    return copy
