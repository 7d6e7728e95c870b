from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from db.models import Rundown

from .actors import Actor
from .errors import (
    EmptyRundown,
    InvalidTransition,
    PermissionDenied,
    SelfApproval,
    ValidationError,
)
from .guards import is_owner, load_rundown, touch, utcnow

logger = logging.getLogger(__name__)

SUBMIT = "submit"
APPROVE = "approve"
REJECT = "reject"
REOPEN = "reopen"

TRANSITIONS: dict[tuple[str, str], str] = {
    ("draft", SUBMIT): "submitted",
    ("rejected", SUBMIT): "submitted",
    ("submitted", APPROVE): "approved",
    ("submitted", REJECT): "rejected",
    ("rejected", REOPEN): "draft",
}


def next_status(status: str, action: str) -> str:
    try:
        return TRANSITIONS[(status, action)]
    except KeyError:
        raise InvalidTransition(f"cannot {action} a rundown that is {status}") from None


def allowed_actions(status: str) -> list[str]:
    return [action for (source, action) in TRANSITIONS if source == status]


def _apply(rundown: Rundown, action: str, actor: Actor) -> str:
    previous = rundown.status
    rundown.status = next_status(previous, action)
    touch(rundown)
    logger.info(
        "rundown %s rundown_id=%s from=%s to=%s actor_id=%s",
        action,
        rundown.id,
        previous,
        rundown.status,
        actor.id,
    )
    return rundown.status


def _ensure_reviewer(rundown: Rundown, actor: Actor) -> None:
    if is_owner(rundown, actor):
        raise SelfApproval("rundown owners cannot review their own rundown")
    if not actor.can_review:
        raise PermissionDenied(f"actor {actor.id} lacks the review capability")


def submit_rundown(session: Session, *, rundown_id: UUID, actor: Actor) -> Rundown:
    rundown = load_rundown(session, rundown_id, for_update=True)
    if not is_owner(rundown, actor):
        raise PermissionDenied("only the owner can submit a rundown")
    next_status(rundown.status, SUBMIT)
    if not any(not segment.is_pinned for segment in rundown.segments):
        raise EmptyRundown("add at least one segment besides the intro and outro")

    rundown.submitted_at = utcnow()
    _apply(rundown, SUBMIT, actor)
    return rundown


def approve_rundown(
    session: Session, *, rundown_id: UUID, actor: Actor, notes: str | None = None
) -> Rundown:
    rundown = load_rundown(session, rundown_id, for_update=True)
    _ensure_reviewer(rundown, actor)
    next_status(rundown.status, APPROVE)

    rundown.reviewed_by = actor.id
    rundown.reviewed_at = utcnow()
    rundown.review_notes = (notes or "").strip() or None
    _apply(rundown, APPROVE, actor)
    return rundown


def reject_rundown(
    session: Session, *, rundown_id: UUID, actor: Actor, notes: str
) -> Rundown:
    rundown = load_rundown(session, rundown_id, for_update=True)
    _ensure_reviewer(rundown, actor)
    next_status(rundown.status, REJECT)
    cleaned = (notes or "").strip()
    if not cleaned:
        raise ValidationError("rejection notes are required")

    rundown.reviewed_by = actor.id
    rundown.reviewed_at = utcnow()
    rundown.review_notes = cleaned
    _apply(rundown, REJECT, actor)
    return rundown


def reopen_rundown(session: Session, *, rundown_id: UUID, actor: Actor) -> Rundown:
    rundown = load_rundown(session, rundown_id, for_update=True)
    if not (is_owner(rundown, actor) or actor.is_admin):
        raise PermissionDenied("only the owner or an admin can reopen a rundown")
    _apply(rundown, REOPEN, actor)
    return rundown
