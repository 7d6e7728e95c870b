from __future__ import annotations

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models import Rundown

from .actors import Actor
from .errors import NotFound, PermissionDenied

logger = logging.getLogger(__name__)

EDITABLE_STATUSES = frozenset({"draft", "rejected"})


def utcnow() -> datetime:
    return datetime.now(UTC)


def load_rundown(session: Session, rundown_id: UUID, *, for_update: bool = False) -> Rundown:
    stmt = select(Rundown).where(Rundown.id == rundown_id)
    if for_update:
        # per-aggregate row lock; a no-op on sqlite
        stmt = stmt.with_for_update()
    rundown = session.execute(stmt).scalar_one_or_none()
    if rundown is None:
        raise NotFound("rundown", rundown_id)
    return rundown


def is_owner(rundown: Rundown, actor: Actor) -> bool:
    return rundown.created_by == actor.id


def ensure_can_view(rundown: Rundown, actor: Actor) -> None:
    if is_owner(rundown, actor) or actor.can_review:
        return
    raise PermissionDenied(f"actor {actor.id} may not view rundown {rundown.id}")


def ensure_can_edit(rundown: Rundown, actor: Actor) -> None:
    if actor.is_admin:
        return
    if is_owner(rundown, actor) and rundown.status in EDITABLE_STATUSES:
        return
    logger.warning(
        "edit denied rundown_id=%s actor_id=%s status=%s", rundown.id, actor.id, rundown.status
    )
    if is_owner(rundown, actor):
        raise PermissionDenied(f"rundown is {rundown.status} and cannot be edited by its owner")
    raise PermissionDenied(f"actor {actor.id} may not edit rundown {rundown.id}")


def editable_rundown(session: Session, rundown_id: UUID, actor: Actor) -> Rundown:
    rundown = load_rundown(session, rundown_id, for_update=True)
    ensure_can_edit(rundown, actor)
    return rundown


def touch(rundown: Rundown) -> None:
    rundown.updated_at = utcnow()
