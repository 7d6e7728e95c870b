from __future__ import annotations

import logging
from typing import Iterator
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from db.models import TALENT_ROLES, Rundown, RundownTalent

from .actors import Actor
from .errors import CapacityExceeded, DuplicateName, NotFound, ValidationError
from .guards import editable_rundown, ensure_can_view, load_rundown, touch
from .tags import GUEST_ROLES, HOST_ROLES, TagReference

logger = logging.getLogger(__name__)

MAX_TALENT = 4


def _clean_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("talent name must not be blank")
    return cleaned


def _check_role(role: str) -> str:
    if role not in TALENT_ROLES:
        raise ValidationError(f"unknown talent role: {role}")
    return role


def _name_taken(rundown: Rundown, name: str, *, exclude: UUID | None = None) -> bool:
    folded = name.casefold()
    return any(
        member.name.casefold() == folded and member.id != exclude for member in rundown.talent
    )


def _editable_talent(
    session: Session, talent_id: UUID, actor: Actor
) -> tuple[RundownTalent, Rundown]:
    member = session.get(RundownTalent, talent_id)
    if member is None:
        raise NotFound("talent", talent_id)
    rundown = editable_rundown(session, member.rundown_id, actor)
    return member, rundown


def add_talent(
    session: Session,
    *,
    rundown_id: UUID,
    actor: Actor,
    name: str,
    role: str,
    bio: str | None = None,
    contact_info: dict | None = None,
    notes: str | None = None,
) -> tuple[RundownTalent, TagReference]:
    name = _clean_name(name)
    role = _check_role(role)
    rundown = editable_rundown(session, rundown_id, actor)

    if len(rundown.talent) >= MAX_TALENT:
        raise CapacityExceeded(f"a rundown holds at most {MAX_TALENT} talent")
    if _name_taken(rundown, name):
        raise DuplicateName(f"talent named {name!r} already on this rundown")

    member = RundownTalent(
        name=name,
        role=role,
        bio=bio,
        contact_info=dict(contact_info or {}),
        notes=notes,
    )
    rundown.talent.append(member)
    try:
        session.flush()
    except IntegrityError as exc:
        raise DuplicateName(f"talent named {name!r} already on this rundown") from exc
    touch(rundown)
    logger.info(
        "talent added rundown_id=%s talent_id=%s role=%s actor_id=%s",
        rundown.id,
        member.id,
        role,
        actor.id,
    )
    return member, TagReference.for_talent(member)


def update_talent(
    session: Session,
    *,
    talent_id: UUID,
    actor: Actor,
    name: str | None = None,
    role: str | None = None,
    bio: str | None = None,
    contact_info: dict | None = None,
    notes: str | None = None,
) -> tuple[RundownTalent, TagReference]:
    member, rundown = _editable_talent(session, talent_id, actor)
    if name is not None:
        name = _clean_name(name)
        if _name_taken(rundown, name, exclude=member.id):
            raise DuplicateName(f"talent named {name!r} already on this rundown")
        member.name = name
    if role is not None:
        member.role = _check_role(role)
    if bio is not None:
        member.bio = bio
    if contact_info is not None:
        member.contact_info = dict(contact_info)
    if notes is not None:
        member.notes = notes
    try:
        session.flush()
    except IntegrityError as exc:
        raise DuplicateName(f"talent named {member.name!r} already on this rundown") from exc
    touch(rundown)
    logger.info(
        "talent updated rundown_id=%s talent_id=%s role=%s actor_id=%s",
        rundown.id,
        member.id,
        member.role,
        actor.id,
    )
    return member, TagReference.for_talent(member)


def remove_talent(session: Session, *, talent_id: UUID, actor: Actor) -> Rundown:
    """Drop a talent entry. Tags already written into segment content stay as they are."""
    member, rundown = _editable_talent(session, talent_id, actor)
    rundown.talent.remove(member)
    session.flush()
    touch(rundown)
    logger.info(
        "talent removed rundown_id=%s talent_id=%s actor_id=%s", rundown.id, talent_id, actor.id
    )
    return rundown


def iter_tag_candidates(rundown: Rundown) -> Iterator[TagReference]:
    for roles in (HOST_ROLES, GUEST_ROLES):
        members = [member for member in rundown.talent if member.role in roles]
        for member in sorted(members, key=lambda m: m.name.casefold()):
            yield TagReference.for_talent(member)


def list_tag_candidates(
    session: Session, *, rundown_id: UUID, actor: Actor
) -> Iterator[TagReference]:
    rundown = load_rundown(session, rundown_id)
    ensure_can_view(rundown, actor)
    return iter_tag_candidates(rundown)


def summarize(rundown: Rundown) -> dict:
    by_role = {role: 0 for role in TALENT_ROLES}
    for member in rundown.talent:
        by_role[member.role] = by_role.get(member.role, 0) + 1
    total = len(rundown.talent)
    return {
        "total": total,
        "by_role": by_role,
        "remaining_slots": max(MAX_TALENT - total, 0),
    }


def talent_summary(session: Session, *, rundown_id: UUID, actor: Actor) -> dict:
    rundown = load_rundown(session, rundown_id)
    ensure_can_view(rundown, actor)
    return summarize(rundown)
