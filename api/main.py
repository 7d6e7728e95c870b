from __future__ import annotations

from datetime import datetime
import logging
from os import getenv
from typing import List, Literal, Optional
from uuid import UUID

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field

from db.models import RUNDOWN_STATUSES, SEGMENT_TYPES, TALENT_ROLES
from db.session import SessionLocal
from rundowns.actors import Actor
from rundowns.aggregate import (
    create_rundown,
    delete_rundown,
    get_rundown,
    list_rundowns,
    serialize_rundown,
    serialize_summary,
    update_rundown_details,
)
from rundowns.catalog import get_catalog
from rundowns.errors import RundownError
from rundowns.stories import link_story, move_story_link, unlink_story, update_story_notes
from rundowns.talent import (
    add_talent,
    list_tag_candidates,
    remove_talent,
    talent_summary,
    update_talent,
)
from rundowns.timeline import (
    duplicate_segment,
    insert_segment,
    remove_segment,
    reorder_segment,
    update_segment,
)
from rundowns.workflow import approve_rundown, reject_rundown, reopen_rundown, submit_rundown

logging.basicConfig(level=getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

app = FastAPI(title="Rundown API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        origin.strip()
        for origin in getenv("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
        if origin.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

SegmentType = Literal["intro", "story", "interview", "break", "commercial", "music", "outro"]
TalentRole = Literal["host", "co-host", "guest", "expert"]
RundownStatus = Literal["draft", "submitted", "approved", "rejected"]


def _paginate(limit: int, offset: int) -> tuple[int, int]:
    limit = max(1, min(limit, 200))
    offset = max(0, offset)
    return limit, offset


def _current_actor(
    x_actor_id: str | None = Header(default=None),
    x_actor_role: str | None = Header(default=None),
    x_actor_capabilities: str | None = Header(default=None),
    x_gateway_token: str | None = Header(default=None),
) -> Actor:
    expected = getenv("GATEWAY_TOKEN", "")
    if expected and x_gateway_token != expected:
        raise HTTPException(status_code=401, detail="gateway_token_required")
    if not x_actor_id:
        raise HTTPException(status_code=401, detail="actor_required")
    try:
        actor_id = UUID(x_actor_id.strip())
    except ValueError:
        raise HTTPException(status_code=401, detail="actor_required") from None
    role = (x_actor_role or "student").strip().lower()
    extra = [cap.strip() for cap in (x_actor_capabilities or "").split(",")]
    return Actor.from_role(actor_id, role, extra)


def _http_error(session, exc: RundownError) -> HTTPException:
    session.rollback()
    logger.info("request failed kind=%s message=%s", exc.kind, exc.message)
    return HTTPException(status_code=exc.status_code, detail=exc.as_detail())


def _rundown_payload(rundown) -> dict:
    return jsonable_encoder(serialize_rundown(rundown))


class RundownCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    scheduled_date: Optional[datetime] = None
    class_id: Optional[int] = None


class RundownDetailsRequest(BaseModel):
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    scheduled_date: Optional[datetime] = None
    class_id: Optional[int] = None


class SegmentInsertRequest(BaseModel):
    type: SegmentType
    title: Optional[str] = Field(default=None, max_length=200)
    after_index: Optional[int] = None
    duration: Optional[int] = None
    content: Optional[dict] = None
    notes: Optional[str] = None
    pinned: bool = Field(default=False)


class SegmentReorderRequest(BaseModel):
    new_index: int


class SegmentUpdateRequest(BaseModel):
    title: Optional[str] = Field(default=None, max_length=200)
    content: Optional[dict] = None
    notes: Optional[str] = None
    duration: Optional[int] = None


class TalentRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    role: TalentRole
    bio: Optional[str] = None
    contact_info: Optional[dict] = None
    notes: Optional[str] = None


class TalentUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, max_length=120)
    role: Optional[TalentRole] = None
    bio: Optional[str] = None
    contact_info: Optional[dict] = None
    notes: Optional[str] = None


class StoryLinkRequest(BaseModel):
    story_id: int = Field(ge=1)
    segment_id: UUID | None = None
    notes: Optional[str] = None


class StoryMoveRequest(BaseModel):
    segment_id: UUID | None = None
    new_index: int = Field(default=0)


class StoryNotesRequest(BaseModel):
    notes: Optional[str] = None


class ReviewRequest(BaseModel):
    notes: Optional[str] = Field(default=None, max_length=4000)


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/settings")
def get_settings() -> dict:
    def flag(name: str, default: str = "") -> str:
        return getenv(name, default)

    return {
        "database_configured": flag("DATABASE_URL", "") != "",
        "sql_echo": flag("SQL_ECHO", "0"),
        "gateway_guard": flag("GATEWAY_TOKEN", "") != "",
        "cors_origins": flag("CORS_ORIGINS", ""),
        "log_level": flag("LOG_LEVEL", "INFO"),
        "story_catalog_enabled": flag("STORY_CATALOG_ENABLED", "1"),
        "segment_types": list(SEGMENT_TYPES),
        "talent_roles": list(TALENT_ROLES),
        "statuses": list(RUNDOWN_STATUSES),
    }


@app.post("/rundowns")
def create_rundown_endpoint(
    payload: RundownCreateRequest,
    actor: Actor = Depends(_current_actor),
) -> dict:
    session = SessionLocal()
    try:
        try:
            rundown = create_rundown(
                session,
                actor=actor,
                title=payload.title,
                description=payload.description,
                scheduled_date=payload.scheduled_date,
                class_id=payload.class_id,
            )
        except RundownError as exc:
            raise _http_error(session, exc) from exc
        session.commit()
        return _rundown_payload(rundown)
    finally:
        session.close()


@app.get("/rundowns")
def list_rundowns_endpoint(
    status: Optional[RundownStatus] = None,
    owner_id: Optional[UUID] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    actor: Actor = Depends(_current_actor),
) -> List[dict]:
    limit, offset = _paginate(limit, offset)
    session = SessionLocal()
    try:
        try:
            rows = list_rundowns(
                session, actor=actor, status=status, owner_id=owner_id, limit=limit, offset=offset
            )
        except RundownError as exc:
            raise _http_error(session, exc) from exc
        return jsonable_encoder([serialize_summary(row) for row in rows])
    finally:
        session.close()


@app.get("/rundowns/{rundown_id}")
def get_rundown_endpoint(rundown_id: UUID, actor: Actor = Depends(_current_actor)) -> dict:
    session = SessionLocal()
    try:
        try:
            rundown = get_rundown(session, rundown_id=rundown_id, actor=actor)
        except RundownError as exc:
            raise _http_error(session, exc) from exc
        return _rundown_payload(rundown)
    finally:
        session.close()


@app.post("/rundowns/{rundown_id}/details")
def update_rundown_details_endpoint(
    rundown_id: UUID,
    payload: RundownDetailsRequest,
    actor: Actor = Depends(_current_actor),
) -> dict:
    session = SessionLocal()
    try:
        try:
            rundown = update_rundown_details(
                session,
                rundown_id=rundown_id,
                actor=actor,
                title=payload.title,
                description=payload.description,
                scheduled_date=payload.scheduled_date,
                class_id=payload.class_id,
            )
        except RundownError as exc:
            raise _http_error(session, exc) from exc
        session.commit()
        return _rundown_payload(rundown)
    finally:
        session.close()


@app.post("/rundowns/{rundown_id}/delete")
def delete_rundown_endpoint(rundown_id: UUID, actor: Actor = Depends(_current_actor)) -> dict:
    session = SessionLocal()
    try:
        try:
            delete_rundown(session, rundown_id=rundown_id, actor=actor)
        except RundownError as exc:
            raise _http_error(session, exc) from exc
        session.commit()
        return jsonable_encoder({"id": rundown_id, "deleted": True})
    finally:
        session.close()


@app.post("/rundowns/{rundown_id}/segments")
def insert_segment_endpoint(
    rundown_id: UUID,
    payload: SegmentInsertRequest,
    actor: Actor = Depends(_current_actor),
) -> dict:
    session = SessionLocal()
    try:
        try:
            segment = insert_segment(
                session,
                rundown_id=rundown_id,
                actor=actor,
                segment_type=payload.type,
                title=payload.title,
                after_index=payload.after_index,
                duration=payload.duration,
                content=payload.content,
                notes=payload.notes,
                pinned=payload.pinned,
            )
        except RundownError as exc:
            raise _http_error(session, exc) from exc
        session.commit()
        return _rundown_payload(segment.rundown)
    finally:
        session.close()


@app.post("/segments/{segment_id}/reorder")
def reorder_segment_endpoint(
    segment_id: UUID,
    payload: SegmentReorderRequest,
    actor: Actor = Depends(_current_actor),
) -> dict:
    session = SessionLocal()
    try:
        try:
            segment = reorder_segment(
                session, segment_id=segment_id, actor=actor, new_index=payload.new_index
            )
        except RundownError as exc:
            raise _http_error(session, exc) from exc
        session.commit()
        return _rundown_payload(segment.rundown)
    finally:
        session.close()


@app.post("/segments/{segment_id}")
def update_segment_endpoint(
    segment_id: UUID,
    payload: SegmentUpdateRequest,
    actor: Actor = Depends(_current_actor),
) -> dict:
    session = SessionLocal()
    try:
        try:
            segment = update_segment(
                session,
                segment_id=segment_id,
                actor=actor,
                title=payload.title,
                content=payload.content,
                notes=payload.notes,
                duration=payload.duration,
            )
        except RundownError as exc:
            raise _http_error(session, exc) from exc
        session.commit()
        return _rundown_payload(segment.rundown)
    finally:
        session.close()


@app.post("/segments/{segment_id}/duplicate")
def duplicate_segment_endpoint(segment_id: UUID, actor: Actor = Depends(_current_actor)) -> dict:
    session = SessionLocal()
    try:
        try:
            segment = duplicate_segment(session, segment_id=segment_id, actor=actor)
        except RundownError as exc:
            raise _http_error(session, exc) from exc
        session.commit()
        return _rundown_payload(segment.rundown)
    finally:
        session.close()


@app.post("/segments/{segment_id}/delete")
def remove_segment_endpoint(segment_id: UUID, actor: Actor = Depends(_current_actor)) -> dict:
    session = SessionLocal()
    try:
        try:
            rundown = remove_segment(session, segment_id=segment_id, actor=actor)
        except RundownError as exc:
            raise _http_error(session, exc) from exc
        session.commit()
        return _rundown_payload(rundown)
    finally:
        session.close()


@app.post("/rundowns/{rundown_id}/talent")
def add_talent_endpoint(
    rundown_id: UUID,
    payload: TalentRequest,
    actor: Actor = Depends(_current_actor),
) -> dict:
    session = SessionLocal()
    try:
        try:
            member, reference = add_talent(
                session,
                rundown_id=rundown_id,
                actor=actor,
                name=payload.name,
                role=payload.role,
                bio=payload.bio,
                contact_info=payload.contact_info,
                notes=payload.notes,
            )
        except RundownError as exc:
            raise _http_error(session, exc) from exc
        session.commit()
        return {"tag": reference.as_dict(), "rundown": _rundown_payload(member.rundown)}
    finally:
        session.close()


@app.get("/rundowns/{rundown_id}/talent/tags")
def list_tag_candidates_endpoint(
    rundown_id: UUID, actor: Actor = Depends(_current_actor)
) -> List[dict]:
    session = SessionLocal()
    try:
        try:
            candidates = list_tag_candidates(session, rundown_id=rundown_id, actor=actor)
        except RundownError as exc:
            raise _http_error(session, exc) from exc
        return [reference.as_dict() for reference in candidates]
    finally:
        session.close()


@app.get("/rundowns/{rundown_id}/talent/summary")
def talent_summary_endpoint(rundown_id: UUID, actor: Actor = Depends(_current_actor)) -> dict:
    session = SessionLocal()
    try:
        try:
            return talent_summary(session, rundown_id=rundown_id, actor=actor)
        except RundownError as exc:
            raise _http_error(session, exc) from exc
    finally:
        session.close()


@app.post("/talent/{talent_id}")
def update_talent_endpoint(
    talent_id: UUID,
    payload: TalentUpdateRequest,
    actor: Actor = Depends(_current_actor),
) -> dict:
    session = SessionLocal()
    try:
        try:
            member, reference = update_talent(
                session,
                talent_id=talent_id,
                actor=actor,
                name=payload.name,
                role=payload.role,
                bio=payload.bio,
                contact_info=payload.contact_info,
                notes=payload.notes,
            )
        except RundownError as exc:
            raise _http_error(session, exc) from exc
        session.commit()
        return {"tag": reference.as_dict(), "rundown": _rundown_payload(member.rundown)}
    finally:
        session.close()


@app.post("/talent/{talent_id}/delete")
def remove_talent_endpoint(talent_id: UUID, actor: Actor = Depends(_current_actor)) -> dict:
    session = SessionLocal()
    try:
        try:
            rundown = remove_talent(session, talent_id=talent_id, actor=actor)
        except RundownError as exc:
            raise _http_error(session, exc) from exc
        session.commit()
        return _rundown_payload(rundown)
    finally:
        session.close()


@app.get("/rundowns/{rundown_id}/stories/browse")
def browse_stories_endpoint(
    rundown_id: UUID,
    search: Optional[str] = None,
    tag: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    actor: Actor = Depends(_current_actor),
) -> List[dict]:
    limit, offset = _paginate(limit, offset)
    session = SessionLocal()
    try:
        try:
            rundown = get_rundown(session, rundown_id=rundown_id, actor=actor)
        except RundownError as exc:
            raise _http_error(session, exc) from exc
        linked = {link.source_story_id for link in rundown.story_links}
        records = get_catalog(session).search_approved(
            search=search, tag=tag, limit=limit, offset=offset
        )
        return [
            {
                "id": record.id,
                "title": record.title,
                "description": record.description,
                "questions": list(record.questions),
                "interviewees": list(record.interviewees),
                "tags": list(record.tags),
                "linked": record.id in linked,
            }
            for record in records
        ]
    finally:
        session.close()


@app.post("/rundowns/{rundown_id}/stories")
def link_story_endpoint(
    rundown_id: UUID,
    payload: StoryLinkRequest,
    actor: Actor = Depends(_current_actor),
) -> dict:
    session = SessionLocal()
    try:
        try:
            link = link_story(
                session,
                rundown_id=rundown_id,
                actor=actor,
                story_id=payload.story_id,
                catalog=get_catalog(session),
                segment_id=payload.segment_id,
                notes=payload.notes,
            )
        except RundownError as exc:
            raise _http_error(session, exc) from exc
        session.commit()
        return _rundown_payload(link.rundown)
    finally:
        session.close()


@app.post("/story-links/{link_id}/move")
def move_story_link_endpoint(
    link_id: UUID,
    payload: StoryMoveRequest,
    actor: Actor = Depends(_current_actor),
) -> dict:
    session = SessionLocal()
    try:
        try:
            link = move_story_link(
                session,
                link_id=link_id,
                actor=actor,
                segment_id=payload.segment_id,
                new_index=payload.new_index,
            )
        except RundownError as exc:
            raise _http_error(session, exc) from exc
        session.commit()
        return _rundown_payload(link.rundown)
    finally:
        session.close()


@app.post("/story-links/{link_id}/notes")
def update_story_notes_endpoint(
    link_id: UUID,
    payload: StoryNotesRequest,
    actor: Actor = Depends(_current_actor),
) -> dict:
    session = SessionLocal()
    try:
        try:
            link = update_story_notes(session, link_id=link_id, actor=actor, notes=payload.notes)
        except RundownError as exc:
            raise _http_error(session, exc) from exc
        session.commit()
        return _rundown_payload(link.rundown)
    finally:
        session.close()


@app.post("/story-links/{link_id}/delete")
def unlink_story_endpoint(link_id: UUID, actor: Actor = Depends(_current_actor)) -> dict:
    session = SessionLocal()
    try:
        try:
            rundown = unlink_story(session, link_id=link_id, actor=actor)
        except RundownError as exc:
            raise _http_error(session, exc) from exc
        session.commit()
        return _rundown_payload(rundown)
    finally:
        session.close()


@app.post("/rundowns/{rundown_id}/submit")
def submit_rundown_endpoint(rundown_id: UUID, actor: Actor = Depends(_current_actor)) -> dict:
    session = SessionLocal()
    try:
        try:
            rundown = submit_rundown(session, rundown_id=rundown_id, actor=actor)
        except RundownError as exc:
            raise _http_error(session, exc) from exc
        session.commit()
        return _rundown_payload(rundown)
    finally:
        session.close()


@app.post("/rundowns/{rundown_id}/approve")
def approve_rundown_endpoint(
    rundown_id: UUID,
    payload: ReviewRequest | None = None,
    actor: Actor = Depends(_current_actor),
) -> dict:
    session = SessionLocal()
    try:
        try:
            rundown = approve_rundown(
                session,
                rundown_id=rundown_id,
                actor=actor,
                notes=payload.notes if payload is not None else None,
            )
        except RundownError as exc:
            raise _http_error(session, exc) from exc
        session.commit()
        return _rundown_payload(rundown)
    finally:
        session.close()


@app.post("/rundowns/{rundown_id}/reject")
def reject_rundown_endpoint(
    rundown_id: UUID,
    payload: ReviewRequest,
    actor: Actor = Depends(_current_actor),
) -> dict:
    session = SessionLocal()
    try:
        try:
            rundown = reject_rundown(
                session, rundown_id=rundown_id, actor=actor, notes=payload.notes or ""
            )
        except RundownError as exc:
            raise _http_error(session, exc) from exc
        session.commit()
        return _rundown_payload(rundown)
    finally:
        session.close()


@app.post("/rundowns/{rundown_id}/reopen")
def reopen_rundown_endpoint(rundown_id: UUID, actor: Actor = Depends(_current_actor)) -> dict:
    session = SessionLocal()
    try:
        try:
            rundown = reopen_rundown(session, rundown_id=rundown_id, actor=actor)
        except RundownError as exc:
            raise _http_error(session, exc) from exc
        session.commit()
        return _rundown_payload(rundown)
    finally:
        session.close()
