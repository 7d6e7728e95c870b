from __future__ import annotations

from types import GeneratorType

import pytest

from rundowns.aggregate import serialize_rundown
from rundowns.errors import CapacityExceeded, DuplicateName, PermissionDenied, ValidationError
from rundowns.talent import (
    MAX_TALENT,
    add_talent,
    list_tag_candidates,
    remove_talent,
    talent_summary,
    update_talent,
)
from rundowns.timeline import insert_segment, update_segment


def test_add_talent_returns_tag_reference(session, owner, draft) -> None:
    host, host_ref = add_talent(session, rundown_id=draft.id, actor=owner, name=" Ana Ruiz ", role="host")
    _, cohost_ref = add_talent(session, rundown_id=draft.id, actor=owner, name="Ben", role="co-host")
    _, guest_ref = add_talent(session, rundown_id=draft.id, actor=owner, name="Cy", role="guest")
    _, expert_ref = add_talent(session, rundown_id=draft.id, actor=owner, name="Dee", role="expert")

    assert host.name == "Ana Ruiz"
    assert host_ref.display == "@Host(Ana Ruiz)"
    assert host_ref.token == f"@[host:{host.id}]"
    assert cohost_ref.display == "@Host(Ben)"
    assert guest_ref.display == "@Guest(Cy)"
    assert expert_ref.display == "@Guest(Dee)"


def test_fifth_talent_exceeds_capacity_and_leaves_roster_unchanged(session, owner, draft) -> None:
    for name in ["A", "B", "C", "D"]:
        add_talent(session, rundown_id=draft.id, actor=owner, name=name, role="guest")

    with pytest.raises(CapacityExceeded):
        add_talent(session, rundown_id=draft.id, actor=owner, name="E", role="guest")

    assert len(draft.talent) == MAX_TALENT
    assert sorted(member.name for member in draft.talent) == ["A", "B", "C", "D"]


def test_add_talent_validates_name_role_and_uniqueness(session, owner, draft) -> None:
    add_talent(session, rundown_id=draft.id, actor=owner, name="Ana", role="host")

    with pytest.raises(DuplicateName):
        add_talent(session, rundown_id=draft.id, actor=owner, name="ANA", role="guest")
    with pytest.raises(ValidationError):
        add_talent(session, rundown_id=draft.id, actor=owner, name="   ", role="guest")
    with pytest.raises(ValidationError):
        add_talent(session, rundown_id=draft.id, actor=owner, name="Zoe", role="producer")

    assert [member.name for member in draft.talent] == ["Ana"]


def test_update_talent_keeps_names_unique(session, owner, draft) -> None:
    ana, _ = add_talent(session, rundown_id=draft.id, actor=owner, name="Ana", role="host")
    add_talent(session, rundown_id=draft.id, actor=owner, name="Ben", role="guest")

    with pytest.raises(DuplicateName):
        update_talent(session, talent_id=ana.id, actor=owner, name="ben")

    member, reference = update_talent(
        session, talent_id=ana.id, actor=owner, name="ANA", role="expert", bio="Reporter"
    )
    assert member.name == "ANA"
    assert member.bio == "Reporter"
    assert reference.display == "@Guest(ANA)"


def test_tag_candidates_list_hosts_first_then_guests_by_name(session, owner, draft) -> None:
    add_talent(session, rundown_id=draft.id, actor=owner, name="Zed", role="guest")
    mia, _ = add_talent(session, rundown_id=draft.id, actor=owner, name="Mia", role="host")
    add_talent(session, rundown_id=draft.id, actor=owner, name="Al", role="co-host")
    add_talent(session, rundown_id=draft.id, actor=owner, name="Bo", role="expert")

    candidates = list_tag_candidates(session, rundown_id=draft.id, actor=owner)

    assert isinstance(candidates, GeneratorType)
    assert [ref.display for ref in candidates] == [
        "@Host(Al)",
        "@Host(Mia)",
        "@Guest(Bo)",
        "@Guest(Zed)",
    ]

    update_talent(session, talent_id=mia.id, actor=owner, name="Amy")
    again = [ref.name for ref in list_tag_candidates(session, rundown_id=draft.id, actor=owner)]
    assert again == ["Al", "Amy", "Bo", "Zed"]


def test_tag_candidates_require_view_access(session, stranger, teacher, draft) -> None:
    with pytest.raises(PermissionDenied):
        list_tag_candidates(session, rundown_id=draft.id, actor=stranger)

    assert list(list_tag_candidates(session, rundown_id=draft.id, actor=teacher)) == []


def test_tags_render_current_name_and_survive_removal(session, owner, draft) -> None:
    ana, ana_ref = add_talent(session, rundown_id=draft.id, actor=owner, name="Ana", role="host")
    story = insert_segment(session, rundown_id=draft.id, actor=owner, segment_type="story")
    update_segment(
        session,
        segment_id=story.id,
        actor=owner,
        content={"script": f"{ana_ref.token} opens", "questions": [f"Ask {ana_ref.token}"]},
    )

    payload = serialize_rundown(draft)
    assert payload["segments"][1]["content"] == {
        "script": "@Host(Ana) opens",
        "questions": ["Ask @Host(Ana)"],
    }
    assert payload["dangling_tags"] == []

    update_talent(session, talent_id=ana.id, actor=owner, name="Ana Ruiz")
    payload = serialize_rundown(draft)
    assert payload["segments"][1]["content"]["script"] == "@Host(Ana Ruiz) opens"

    remove_talent(session, talent_id=ana.id, actor=owner)
    payload = serialize_rundown(draft)
    assert payload["segments"][1]["content"]["script"] == "@Host(?) opens"
    assert payload["segments"][1]["raw_content"]["script"] == f"{ana_ref.token} opens"
    assert payload["dangling_tags"] == [ana_ref.token, ana_ref.token]


def test_tags_follow_a_role_change(session, owner, draft) -> None:
    jane, jane_ref = add_talent(session, rundown_id=draft.id, actor=owner, name="Jane", role="host")
    story = insert_segment(session, rundown_id=draft.id, actor=owner, segment_type="story")
    update_segment(
        session,
        segment_id=story.id,
        actor=owner,
        content={"script": f"Welcome {jane_ref.token}", "questions": []},
    )

    update_talent(session, talent_id=jane.id, actor=owner, role="guest")
    payload = serialize_rundown(draft)

    assert payload["segments"][1]["content"]["script"] == "Welcome @Guest(Jane)"
    assert payload["talent"][0]["tag"]["tag"] == "@Guest(Jane)"
    assert payload["segments"][1]["raw_content"]["script"] == f"Welcome {jane_ref.token}"


def test_talent_summary_counts_roles(session, owner, draft) -> None:
    add_talent(session, rundown_id=draft.id, actor=owner, name="Ana", role="host")
    add_talent(session, rundown_id=draft.id, actor=owner, name="Ben", role="guest")
    add_talent(session, rundown_id=draft.id, actor=owner, name="Cy", role="guest")

    summary = talent_summary(session, rundown_id=draft.id, actor=owner)

    assert summary == {
        "total": 3,
        "by_role": {"host": 1, "co-host": 0, "guest": 2, "expert": 0},
        "remaining_slots": 1,
    }


def test_talent_update_is_logged(session, owner, draft, caplog) -> None:
    ana, _ = add_talent(session, rundown_id=draft.id, actor=owner, name="Ana", role="host")

    caplog.clear()
    with caplog.at_level("INFO", logger="rundowns.talent"):
        update_talent(session, talent_id=ana.id, actor=owner, bio="Reporter")

    assert [record.getMessage() for record in caplog.records] == [
        f"talent updated rundown_id={draft.id} talent_id={ana.id} role=host actor_id={owner.id}"
    ]
