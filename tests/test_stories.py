from __future__ import annotations

import pytest

from rundowns.aggregate import create_rundown, serialize_rundown
from rundowns.errors import AlreadyLinked, NotFound, PermissionDenied, ValidationError
from rundowns.stories import (
    bucket,
    link_story,
    move_story_link,
    unlink_story,
    update_story_notes,
)
from rundowns.timeline import insert_segment


def _ids(links) -> list[int]:
    return [link.source_story_id for link in links]


def test_link_story_snapshots_the_catalog_record(session, owner, draft, catalog) -> None:
    link = link_story(
        session, rundown_id=draft.id, actor=owner, story_id=42, catalog=catalog, notes="lead"
    )

    assert link.segment_id is None
    assert link.order_index == 0
    assert link.story_title == "Campus food pantry"
    assert link.story_description == "How the pantry keeps shelves full"
    assert link.story_questions == ["Who started it?", "What is most needed?"]
    assert link.story_interviewees == ["Dana Ortiz"]
    assert link.story_tags == ["community", "food"]
    assert link.notes == "lead"


def test_linking_the_same_story_twice_fails(session, owner, draft, catalog) -> None:
    first = link_story(session, rundown_id=draft.id, actor=owner, story_id=42, catalog=catalog)

    with pytest.raises(AlreadyLinked):
        link_story(session, rundown_id=draft.id, actor=owner, story_id=42, catalog=catalog)

    assert draft.story_links == [first]
    assert first.story_title == "Campus food pantry"


def test_link_story_requires_approved_story_and_own_segment(
    session, owner, draft, catalog
) -> None:
    other = create_rundown(session, actor=owner, title="Other episode")
    foreign = insert_segment(session, rundown_id=other.id, actor=owner, segment_type="story")

    with pytest.raises(NotFound):
        link_story(session, rundown_id=draft.id, actor=owner, story_id=999, catalog=catalog)
    with pytest.raises(NotFound):
        link_story(
            session,
            rundown_id=draft.id,
            actor=owner,
            story_id=42,
            catalog=catalog,
            segment_id=foreign.id,
        )

    assert draft.story_links == []


def test_links_append_to_the_end_of_their_bucket(session, owner, draft, catalog) -> None:
    story = insert_segment(session, rundown_id=draft.id, actor=owner, segment_type="story")
    for story_id in [42, 7]:
        link_story(
            session,
            rundown_id=draft.id,
            actor=owner,
            story_id=story_id,
            catalog=catalog,
            segment_id=story.id,
        )
    link_story(session, rundown_id=draft.id, actor=owner, story_id=9, catalog=catalog)

    assert _ids(bucket(draft, story.id)) == [42, 7]
    assert [link.order_index for link in bucket(draft, story.id)] == [0, 1]
    assert _ids(bucket(draft, None)) == [9]


def test_move_story_link_clamps_and_renumbers_both_buckets(
    session, owner, draft, catalog
) -> None:
    story = insert_segment(session, rundown_id=draft.id, actor=owner, segment_type="story")
    pantry = link_story(session, rundown_id=draft.id, actor=owner, story_id=42, catalog=catalog)
    link_story(session, rundown_id=draft.id, actor=owner, story_id=7, catalog=catalog)
    library = link_story(
        session,
        rundown_id=draft.id,
        actor=owner,
        story_id=9,
        catalog=catalog,
        segment_id=story.id,
    )

    move_story_link(session, link_id=pantry.id, actor=owner, segment_id=story.id, new_index=10)

    assert _ids(bucket(draft, story.id)) == [9, 42]
    assert [link.order_index for link in bucket(draft, story.id)] == [0, 1]
    assert _ids(bucket(draft, None)) == [7]
    assert bucket(draft, None)[0].order_index == 0

    move_story_link(session, link_id=library.id, actor=owner, segment_id=story.id, new_index=1)
    assert _ids(bucket(draft, story.id)) == [42, 9]

    with pytest.raises(ValidationError):
        move_story_link(session, link_id=library.id, actor=owner, segment_id=None, new_index=-1)


def test_unlink_story_renumbers_the_bucket(session, owner, draft, catalog) -> None:
    first = link_story(session, rundown_id=draft.id, actor=owner, story_id=42, catalog=catalog)
    link_story(session, rundown_id=draft.id, actor=owner, story_id=7, catalog=catalog)
    link_story(session, rundown_id=draft.id, actor=owner, story_id=9, catalog=catalog)

    unlink_story(session, link_id=first.id, actor=owner)

    remaining = bucket(draft, None)
    assert _ids(remaining) == [7, 9]
    assert [link.order_index for link in remaining] == [0, 1]
    assert 42 in catalog.records


def test_update_story_notes_and_serialized_grouping(session, owner, draft, catalog) -> None:
    story = insert_segment(session, rundown_id=draft.id, actor=owner, segment_type="story")
    link = link_story(
        session,
        rundown_id=draft.id,
        actor=owner,
        story_id=42,
        catalog=catalog,
        segment_id=story.id,
    )
    link_story(session, rundown_id=draft.id, actor=owner, story_id=7, catalog=catalog)

    update_story_notes(session, link_id=link.id, actor=owner, notes="open with the pantry")
    payload = serialize_rundown(draft)

    assert [item["source_story_id"] for item in payload["segments"][1]["stories"]] == [42]
    assert payload["segments"][1]["stories"][0]["notes"] == "open with the pantry"
    assert [item["source_story_id"] for item in payload["unassigned_stories"]] == [7]


def test_story_links_follow_the_edit_guard(session, stranger, draft, catalog) -> None:
    with pytest.raises(PermissionDenied):
        link_story(session, rundown_id=draft.id, actor=stranger, story_id=42, catalog=catalog)


def test_story_notes_update_is_logged(session, owner, draft, catalog, caplog) -> None:
    link = link_story(session, rundown_id=draft.id, actor=owner, story_id=7, catalog=catalog)

    caplog.clear()
    with caplog.at_level("INFO", logger="rundowns.stories"):
        update_story_notes(session, link_id=link.id, actor=owner, notes="cut to 90s")

    assert [record.getMessage() for record in caplog.records] == [
        f"story notes updated rundown_id={draft.id} link_id={link.id} actor_id={owner.id}"
    ]
