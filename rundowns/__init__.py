from .actors import Actor
from .aggregate import (
    create_rundown,
    delete_rundown,
    get_rundown,
    list_rundowns,
    serialize_rundown,
    update_rundown_details,
)
from .errors import RundownError
from .stories import link_story, move_story_link, unlink_story, update_story_notes
from .talent import add_talent, list_tag_candidates, remove_talent, talent_summary, update_talent
from .timeline import (
    duplicate_segment,
    insert_segment,
    remove_segment,
    reorder_segment,
    update_duration,
    update_segment,
)
from .workflow import approve_rundown, reject_rundown, reopen_rundown, submit_rundown

__all__ = [
    "Actor",
    "RundownError",
    "add_talent",
    "approve_rundown",
    "create_rundown",
    "delete_rundown",
    "duplicate_segment",
    "get_rundown",
    "insert_segment",
    "link_story",
    "list_rundowns",
    "list_tag_candidates",
    "move_story_link",
    "reject_rundown",
    "remove_segment",
    "remove_talent",
    "reopen_rundown",
    "reorder_segment",
    "serialize_rundown",
    "submit_rundown",
    "talent_summary",
    "unlink_story",
    "update_duration",
    "update_rundown_details",
    "update_segment",
    "update_story_notes",
    "update_talent",
]
