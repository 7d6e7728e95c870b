from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable
from uuid import UUID

from db.models import RundownTalent

HOST_ROLES = ("host", "co-host")
GUEST_ROLES = ("guest", "expert")

# stored form: @[host:<talent uuid>] / @[guest:<talent uuid>]
TAG_TOKEN = re.compile(r"@\[(host|guest):([0-9a-fA-F-]{32,36})\]")


def tag_kind(role: str) -> str:
    return "host" if role in HOST_ROLES else "guest"


@dataclass(frozen=True)
class TagReference:
    kind: str
    talent_id: UUID
    name: str

    @classmethod
    def for_talent(cls, talent: RundownTalent) -> "TagReference":
        return cls(kind=tag_kind(talent.role), talent_id=talent.id, name=talent.name)

    @property
    def token(self) -> str:
        return f"@[{self.kind}:{self.talent_id}]"

    @property
    def display(self) -> str:
        return _display(self.kind, self.name)

    def as_dict(self) -> dict:
        return {
            "kind": self.kind,
            "talent_id": str(self.talent_id),
            "name": self.name,
            "tag": self.display,
            "token": self.token,
        }


def _display(kind: str, name: str) -> str:
    return f"@{kind.capitalize()}({name})"


def _parse_id(raw: str) -> UUID | None:
    try:
        return UUID(raw)
    except ValueError:
        return None


def render_tags(text: str, talent: Iterable[RundownTalent]) -> str:
    """Resolve stored tag tokens to display text.

    Known talent render with their current role and name. Tokens pointing at
    talent that no longer exists keep the stored kind and render as
    ``@Host(?)`` / ``@Guest(?)``.
    """
    members = {member.id: member for member in talent}

    def _replace(match: re.Match) -> str:
        kind, raw_id = match.groups()
        member = members.get(_parse_id(raw_id))
        if member is None:
            return _display(kind, "?")
        return _display(tag_kind(member.role), member.name)

    return TAG_TOKEN.sub(_replace, text)


def render_content(content: dict[str, Any], talent: Iterable[RundownTalent]) -> dict[str, Any]:
    members = list(talent)
    rendered: dict[str, Any] = {}
    for key, value in content.items():
        if isinstance(value, str):
            rendered[key] = render_tags(value, members)
        elif isinstance(value, list):
            rendered[key] = [
                render_tags(item, members) if isinstance(item, str) else item for item in value
            ]
        else:
            rendered[key] = value
    return rendered


def find_dangling_tags(texts: Iterable[str], talent: Iterable[RundownTalent]) -> list[str]:
    known = {member.id for member in talent}
    dangling: list[str] = []
    for text in texts:
        for match in TAG_TOKEN.finditer(text):
            if _parse_id(match.group(2)) not in known:
                dangling.append(match.group(0))
    return dangling
