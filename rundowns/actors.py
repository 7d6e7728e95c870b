from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable
from uuid import UUID

CAP_REVIEW = "rundown:review"
CAP_ADMIN = "rundown:admin"

ROLE_ALIASES = {"amitrace_admin": "admin"}

ROLE_CAPABILITIES: dict[str, frozenset[str]] = {
    "student": frozenset(),
    "teacher": frozenset({CAP_REVIEW}),
    "admin": frozenset({CAP_REVIEW, CAP_ADMIN}),
}


@dataclass(frozen=True)
class Actor:
    """Authenticated caller as handed over by the auth layer."""

    id: UUID
    role: str = "student"
    capabilities: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_role(cls, actor_id: UUID, role: str, extra: Iterable[str] = ()) -> "Actor":
        role = ROLE_ALIASES.get(role, role)
        granted = ROLE_CAPABILITIES.get(role, frozenset()) | {cap for cap in extra if cap}
        return cls(id=actor_id, role=role, capabilities=frozenset(granted))

    @property
    def can_review(self) -> bool:
        return CAP_REVIEW in self.capabilities or self.is_admin

    @property
    def is_admin(self) -> bool:
        return CAP_ADMIN in self.capabilities
