import uuid
from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    RECRUITER = "recruiter"
    MANAGER = "manager"
    DIRECTOR = "director"


class Capability(str, Enum):
    # Stage changes wait for an explicit approve/dismiss and notify the owner.
    APPROVE_STAGE_CHANGES = "approve_stage_changes"
    # Review decisions enqueue recruiter-facing notifications.
    NOTIFY_ON_REVIEW = "notify_on_review"
    REVIEW_CANDIDATES = "review_candidates"
    VIEW_TEAM_ACTIVITY = "view_team_activity"
    MANAGE_RECRUITERS = "manage_recruiters"


ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.RECRUITER: frozenset(),
    Role.MANAGER: frozenset({Capability.REVIEW_CANDIDATES, Capability.VIEW_TEAM_ACTIVITY}),
    Role.DIRECTOR: frozenset(Capability),
}


def parse_role(value: str | None) -> Role:
    """Map a stored role label onto the enumeration, defaulting to recruiter."""
    if not value:
        return Role.RECRUITER
    try:
        return Role(value.strip().lower())
    except ValueError:
        return Role.RECRUITER


@dataclass(frozen=True)
class Identity:
    """The authenticated recruiter a session acts as."""

    id: uuid.UUID
    email: str
    name: str
    role: Role

    def can(self, capability: Capability) -> bool:
        return capability in ROLE_CAPABILITIES[self.role]

    @property
    def is_director_or_manager(self) -> bool:
        return self.role in (Role.DIRECTOR, Role.MANAGER)
