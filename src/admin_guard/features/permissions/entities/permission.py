"""Permission value objects for the admin-guard permissions feature.

A permission is a ``resource:action[:scope]`` triple. ``*:manage`` is the
universal wildcard; ``manage`` on a resource implies every action on it.
"""

from dataclasses import dataclass
from typing import Optional


WILDCARD_RESOURCE = "*"
MANAGE_ACTION = "manage"
SCOPE_ALL = "all"
SCOPE_OWN = "own"


@dataclass(frozen=True)
class Permission:
    """Immutable permission requirement or grant."""

    resource: str
    action: str
    scope: Optional[str] = None

    def __post_init__(self):
        """Validate resource and action are present."""
        if not self.resource or not self.resource.strip():
            raise ValueError("Permission resource must be non-empty")
        if not self.action or not self.action.strip():
            raise ValueError("Permission action must be non-empty")
        if ":" in self.resource or ":" in self.action:
            raise ValueError(f"Permission parts must not contain ':', got {self.resource}:{self.action}")

    @classmethod
    def parse(cls, value: str) -> "Permission":
        """Parse ``resource:action`` or ``resource:action:scope``."""
        parts = value.split(":")
        if len(parts) not in (2, 3):
            raise ValueError(f"Permission must be in format 'resource:action[:scope]', got: {value}")
        scope = parts[2] if len(parts) == 3 and parts[2] else None
        return cls(resource=parts[0], action=parts[1], scope=scope)

    @property
    def is_wildcard(self) -> bool:
        return self.resource == WILDCARD_RESOURCE and self.action == MANAGE_ACTION

    def grants(self, required: "Permission") -> bool:
        """Check whether this stored permission satisfies ``required``."""
        if self.is_wildcard:
            return True
        if self.resource != required.resource:
            return False
        if self.action != MANAGE_ACTION and self.action != required.action:
            return False
        return self._scope_compatible(required.scope)

    def _scope_compatible(self, required_scope: Optional[str]) -> bool:
        if required_scope is None:
            return True
        if self.scope == SCOPE_ALL:
            return True
        if self.scope == SCOPE_OWN and required_scope == SCOPE_OWN:
            return True
        return self.scope == required_scope

    def to_dict(self) -> dict:
        data = {"resource": self.resource, "action": self.action}
        if self.scope is not None:
            data["scope"] = self.scope
        return data

    def __str__(self) -> str:
        if self.scope:
            return f"{self.resource}:{self.action}:{self.scope}"
        return f"{self.resource}:{self.action}"


@dataclass(frozen=True)
class UserIdentity:
    """Authenticated user as supplied by the identity provider."""

    id: str
    role: str
    is_active: bool = True

    def __post_init__(self):
        if not self.id:
            raise ValueError("User id must be non-empty")
