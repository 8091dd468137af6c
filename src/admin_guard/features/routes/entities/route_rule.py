"""Route rule value object.

Rules are written with the familiar ``/admin/products/[id]/edit`` notation and
compiled into one of three deliberately simple match kinds:

- ``exact``: the normalized path equals the pattern;
- ``suffix``: the path starts with the text before ``[param]`` and ends with
  the text after it, with a non-empty segment in between;
- ``prefix``: the path starts with the text before a trailing ``[param]``
  and continues past it.

No regular expressions are involved, so a route table can be audited by
reading it.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Tuple, Union

from ...permissions.entities.permission import Permission


HTTP_METHODS = frozenset({"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"})

_PARAM_SEGMENT = re.compile(r"\[[^\]/]+\]")


class MatchKind(str, Enum):
    """How a rule pattern is compared against a path."""
    EXACT = "exact"
    SUFFIX = "suffix"
    PREFIX = "prefix"


def normalize_path(path: str) -> str:
    """Drop the query string and any trailing slash except on the root."""
    path = path.split("?", 1)[0].split("#", 1)[0] or "/"
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


@dataclass(frozen=True)
class RouteRule:
    """Permissions required by one route, optionally per HTTP method."""

    pattern: str
    permissions: Tuple[Permission, ...] = ()
    methods: Tuple[str, ...] = ()
    is_public: bool = False
    auth_only: bool = False
    description: str = ""
    match: MatchKind = field(init=False)
    prefix: str = field(init=False)
    suffix: Optional[str] = field(init=False)

    def __post_init__(self):
        params = _PARAM_SEGMENT.findall(self.pattern)
        if len(params) > 1:
            raise ValueError(f"Route pattern supports at most one dynamic segment: {self.pattern}")

        if not params:
            match, prefix, suffix = MatchKind.EXACT, normalize_path(self.pattern), None
        else:
            before, after = _PARAM_SEGMENT.split(self.pattern, maxsplit=1)
            if after:
                match, prefix, suffix = MatchKind.SUFFIX, before, after
            else:
                match, prefix, suffix = MatchKind.PREFIX, before, None

        object.__setattr__(self, "match", match)
        object.__setattr__(self, "prefix", prefix)
        object.__setattr__(self, "suffix", suffix)
        object.__setattr__(self, "methods", tuple(m.upper() for m in self.methods))

    @classmethod
    def build(
        cls,
        pattern: str,
        permissions: Iterable[Union[Permission, str]] = (),
        methods: Iterable[str] = (),
        is_public: bool = False,
        auth_only: bool = False,
        description: str = "",
    ) -> "RouteRule":
        """Build a rule from ``resource:action[:scope]`` strings."""
        return cls(
            pattern=pattern,
            permissions=tuple(p if isinstance(p, Permission) else Permission.parse(p) for p in permissions),
            methods=tuple(methods),
            is_public=is_public,
            auth_only=auth_only,
            description=description,
        )

    def matches_path(self, path: str) -> bool:
        """Compare an already-normalized path against this rule."""
        if self.match is MatchKind.EXACT:
            return path == self.prefix
        if not path.startswith(self.prefix):
            return False
        if self.match is MatchKind.PREFIX:
            return len(path) > len(self.prefix)
        return (
            path.endswith(self.suffix)
            and len(path) > len(self.prefix) + len(self.suffix)
        )

    def allows_method(self, method: Optional[str]) -> bool:
        """Rules without methods apply to every method."""
        return method is None or not self.methods or method.upper() in self.methods

    def to_dict(self) -> dict:
        return {
            "pattern": self.pattern,
            "match": self.match.value,
            "methods": list(self.methods),
            "permissions": [p.to_dict() for p in self.permissions],
            "is_public": self.is_public,
            "auth_only": self.auth_only,
            "description": self.description,
        }
