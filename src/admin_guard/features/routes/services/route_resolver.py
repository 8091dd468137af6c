"""Route permission resolution.

Rules are tried in a fixed specificity order: exact path, then suffix rules
(which also carry a prefix), then prefix-only rules from the longest prefix
down. Within a tier the first declared rule wins. A path that matches
nothing requires no permission, i.e. any authenticated user may reach it
unless it is public.
"""

import logging
from collections import Counter
from typing import Iterable, List, Optional, Sequence

from ..entities.route_rule import HTTP_METHODS, MatchKind, RouteRule, normalize_path
from ..entities.route_table import DEFAULT_ROUTE_RULES
from ...permissions.entities.permission import Permission

logger = logging.getLogger(__name__)


class RoutePermissionResolver:
    """Maps a path and method to the permissions it requires."""

    def __init__(self, rules: Optional[Iterable[RouteRule]] = None):
        self._rules: List[RouteRule] = list(DEFAULT_ROUTE_RULES if rules is None else rules)

        self._exact = [r for r in self._rules if r.match is MatchKind.EXACT]
        self._suffix = [r for r in self._rules if r.match is MatchKind.SUFFIX]
        # Stable sort keeps declaration order between equal prefixes
        self._prefix = sorted(
            (r for r in self._rules if r.match is MatchKind.PREFIX),
            key=lambda r: len(r.prefix),
            reverse=True,
        )

        errors = self.validate_rules()
        for error in errors:
            logger.warning(f"Route table problem: {error}")

    @property
    def rules(self) -> Sequence[RouteRule]:
        return tuple(self._rules)

    def get_rule(self, path: str, method: Optional[str] = None) -> Optional[RouteRule]:
        """Return the most specific rule for ``path`` and ``method``."""
        normalized = normalize_path(path)
        for tier in (self._exact, self._suffix, self._prefix):
            for rule in tier:
                if rule.matches_path(normalized) and rule.allows_method(method):
                    return rule
        return None

    def get_route_permissions(self, path: str, method: Optional[str] = None) -> List[Permission]:
        rule = self.get_rule(path, method)
        return list(rule.permissions) if rule else []

    def is_public_route(self, path: str) -> bool:
        rule = self.get_rule(path)
        return rule is not None and rule.is_public

    def requires_auth_only(self, path: str) -> bool:
        """True for routes that need a signed-in user but no permission."""
        rule = self.get_rule(path)
        return rule is not None and rule.auth_only and not rule.permissions

    def get_routes_by_resource(self, resource: str) -> List[RouteRule]:
        return [r for r in self._rules if any(p.resource == resource for p in r.permissions)]

    def get_routes_by_action(self, action: str) -> List[RouteRule]:
        return [r for r in self._rules if any(p.action == action for p in r.permissions)]

    def get_public_routes(self) -> List[RouteRule]:
        return [r for r in self._rules if r.is_public]

    def get_protected_routes(self) -> List[RouteRule]:
        return [r for r in self._rules if not r.is_public and r.permissions]

    def validate_rules(self) -> List[str]:
        """Return a description of every inconsistent rule."""
        errors = []
        seen = Counter()
        for rule in self._rules:
            for method in rule.methods or ("*",):
                seen[(rule.pattern, method)] += 1

            invalid = [m for m in rule.methods if m not in HTTP_METHODS]
            if invalid:
                errors.append(f"{rule.pattern}: invalid HTTP methods {invalid}")
            if rule.is_public and rule.permissions:
                errors.append(f"{rule.pattern}: public route must not require permissions")
            if rule.is_public and rule.auth_only:
                errors.append(f"{rule.pattern}: route cannot be both public and auth-only")
            if not rule.pattern.startswith("/"):
                errors.append(f"{rule.pattern}: pattern must start with '/'")

        for (pattern, method), count in seen.items():
            if count > 1:
                errors.append(f"{pattern}: {count} rules for method {method}")
        return errors
