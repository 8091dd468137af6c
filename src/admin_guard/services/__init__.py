"""Application services composing the admin-guard features."""

from .access_control import AccessControlService, AccessDecision, RequestContext

__all__ = [
    "AccessControlService",
    "AccessDecision",
    "RequestContext",
]
