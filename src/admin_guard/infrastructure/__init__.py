"""Infrastructure wiring for admin-guard: service factory and HTTP middleware."""

from .factory import Guard, create_guard
from .middleware import AccessControlMiddleware, get_client_ip

__all__ = [
    "Guard",
    "create_guard",
    "AccessControlMiddleware",
    "get_client_ip",
]
