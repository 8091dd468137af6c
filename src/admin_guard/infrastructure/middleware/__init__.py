"""HTTP middleware for admin-guard."""

from .access_middleware import AccessControlMiddleware, get_client_ip

__all__ = [
    "AccessControlMiddleware",
    "get_client_ip",
]
