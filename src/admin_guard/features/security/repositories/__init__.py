"""Security event repositories."""

from .security_event_repository import AsyncpgSecurityEventRepository

__all__ = ["AsyncpgSecurityEventRepository"]
