"""CSRF services."""

from .csrf_token_manager import CSRFTokenManager

__all__ = ["CSRFTokenManager"]
