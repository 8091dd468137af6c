"""Infrastructure exceptions for admin-guard.

Failures of configuration, cache backends and the persistence store.
"""

from .base import AdminGuardError


class InternalError(AdminGuardError):
    """Base class for internal failures."""
    default_code = "INTERNAL_ERROR"


class ConfigurationError(InternalError):
    """Raised when configuration data is invalid."""
    default_code = "CONFIGURATION_ERROR"
    default_message = "Invalid configuration"


class CacheError(InternalError):
    """Raised when a cache backend operation fails."""
    default_code = "CACHE_ERROR"
    default_message = "Cache operation failed"


class PersistenceError(InternalError):
    """Raised when the security event store fails."""
    default_code = "PERSISTENCE_ERROR"
    default_message = "Persistence operation failed"
