"""admin-guard - RBAC enforcement and security monitoring for admin applications.

Provides permission evaluation with decision caching, route permission
resolution, security event monitoring with threat detection and IP blocking,
and CSRF token management. Call ``setup_logging()`` once at startup and build
the services with ``create_guard()``.
"""

from .__version__ import __version__

from .config import GuardSettings, get_settings, setup_logging, Role, Severity, SecurityEventType

from .core.exceptions import (
    # Base Exception
    AdminGuardError,

    # Access control
    UnauthorizedError,
    ForbiddenError,
    RateLimitedError,
    IPBlockedError,
    CSRFInvalidError,
    InternalError,

    # Utility Functions
    create_error_response,
    get_http_status_code,
)

from .features.permissions import Permission, UserIdentity, RolePermissionTable, PermissionEvaluator
from .features.cache import PermissionCache, MemoryPermissionCacheBackend, RedisPermissionCacheBackend
from .features.routes import RouteRule, RoutePermissionResolver
from .features.security import SecurityEvent, IPBlockEntry, SecurityMonitor, AsyncpgSecurityEventRepository
from .features.csrf import CSRFTokenManager, CSRFValidationResult

from .services import AccessControlService, AccessDecision, RequestContext
from .infrastructure import Guard, create_guard, AccessControlMiddleware

__all__ = [
    "__version__",

    # Configuration
    "GuardSettings",
    "get_settings",
    "setup_logging",
    "Role",
    "Severity",
    "SecurityEventType",

    # Exceptions
    "AdminGuardError",
    "UnauthorizedError",
    "ForbiddenError",
    "RateLimitedError",
    "IPBlockedError",
    "CSRFInvalidError",
    "InternalError",
    "create_error_response",
    "get_http_status_code",

    # Permissions
    "Permission",
    "UserIdentity",
    "RolePermissionTable",
    "PermissionEvaluator",

    # Cache
    "PermissionCache",
    "MemoryPermissionCacheBackend",
    "RedisPermissionCacheBackend",

    # Routes
    "RouteRule",
    "RoutePermissionResolver",

    # Security
    "SecurityEvent",
    "IPBlockEntry",
    "SecurityMonitor",
    "AsyncpgSecurityEventRepository",

    # CSRF
    "CSRFTokenManager",
    "CSRFValidationResult",

    # Services
    "AccessControlService",
    "AccessDecision",
    "RequestContext",
    "Guard",
    "create_guard",
    "AccessControlMiddleware",
]
