"""Configuration for admin-guard."""

from .constants import (
    Role,
    Severity,
    SecurityEventType,
    DENIAL_EVENT_TYPES,
    ALERT_EVENT_TYPES,
    STATE_CHANGING_METHODS,
    UNKNOWN_IP,
)
from .settings import GuardSettings, get_settings
from .logging_config import LoggingConfig, LogFormat, setup_logging

__all__ = [
    # Constants
    "Role",
    "Severity",
    "SecurityEventType",
    "DENIAL_EVENT_TYPES",
    "ALERT_EVENT_TYPES",
    "STATE_CHANGING_METHODS",
    "UNKNOWN_IP",

    # Settings
    "GuardSettings",
    "get_settings",

    # Logging
    "LoggingConfig",
    "LogFormat",
    "setup_logging",
]
