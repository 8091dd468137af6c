"""Settings for admin-guard.

All values can be overridden through environment variables prefixed with
``ADMIN_GUARD_`` or through a ``.env`` file.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GuardSettings(BaseSettings):
    """Runtime configuration for the access-control and security services."""

    model_config = SettingsConfigDict(
        env_prefix="ADMIN_GUARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Permission cache
    cache_backend: str = Field(default="memory", description="Cache backend: memory or redis")
    cache_ttl_ms: int = Field(default=300_000, description="Permission decision TTL in milliseconds")
    cache_max_entries: int = Field(default=10_000, ge=1, description="Max in-process cache entries")
    cache_cleanup_interval_seconds: float = Field(default=60.0, gt=0, description="Expired entry sweep interval")
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis URL for the distributed cache")
    redis_key_prefix: str = Field(default="admin_guard", description="Prefix for Redis cache keys")

    # Threat detection
    brute_force_threshold: int = Field(default=5, ge=1, description="Failed logins per IP before a brute force alert")
    auto_block_threshold: int = Field(default=10, ge=1, description="Failed logins per identity before an IP is blocked")
    suspicious_ip_threshold: int = Field(default=5, ge=1, description="Denials per IP before a suspicious activity alert")
    failure_window_seconds: float = Field(default=900.0, gt=0, description="Sliding window for failure counters")
    alert_cooldown_seconds: float = Field(default=300.0, ge=0, description="Minimum gap between identical alerts")
    stats_window_seconds: float = Field(default=86_400.0, gt=0, description="Observation window for threat level")
    max_events: int = Field(default=10_000, ge=1, description="Max security events kept in memory")
    monitor_cleanup_interval_seconds: float = Field(default=300.0, gt=0, description="Stale counter sweep interval")
    event_queue_size: int = Field(default=1000, ge=1, description="Pending persistence writes before dropping")
    log_granted_access: bool = Field(default=False, description="Also record granted route access as events")
    sensitive_prefixes: List[str] = Field(
        default_factory=lambda: ["/api/admin/", "/api/users/", "/admin/security", "/admin/database"],
        description="Path prefixes whose access raises an informational alert",
    )

    # CSRF
    csrf_secret: str = Field(default="change-me-in-production", description="HMAC secret for CSRF tokens")
    csrf_max_age_seconds: int = Field(default=86_400, ge=1, description="CSRF token lifetime")
    csrf_cleanup_interval_seconds: float = Field(default=3600.0, gt=0, description="CSRF store sweep interval")

    # HTTP
    login_path: str = Field(default="/auth/login", description="Where denied web requests are redirected")

    # Persistence
    database_dsn: Optional[str] = Field(default=None, description="PostgreSQL DSN for security event persistence")
    database_schema: str = Field(default="admin", description="Schema holding security tables")

    @field_validator("cache_backend")
    @classmethod
    def validate_cache_backend(cls, v: str) -> str:
        """Validate cache backend name."""
        v = v.lower()
        if v not in ("memory", "redis"):
            raise ValueError(f"Invalid cache backend: {v}. Expected 'memory' or 'redis'")
        return v

    @field_validator("cache_ttl_ms")
    @classmethod
    def validate_cache_ttl(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("cache_ttl_ms must be positive")
        return v

    @field_validator("csrf_secret")
    @classmethod
    def validate_csrf_secret(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("csrf_secret must not be empty")
        return v

    @property
    def use_distributed_cache(self) -> bool:
        return self.cache_backend == "redis"


@lru_cache()
def get_settings() -> GuardSettings:
    """Get cached settings instance."""
    return GuardSettings()
