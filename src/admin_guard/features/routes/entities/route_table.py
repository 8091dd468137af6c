"""Default route permission table for the admin application."""

from typing import List

from .route_rule import RouteRule

R = RouteRule.build

PUBLIC_ROUTE_RULES: List[RouteRule] = [
    R("/", is_public=True, description="Home page"),
    R("/auth/login", is_public=True, description="Login page"),
    R("/auth/register", is_public=True, description="Registration page"),
    R("/auth/password-reset", is_public=True, description="Password reset page"),
    R("/api/auth/[...nextauth]", methods=["GET", "POST"], is_public=True, description="Auth provider callbacks"),
    R("/api/auth/login", methods=["POST"], is_public=True, description="Login API"),
    R("/api/auth/register", methods=["POST"], is_public=True, description="Registration API"),
    R("/api/auth/password-reset", methods=["POST"], is_public=True, description="Password reset API"),
    R("/api/auth/password-reset/verify", methods=["POST"], is_public=True, description="Password reset verification"),
    R("/api/public/categories", methods=["GET"], is_public=True, description="Public categories"),
    R("/api/public/products", methods=["GET"], is_public=True, description="Public products"),
    R("/api/public/products/[slug]", methods=["GET"], is_public=True, description="Public product detail"),
    R("/api/health", methods=["GET"], is_public=True, description="Health check"),
    R("/api/csrf-token", methods=["GET"], is_public=True, description="CSRF token issuance"),
]

PAGE_ROUTE_RULES: List[RouteRule] = [
    R("/admin", ["admin:read"], description="Admin dashboard"),
    R("/admin/activity", ["audit:read"], description="Activity log"),
    R("/admin/analytics", ["analytics:read"], description="Analytics"),
    R("/admin/analytics/search", ["analytics:read"], description="Search analytics"),
    R("/admin/api", ["api-keys:read"], description="API management"),
    R("/admin/api/analytics", ["api-keys:read"], description="API analytics"),
    R("/admin/api/documentation", ["api-keys:read"], description="API documentation"),
    R("/admin/api/keys", ["api-keys:read"], description="API keys"),
    R("/admin/api/keys/new", ["api-keys:create"], description="Create API key"),
    R("/admin/backup", ["system:manage"], description="Backups"),
    R("/admin/database", ["system:manage"], description="Database administration"),
    R("/admin/performance", ["monitoring:read"], description="Performance monitoring"),
    R("/admin/security", ["security:read"], description="Security dashboard"),
    R("/admin/users", ["users:read"], description="User management"),
    R("/admin/users/[id]", ["users:read"], description="User detail"),
    R("/admin/categories", ["categories:read"], description="Categories"),
    R("/admin/pages", ["pages:read"], description="Pages"),
    R("/admin/pages/new", ["pages:create"], description="Create page"),
    R("/admin/pages/[id]", ["pages:read"], description="Page detail"),
    R("/admin/pages/[id]/edit", ["pages:update"], description="Edit page"),
    R("/admin/products", ["products:read"], description="Products"),
    R("/admin/products/new", ["products:create"], description="Create product"),
    R("/admin/products/[id]", ["products:read"], description="Product detail"),
    R("/admin/products/[id]/edit", ["products:update"], description="Edit product"),
    R("/admin/workflow", ["workflow:read"], description="Workflow"),
    R("/media", ["media:read"], description="Media library"),
    R("/profile", ["profile:read:own"], auth_only=True, description="Own profile"),
    R("/settings", ["profile:update:own"], auth_only=True, description="Own settings"),
    R("/users", ["users:read"], description="Users"),
    R("/orders", ["orders:read"], description="Orders"),
]

API_ROUTE_RULES: List[RouteRule] = [
    # Session
    R("/api/auth/me", methods=["GET"], auth_only=True, description="Current user"),
    R("/api/auth/token", methods=["GET", "POST"], auth_only=True, description="Session token"),

    # Administration
    R("/api/admin/api-keys", ["api-keys:read"], ["GET", "POST"]),
    R("/api/admin/api-keys/[id]", ["api-keys:update"], ["GET", "PUT", "DELETE"]),
    R("/api/admin/api-keys/[id]/stats", ["api-keys:read"], ["GET"]),
    R("/api/admin/audit-logs", ["audit:read"], ["GET"]),
    R("/api/admin/audit-logs/retention", ["audit:manage"], ["POST", "DELETE"]),
    R("/api/admin/audit-logs/stats", ["audit:read"], ["GET"]),
    R("/api/admin/backup", ["system:manage"], ["GET", "POST"]),
    R("/api/admin/backup/restore", ["system:manage"], ["POST"]),
    R("/api/admin/backup/status/[id]", ["system:read"], ["GET"]),
    R("/api/admin/data-retention/cleanup", ["system:manage"], ["POST"]),
    R("/api/admin/data-retention/preview", ["system:read"], ["GET"]),
    R("/api/admin/database/config", ["system:manage"], ["GET", "PUT"]),
    R("/api/admin/database/health", ["system:read"], ["GET"]),
    R("/api/admin/monitoring", ["monitoring:read"], ["GET"]),
    R("/api/admin/performance", ["monitoring:read"], ["GET"]),
    R("/api/admin/performance/metrics", ["monitoring:read"], ["GET"]),
    R("/api/admin/performance/slow-queries", ["monitoring:read"], ["GET"]),
    R("/api/admin/security/alerts", ["security:read"], ["GET"]),
    R("/api/admin/security/events", ["security:read"], ["GET"]),
    R("/api/admin/security/events/[id]", ["security:read"], ["GET"]),
    R("/api/admin/security/events/[id]/resolve", ["security:manage"], ["POST"]),
    R("/api/admin/security/stats", ["security:read"], ["GET"]),
    R("/api/admin/security/unblock-ip", ["security:manage"], ["POST"]),
    R("/api/admin/two-factor/enforce", ["security:manage"], ["POST"]),
    R("/api/admin/users", ["users:read"], ["GET", "POST"]),
    R("/api/admin/users/[id]", ["users:read"], ["GET", "PUT", "DELETE"]),
    R("/api/admin/users/[id]/security", ["users:manage"], ["GET", "PUT"]),
    R("/api/admin/users/bulk", ["users:manage"], ["POST"]),

    # Analytics
    R("/api/analytics", ["analytics:read"], ["GET"]),
    R("/api/analytics/dashboard", ["analytics:read"], ["GET"]),
    R("/api/analytics/export", ["analytics:read"], ["GET", "POST"]),

    # Content
    R("/api/categories", ["categories:read"], ["GET"]),
    R("/api/categories", ["categories:create"], ["POST"]),
    R("/api/categories/[id]", ["categories:read"], ["GET"]),
    R("/api/categories/[id]", ["categories:update"], ["PUT"]),
    R("/api/categories/[id]", ["categories:delete"], ["DELETE"]),
    R("/api/categories/reorder", ["categories:update"], ["POST"]),
    R("/api/media", ["media:read"], ["GET"]),
    R("/api/media", ["media:create"], ["POST"]),
    R("/api/media/[id]", ["media:read"], ["GET"]),
    R("/api/media/[id]", ["media:update"], ["PUT"]),
    R("/api/media/[id]", ["media:delete"], ["DELETE"]),
    R("/api/pages", ["pages:read"], ["GET"]),
    R("/api/pages", ["pages:create"], ["POST"]),
    R("/api/pages/[id]", ["pages:read"], ["GET"]),
    R("/api/pages/[id]", ["pages:update"], ["PUT"]),
    R("/api/pages/[id]", ["pages:delete"], ["DELETE"]),
    R("/api/pages/[id]/preview", ["pages:read"], ["GET"]),
    R("/api/pages/preview", ["pages:read"], ["POST"]),
    R("/api/pages/templates", ["pages:read"], ["GET"]),
    R("/api/products", ["products:read"], ["GET"]),
    R("/api/products", ["products:create"], ["POST"]),
    R("/api/products/[id]", ["products:read"], ["GET"]),
    R("/api/products/[id]", ["products:update"], ["PUT"]),
    R("/api/products/[id]", ["products:delete"], ["DELETE"]),
    R("/api/products/[id]/media", ["products:update"], ["GET", "POST", "DELETE"]),

    # Notifications
    R("/api/notifications", ["notifications:read:own"], ["GET", "POST"]),
    R("/api/notifications/[id]", ["notifications:update:own"], ["GET", "PUT", "DELETE"]),

    # Search and workflow
    R("/api/search", ["search:read"], ["GET", "POST"]),
    R("/api/search/analytics", ["analytics:read"], ["GET"]),
    R("/api/search/suggestions", ["search:read"], ["GET"]),
    R("/api/workflow", ["workflow:read"], ["GET", "POST"]),
    R("/api/workflow/revisions", ["workflow:read"], ["GET"]),

    # Users
    R("/api/user/preferences", ["profile:update:own"], ["GET", "PUT"]),
    R("/api/users", ["users:read"], ["GET"]),
    R("/api/users/[id]", ["users:read"], ["GET", "PUT"]),
    R("/api/users/[id]/avatar", ["profile:update:own"], ["POST", "DELETE"]),
    R("/api/users/[id]/deactivate", ["users:manage"], ["POST"]),
    R("/api/users/[id]/export", ["users:read"], ["GET"]),
    R("/api/users/[id]/notification-preferences", ["profile:update:own"], ["GET", "PUT"]),
    R("/api/users/[id]/preferences", ["profile:update:own"], ["GET", "PUT"]),
    R("/api/users/[id]/security", ["profile:update:own"], ["GET", "PUT"]),
    R("/api/users/[id]/security/monitoring", ["security:read"], ["GET"]),
    R("/api/users/[id]/sessions", ["profile:read:own"], ["GET", "DELETE"]),
    R("/api/users/[id]/two-factor/backup-codes", ["profile:update:own"], ["GET", "POST"]),
    R("/api/users/[id]/two-factor/disable", ["profile:update:own"], ["POST"]),
    R("/api/users/[id]/two-factor/setup", ["profile:update:own"], ["POST"]),
    R("/api/users/[id]/two-factor/status", ["profile:read:own"], ["GET"]),
    R("/api/users/[id]/two-factor/verify", ["profile:update:own"], ["POST"]),
]

DEFAULT_ROUTE_RULES: List[RouteRule] = PUBLIC_ROUTE_RULES + PAGE_ROUTE_RULES + API_ROUTE_RULES
