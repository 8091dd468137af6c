"""Feature modules for admin-guard."""
