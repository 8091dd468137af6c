"""Version information for admin-guard."""

__version__ = "0.1.0"
