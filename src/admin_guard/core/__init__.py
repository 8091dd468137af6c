"""Core building blocks shared by all admin-guard features."""
