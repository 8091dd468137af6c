"""Permission services."""

from .permission_evaluator import PermissionEvaluator

__all__ = ["PermissionEvaluator"]
