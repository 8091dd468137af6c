"""Protocol interfaces for permission feature dependency injection."""

from abc import abstractmethod
from typing import Optional, Protocol, Sequence, runtime_checkable

from .permission import Permission


@runtime_checkable
class RolePermissionSource(Protocol):
    """Source of the permission grants of a role."""

    @abstractmethod
    def get_permissions(self, role: str) -> Optional[Sequence[Permission]]:
        """Return the grants of ``role`` or None when the role is unknown."""
        ...

    @abstractmethod
    def level(self, role: str) -> int:
        """Return the hierarchy level of ``role``."""
        ...
