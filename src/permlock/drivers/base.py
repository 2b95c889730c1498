"""Storage contract for permission facts.

A driver maps a principal (a caller or a role) to an ordered list of
:class:`~permlock.permissions.Permission`. It is the only designed
extension point of the engine: any conforming implementation can be
swapped in without changing resolver behaviour.

Removal and membership use
:meth:`~permlock.permissions.Permission.matches_permission` (exact kind,
action and target), never live resolution.

Consistency requirements for implementations:
- a thread's own writes are visible to its subsequent reads;
- writes for different principals do not interfere.
"""
from __future__ import annotations

from abc import ABC, abstractmethod

from permlock.callers import Caller, Role
from permlock.permissions.permission import Permission


class Driver(ABC):
    """Abstract permission store."""

    # ------------------------------------------------------------------
    # Callers
    # ------------------------------------------------------------------

    @abstractmethod
    def caller_permissions(self, caller: Caller) -> list[Permission]:
        """Return the caller's permissions in insertion order.

        The returned list belongs to the caller of this method; mutating
        it must not affect the store.
        """

    @abstractmethod
    def store_caller_permission(self, caller: Caller, permission: Permission) -> None:
        """Persist a permission for the caller."""

    @abstractmethod
    def remove_caller_permission(self, caller: Caller, permission: Permission) -> None:
        """Remove every stored permission exactly matching ``permission``."""

    @abstractmethod
    def has_caller_permission(self, caller: Caller, permission: Permission) -> bool:
        """Return True if a permission exactly matching ``permission`` is stored."""

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    @abstractmethod
    def role_permissions(self, role: Role) -> list[Permission]:
        """Return the role's permissions in insertion order."""

    @abstractmethod
    def store_role_permission(self, role: Role, permission: Permission) -> None:
        """Persist a permission for the role."""

    @abstractmethod
    def remove_role_permission(self, role: Role, permission: Permission) -> None:
        """Remove every stored permission exactly matching ``permission``."""

    @abstractmethod
    def has_role_permission(self, role: Role, permission: Permission) -> bool:
        """Return True if a permission exactly matching ``permission`` is stored."""
