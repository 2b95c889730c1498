"""Permission resolvers bound to a caller or a role.

A :class:`Lock` answers ``can``/``cannot`` questions and mutates the
permission set of exactly one principal through the manager's driver.
Permissions are never cached: every call reads the driver again.

Resolution order for a single action
------------------------------------
1. Aliases: if registered aliases contain the action, and the principal can
   perform all of them, and none of its own restrictions blocks the action
   itself, the action passes.
2. Own restrictions: a matching restriction denies immediately.
3. Roles (callers only): any role resolver granting the action passes it.
4. Own privileges: a matching privilege passes the action.

Anything else is denied.

Example
-------
::

    manager = Manager(MemoryDriver())
    lock = manager.caller(SimpleCaller("users", 1))
    lock.allow("edit", "posts", 5)
    assert lock.can("edit", "posts", 5)
    assert lock.cannot("edit", "posts", 6)
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import TYPE_CHECKING, Hashable, Iterable, Iterator

from permlock.callers import Caller, Role
from permlock.drivers.base import Driver
from permlock.errors import UnsupportedClearMode
from permlock.permissions.permission import Conditions, Permission
from permlock.targets import Target, as_target

if TYPE_CHECKING:
    from permlock.manager import Manager

logger = logging.getLogger(__name__)


def _as_actions(action: str | Iterable[str]) -> list[str]:
    if isinstance(action, str):
        return [action]
    return list(action)


class Lock(ABC):
    """Resolver base shared by :class:`CallerLock` and :class:`RoleLock`.

    Parameters
    ----------
    manager:
        The manager providing the driver and the alias registry.
    """

    def __init__(self, manager: Manager) -> None:
        self._manager = manager

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def can(
        self,
        action: str | Iterable[str],
        target: str | Target | None = None,
        target_id: int | None = None,
    ) -> bool:
        """Return True when every given action is allowed on the target.

        Evaluation stops at the first action that fails.
        """
        resolved_target = as_target(target, target_id)
        return self._can_all(_as_actions(action), resolved_target, frozenset())

    def cannot(
        self,
        action: str | Iterable[str],
        target: str | Target | None = None,
        target_id: int | None = None,
    ) -> bool:
        return not self.can(action, target, target_id)

    def allowed(self, action: str | Iterable[str], target_type: str | Target) -> list[object]:
        """Return the ids of ``target_type`` the principal may perform ``action`` on.

        Candidate ids come from stored privileges; each is re-checked through
        the full restriction and role pipeline.
        """
        return self._collect_ids(action, target_type, restrictions=False)

    def denied(self, action: str | Iterable[str], target_type: str | Target) -> list[object]:
        """Return the ids of ``target_type`` the principal may not perform ``action`` on."""
        return self._collect_ids(action, target_type, restrictions=True)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def allow(
        self,
        action: str | Iterable[str],
        target: str | Target | None = None,
        target_id: int | None = None,
        conditions: Conditions = None,
    ) -> None:
        """Grant one or more actions, retracting restrictions that block them."""
        resolved_target = as_target(target, target_id)

        with self._mutation():
            permissions = self.get_permissions()

            for name in _as_actions(action):
                for permission in list(permissions):
                    if permission.is_restriction and not permission.is_allowed(
                        self, name, resolved_target
                    ):
                        self.remove_permission(permission)
                        permissions.remove(permission)

                restriction = Permission.restriction(name, resolved_target)
                if self.has_permission(restriction):
                    self.remove_permission(restriction)

                self._replace(Permission.privilege(name, resolved_target, conditions))
                logger.debug("%r allowed %s on %s", self, name, resolved_target)

    def deny(
        self,
        action: str | Iterable[str],
        target: str | Target | None = None,
        target_id: int | None = None,
        conditions: Conditions = None,
    ) -> None:
        """Forbid one or more actions, superseding matching privileges."""
        resolved_target = as_target(target, target_id)

        with self._mutation():
            permissions = self.get_permissions()

            for name in _as_actions(action):
                self._clear_privileges(name, resolved_target, permissions)
                self._replace(Permission.restriction(name, resolved_target, conditions))
                logger.debug("%r denied %s on %s", self, name, resolved_target)

    def toggle(
        self,
        action: str | Iterable[str],
        target: str | Target | None = None,
        target_id: int | None = None,
    ) -> None:
        """Deny the action(s) if currently allowed, allow them otherwise."""
        with self._mutation():
            if self.can(action, target, target_id):
                self.deny(action, target, target_id)
            else:
                self.allow(action, target, target_id)

    def clear(
        self,
        action: str | Iterable[str] | None = None,
        target: str | Target | None = None,
        target_id: int | None = None,
    ) -> None:
        """Remove stored permissions.

        - No action and no target: remove every permission of the principal.
        - Action given: remove privileges matching the action(s) on the
          target. Restrictions are left in place.

        Raises
        ------
        UnsupportedClearMode
            When a target is given without an action.
        """
        if action is None and target is not None:
            raise UnsupportedClearMode(
                "Clearing permissions by target without an action is not supported."
            )

        resolved_target = as_target(target, target_id)

        with self._mutation():
            permissions = self.get_permissions()

            if action is None:
                for permission in permissions:
                    self.remove_permission(permission)
                logger.debug("%r cleared %d permissions", self, len(permissions))
                return

            for name in _as_actions(action):
                self._clear_privileges(name, resolved_target, permissions)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _can_all(
        self,
        actions: list[str],
        target: Target | None,
        expanding: frozenset[str],
    ) -> bool:
        for name in actions:
            if not self._can_one(name, target, expanding):
                logger.debug("%r cannot %s on %s", self, name, target)
                return False
        return True

    def _can_one(self, action: str, target: Target | None, expanding: frozenset[str]) -> bool:
        aliases = [a for a in self.aliases_for_action(action) if a not in expanding]
        if aliases:
            permissions = self.get_permissions()
            if self._can_all(aliases, target, expanding | set(aliases)) and self.resolve_restrictions(
                permissions, action, target
            ):
                return True

        return self.resolve_permissions(action, target)

    @abstractmethod
    def resolve_permissions(self, action: str, target: Target | None) -> bool:
        """Decide a single, already alias-expanded action."""

    def resolve_restrictions(
        self,
        permissions: Iterable[Permission],
        action: str,
        target: Target | None,
    ) -> bool:
        """Return False if any restriction in ``permissions`` blocks the action."""
        for permission in permissions:
            if permission.is_restriction and not permission.is_allowed(self, action, target):
                return False
        return True

    def resolve_privileges(
        self,
        permissions: Iterable[Permission],
        action: str,
        target: Target | None,
    ) -> bool:
        """Return True if any privilege in ``permissions`` grants the action."""
        for permission in permissions:
            if permission.is_privilege and permission.is_allowed(self, action, target):
                return True
        return False

    def aliases_for_action(self, action: str) -> list[str]:
        """Return the names of every registered alias containing ``action``."""
        return [
            name
            for name, alias in self._manager.aliases.items()
            if alias.has_action(action)
        ]

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _clear_privileges(
        self,
        action: str,
        target: Target | None,
        permissions: list[Permission],
    ) -> None:
        for permission in list(permissions):
            if permission.is_privilege and permission.is_allowed(self, action, target):
                self.remove_permission(permission)
                permissions.remove(permission)

        privilege = Permission.privilege(action, target)
        if self.has_permission(privilege):
            self.remove_permission(privilege)

    def _replace(self, permission: Permission) -> None:
        # Stored facts compare without conditions, so drop the old one first.
        if self.has_permission(permission):
            self.remove_permission(permission)
        self.store_permission(permission)

    def _collect_ids(
        self,
        action: str | Iterable[str],
        target_type: str | Target,
        restrictions: bool,
    ) -> list[object]:
        type_name = target_type.type if isinstance(target_type, Target) else target_type

        ids: list[object] = []
        for permission in self.get_permissions():
            if permission.is_restriction is not restrictions:
                continue
            if permission.target_type != type_name or permission.target_id is None:
                continue
            if permission.target_id not in ids:
                ids.append(permission.target_id)

        if restrictions:
            return [i for i in ids if self.cannot(action, type_name, i)]
        return [i for i in ids if self.can(action, type_name, i)]

    @contextmanager
    def _mutation(self) -> Iterator[None]:
        with self._manager.mutation_lock(self.principal_key):
            yield

    # ------------------------------------------------------------------
    # Storage hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def get_permissions(self) -> list[Permission]:
        """Return a fresh copy of the principal's stored permissions."""

    @abstractmethod
    def store_permission(self, permission: Permission) -> None:
        """Store ``permission`` unless an exact match already exists."""

    @abstractmethod
    def remove_permission(self, permission: Permission) -> None: ...

    @abstractmethod
    def has_permission(self, permission: Permission) -> bool: ...

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    @abstractmethod
    def subject(self) -> object:
        """The caller or role this resolver is bound to."""

    @property
    @abstractmethod
    def principal_key(self) -> Hashable:
        """Key identifying the principal for per-principal locking."""

    @property
    def manager(self) -> Manager:
        return self._manager

    @property
    def driver(self) -> Driver:
        return self._manager.driver


class CallerLock(Lock):
    """Resolver bound to a caller; consults the caller's roles as well."""

    def __init__(self, caller: Caller, manager: Manager) -> None:
        super().__init__(manager)
        self._caller = caller

    def resolve_permissions(self, action: str, target: Target | None) -> bool:
        permissions = self.get_permissions()

        # Restrictions first: they override privileges and role grants.
        if not self.resolve_restrictions(permissions, action, target):
            return False

        for role_lock in self.role_locks():
            if role_lock.can(action, target):
                return True

        return self.resolve_privileges(permissions, action, target)

    def role_locks(self) -> list[RoleLock]:
        """Return a resolver for each role the caller holds."""
        return [self._manager.role(name) for name in self._caller.caller_roles]

    def get_permissions(self) -> list[Permission]:
        return list(self.driver.caller_permissions(self._caller))

    def store_permission(self, permission: Permission) -> None:
        if not self.has_permission(permission):
            self.driver.store_caller_permission(self._caller, permission)

    def remove_permission(self, permission: Permission) -> None:
        self.driver.remove_caller_permission(self._caller, permission)

    def has_permission(self, permission: Permission) -> bool:
        return self.driver.has_caller_permission(self._caller, permission)

    @property
    def caller(self) -> Caller:
        return self._caller

    @property
    def subject(self) -> Caller:
        return self._caller

    @property
    def principal_key(self) -> Hashable:
        return ("caller", self._caller.caller_type, self._caller.caller_id)

    def __repr__(self) -> str:
        return f"CallerLock({self._caller.caller_type}#{self._caller.caller_id})"


class RoleLock(Lock):
    """Resolver bound to a role. Does not recurse into further roles."""

    def __init__(self, role: Role, manager: Manager) -> None:
        super().__init__(manager)
        self._role = role

    def resolve_permissions(self, action: str, target: Target | None) -> bool:
        permissions = self.get_permissions()

        if not self.resolve_restrictions(permissions, action, target):
            return False

        return self.resolve_privileges(permissions, action, target)

    def get_permissions(self) -> list[Permission]:
        return list(self.driver.role_permissions(self._role))

    def store_permission(self, permission: Permission) -> None:
        if not self.has_permission(permission):
            self.driver.store_role_permission(self._role, permission)

    def remove_permission(self, permission: Permission) -> None:
        self.driver.remove_role_permission(self._role, permission)

    def has_permission(self, permission: Permission) -> bool:
        return self.driver.has_role_permission(self._role, permission)

    @property
    def role(self) -> Role:
        return self._role

    @property
    def subject(self) -> Role:
        return self._role

    @property
    def principal_key(self) -> Hashable:
        return ("role", self._role.name)

    def __repr__(self) -> str:
        return f"RoleLock({self._role.name})"
