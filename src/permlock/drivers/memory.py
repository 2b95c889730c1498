"""In-memory reference driver.

Permissions are kept in plain dicts keyed by ``(caller_type, caller_id)``
for callers and by role name for roles. Each list is ordered by insertion
and free of exact duplicates.

Thread-safety is achieved with a threading.Lock around every access to the
backing dicts, so individual driver calls are atomic.

Example
-------
>>> driver = MemoryDriver()
>>> caller = SimpleCaller("users", 1)
>>> driver.store_caller_permission(caller, Permission.privilege("read"))
>>> len(driver.caller_permissions(caller))
1
"""
from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Hashable

from permlock.callers import Caller, Role
from permlock.drivers.base import Driver
from permlock.permissions.permission import Permission

logger = logging.getLogger(__name__)


class MemoryDriver(Driver):
    """Driver keeping permissions in process memory."""

    def __init__(self) -> None:
        self._caller_permissions: dict[Hashable, list[Permission]] = defaultdict(list)
        self._role_permissions: dict[Hashable, list[Permission]] = defaultdict(list)
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Callers
    # ------------------------------------------------------------------

    def caller_permissions(self, caller: Caller) -> list[Permission]:
        return self._read(self._caller_permissions, self._caller_key(caller))

    def store_caller_permission(self, caller: Caller, permission: Permission) -> None:
        self._store(self._caller_permissions, self._caller_key(caller), permission)

    def remove_caller_permission(self, caller: Caller, permission: Permission) -> None:
        self._remove(self._caller_permissions, self._caller_key(caller), permission)

    def has_caller_permission(self, caller: Caller, permission: Permission) -> bool:
        return self._has(self._caller_permissions, self._caller_key(caller), permission)

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    def role_permissions(self, role: Role) -> list[Permission]:
        return self._read(self._role_permissions, role.name)

    def store_role_permission(self, role: Role, permission: Permission) -> None:
        self._store(self._role_permissions, role.name, permission)

    def remove_role_permission(self, role: Role, permission: Permission) -> None:
        self._remove(self._role_permissions, role.name, permission)

    def has_role_permission(self, role: Role, permission: Permission) -> bool:
        return self._has(self._role_permissions, role.name, permission)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _caller_key(caller: Caller) -> tuple[str, object]:
        return (caller.caller_type, caller.caller_id)

    def _read(self, store: dict[Hashable, list[Permission]], key: Hashable) -> list[Permission]:
        with self._lock:
            return list(store.get(key, ()))

    def _store(
        self,
        store: dict[Hashable, list[Permission]],
        key: Hashable,
        permission: Permission,
    ) -> None:
        with self._lock:
            permissions = store[key]
            if any(p.matches_permission(permission) for p in permissions):
                return
            permissions.append(permission)
        logger.debug("Stored %r for %r", permission, key)

    def _remove(
        self,
        store: dict[Hashable, list[Permission]],
        key: Hashable,
        permission: Permission,
    ) -> None:
        with self._lock:
            permissions = store.get(key)
            if not permissions:
                return
            kept = [p for p in permissions if not p.matches_permission(permission)]
            removed = len(permissions) - len(kept)
            store[key] = kept
        if removed:
            logger.debug("Removed %r for %r", permission, key)

    def _has(
        self,
        store: dict[Hashable, list[Permission]],
        key: Hashable,
        permission: Permission,
    ) -> bool:
        with self._lock:
            return any(p.matches_permission(permission) for p in store.get(key, ()))
