"""Registry of roles and aliases, and factory for bound resolvers.

The manager owns the driver, the alias table and the role table. It is
usually built once at application start; aliases and roles can be
registered at any time before resolution.

It also hands out one re-entrant lock per principal. Resolvers hold that
lock while they read, compute and write a principal's permission set, so
concurrent ``allow``/``deny``/``toggle``/``clear`` calls for the same
principal cannot lose each other's updates.

Example
-------
::

    manager = Manager(MemoryDriver(), aliases={"manage": ["create", "read", "update", "delete"]})
    manager.set_role("editor")
    manager.role("editor").allow("manage", "posts")

    caller = SimpleCaller("users", 1, ["editor"])
    assert manager.caller(caller).can("read", "posts", 3)
"""
from __future__ import annotations

import logging
import threading
import weakref
from typing import Hashable, Iterable, Mapping, TypeVar

from permlock.aware import LockAware
from permlock.callers import Alias, Caller, Role
from permlock.drivers.base import Driver
from permlock.lock import CallerLock, RoleLock

logger = logging.getLogger(__name__)

_HostT = TypeVar("_HostT", bound=LockAware)


class Manager:
    """Process-wide registry and resolver factory.

    Parameters
    ----------
    driver:
        Storage backend for all permissions.
    aliases:
        Optional initial alias table, mapping alias name to its actions.
    roles:
        Optional initial role names.
    """

    def __init__(
        self,
        driver: Driver,
        aliases: Mapping[str, Iterable[str]] | None = None,
        roles: Iterable[str | Role] | None = None,
    ) -> None:
        self._driver = driver
        self._aliases: dict[str, Alias] = {}
        self._roles: dict[str, Role] = {}
        self._mutation_locks: weakref.WeakValueDictionary[Hashable, threading.RLock] = (
            weakref.WeakValueDictionary()
        )
        self._registry_lock = threading.Lock()

        for name, actions in (aliases or {}).items():
            self.alias(name, actions)
        if roles:
            self.set_role(roles)

    # ------------------------------------------------------------------
    # Resolver factories
    # ------------------------------------------------------------------

    def caller(self, caller: Caller) -> CallerLock:
        """Return a resolver bound to ``caller``."""
        return CallerLock(caller, self)

    def role(self, role: str | Role) -> RoleLock:
        """Return a resolver bound to a role.

        Unregistered role names are accepted; the role then simply has
        whatever permissions the driver stores under its name.
        """
        if isinstance(role, Role):
            return RoleLock(role, self)
        return RoleLock(self._roles.get(role) or Role(role), self)

    def make_caller_lock_aware(self, caller: _HostT) -> _HostT:
        """Bind a new caller resolver onto a lock-aware caller and return it."""
        caller.set_lock(self.caller(caller))  # type: ignore[arg-type]
        return caller

    def make_role_lock_aware(self, role: _HostT) -> _HostT:
        """Bind a new role resolver onto a lock-aware role and return it."""
        role.set_lock(RoleLock(role, self))  # type: ignore[arg-type]
        return role

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def alias(self, name: str, actions: str | Iterable[str]) -> Alias:
        """Register (or replace) an alias expanding to ``actions``."""
        if isinstance(actions, str):
            actions = [actions]
        alias = Alias(name, frozenset(actions))
        with self._registry_lock:
            self._aliases[name] = alias
        logger.debug("Registered alias %s -> %s", name, sorted(alias.actions))
        return alias

    def remove_alias(self, name: str) -> None:
        with self._registry_lock:
            self._aliases.pop(name, None)

    def set_role(self, names: str | Role | Iterable[str | Role]) -> None:
        """Register one or more roles."""
        if isinstance(names, (str, Role)):
            names = [names]
        with self._registry_lock:
            for entry in names:
                role = entry if isinstance(entry, Role) else Role(entry)
                self._roles[role.name] = role
                logger.debug("Registered role %s", role.name)

    def remove_role(self, name: str) -> None:
        with self._registry_lock:
            self._roles.pop(name, None)

    def mutation_lock(self, key: Hashable) -> threading.RLock:
        """Return the re-entrant lock guarding one principal's permission set.

        Entries are held weakly: a lock lives as long as some resolver is
        using it and is recreated on the next request.
        """
        with self._registry_lock:
            lock = self._mutation_locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._mutation_locks[key] = lock
            return lock

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def driver(self) -> Driver:
        return self._driver

    @property
    def aliases(self) -> dict[str, Alias]:
        """Snapshot of the alias table."""
        with self._registry_lock:
            return dict(self._aliases)

    @property
    def roles(self) -> dict[str, Role]:
        """Snapshot of the role table."""
        with self._registry_lock:
            return dict(self._roles)
