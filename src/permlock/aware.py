"""Host-integration mixin.

Mix :class:`LockAware` into a caller (or role) class and bind a resolver
with :meth:`LockAware.set_lock`; the object then answers the resolver's
public API itself::

    class User(LockAware, SimpleCaller):
        pass

    user = manager.make_caller_lock_aware(User("users", 1))
    user.allow("edit", "posts")
    assert user.can("edit", "posts", 3)
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from permlock.errors import InvalidLockInstance, LockInstanceNotSet
from permlock.targets import Target

if TYPE_CHECKING:
    from permlock.lock import Lock
    from permlock.permissions.permission import Conditions


class LockAware:
    """Forwards the resolver API from a host object to its bound resolver."""

    _lock: Lock | None = None

    def set_lock(self, lock: Lock) -> None:
        """Bind ``lock`` to this object.

        Raises
        ------
        InvalidLockInstance
            If the resolver's subject is not this object.
        """
        if lock.subject is not self:
            raise InvalidLockInstance("Invalid Lock instance given for current object.")
        self._lock = lock

    @property
    def lock(self) -> Lock:
        return self._bound_lock()

    def can(
        self,
        action: str | Iterable[str],
        target: str | Target | None = None,
        target_id: int | None = None,
    ) -> bool:
        return self._bound_lock().can(action, target, target_id)

    def cannot(
        self,
        action: str | Iterable[str],
        target: str | Target | None = None,
        target_id: int | None = None,
    ) -> bool:
        return self._bound_lock().cannot(action, target, target_id)

    def allow(
        self,
        action: str | Iterable[str],
        target: str | Target | None = None,
        target_id: int | None = None,
        conditions: Conditions = None,
    ) -> None:
        self._bound_lock().allow(action, target, target_id, conditions)

    def deny(
        self,
        action: str | Iterable[str],
        target: str | Target | None = None,
        target_id: int | None = None,
        conditions: Conditions = None,
    ) -> None:
        self._bound_lock().deny(action, target, target_id, conditions)

    def toggle(
        self,
        action: str | Iterable[str],
        target: str | Target | None = None,
        target_id: int | None = None,
    ) -> None:
        self._bound_lock().toggle(action, target, target_id)

    def allowed(self, action: str | Iterable[str], target_type: str | Target) -> list[object]:
        return self._bound_lock().allowed(action, target_type)

    def denied(self, action: str | Iterable[str], target_type: str | Target) -> list[object]:
        return self._bound_lock().denied(action, target_type)

    def clear(
        self,
        action: str | Iterable[str] | None = None,
        target: str | Target | None = None,
        target_id: int | None = None,
    ) -> None:
        self._bound_lock().clear(action, target, target_id)

    def _bound_lock(self) -> Lock:
        if self._lock is None:
            raise LockInstanceNotSet(
                "Please set a valid lock instance on this class before attempting to use it."
            )
        return self._lock
