"""Runtime conditions attached to permissions.

A condition is consulted only after a permission's action and target have
matched. It receives the in-flight resolver, so a condition may call back
into :meth:`~permlock.lock.Lock.can` to express composite rules.

Built-in conditions:
- CanCondition: the resolver must also be able to perform other actions
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextvars import ContextVar
from dataclasses import dataclass
from typing import TYPE_CHECKING, Hashable

from permlock.targets import Target

if TYPE_CHECKING:
    from permlock.lock import Lock
    from permlock.permissions.permission import Permission

logger = logging.getLogger(__name__)

# Checks currently being evaluated by CanCondition in this thread or task.
_in_flight: ContextVar[frozenset[Hashable]] = ContextVar("permlock_can_in_flight", default=frozenset())


# ---------------------------------------------------------------------------
# Abstract base
# ---------------------------------------------------------------------------


class Condition(ABC):
    """Abstract base for permission conditions."""

    @abstractmethod
    def evaluate(
        self,
        lock: Lock,
        permission: Permission,
        action: str,
        target: Target | None = None,
    ) -> bool:
        """Return True if the permission may apply.

        Parameters
        ----------
        lock:
            The resolver evaluating the permission.
        permission:
            The permission this condition is attached to.
        action:
            The action being checked.
        target:
            The requested target, if any.
        """


# ---------------------------------------------------------------------------
# CanCondition
# ---------------------------------------------------------------------------


@dataclass
class CanCondition(Condition):
    """Require the resolver to be able to perform further actions.

    When ``target`` is ``None`` the requested target is reused. A check that
    is reached again while it is still being evaluated fails, so grants whose
    conditions depend on each other deny instead of recursing.

    Examples
    --------
    ::

        # "publish" on a post is only granted to those who may also edit it.
        lock.allow("publish", "posts", conditions=CanCondition(["edit"]))
    """

    actions: list[str]
    target: Target | None = None

    def evaluate(
        self,
        lock: Lock,
        permission: Permission,
        action: str,
        target: Target | None = None,
    ) -> bool:
        effective_target = self.target if self.target is not None else target
        key = (lock.principal_key, tuple(self.actions), effective_target)

        in_flight = _in_flight.get()
        if key in in_flight:
            logger.debug("Cyclic condition on %r for %s; denying", permission, self.actions)
            return False

        token = _in_flight.set(in_flight | {key})
        try:
            return lock.can(self.actions, effective_target)
        finally:
            _in_flight.reset(token)
