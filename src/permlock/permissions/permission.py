"""Permission facts: privileges that grant and restrictions that forbid.

A :class:`Permission` is a tagged variant. Both kinds share the same
matching routine (:meth:`Permission.resolve`); a restriction simply negates
its outcome in :meth:`Permission.is_allowed`, so a *matching* restriction
reports "not allowed" and a non-matching one reports "does not block".

Matching rules
--------------
- The action ``"all"`` matches any requested action.
- A permission without a target is global: it applies to any request,
  with or without a target.
- A permission whose target has no id applies to every target of that type.
- A permission with a fully specified target applies to that target only.
- Conditions are consulted last. A single callable decides on its own; a
  list of :class:`~permlock.permissions.conditions.Condition` objects must
  all pass. An empty list always passes.

Example
-------
::

    grant = Permission.privilege("edit", Target("users", 1))
    assert grant.is_allowed(lock, "edit", Target("users", 1))
    assert not grant.is_allowed(lock, "edit", Target("users", 2))
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Iterable, Union

from permlock.permissions.conditions import Condition
from permlock.targets import Target

if TYPE_CHECKING:
    from permlock.lock import Lock

logger = logging.getLogger(__name__)

WILDCARD_ACTION = "all"

ConditionCallable = Callable[["Lock", "Permission", str, Union[Target, None]], bool]
Conditions = Union[ConditionCallable, Condition, Iterable[Condition], None]


class PermissionKind(str, enum.Enum):
    """Discriminator between the two permission variants."""

    PRIVILEGE = "privilege"
    RESTRICTION = "restriction"


def _normalise_conditions(
    conditions: Conditions,
) -> ConditionCallable | tuple[Condition, ...]:
    if conditions is None:
        return ()
    if isinstance(conditions, Condition):
        return (conditions,)
    if callable(conditions):
        return conditions
    return tuple(conditions)


@dataclass(frozen=True)
class Permission:
    """An immutable permission fact.

    Attributes
    ----------
    kind:
        :attr:`PermissionKind.PRIVILEGE` or :attr:`PermissionKind.RESTRICTION`.
    action:
        The action this fact is about, or ``"all"``.
    target:
        Optional target. ``None`` makes the permission global.
    conditions:
        Either a single predicate ``(lock, permission, action, target) -> bool``
        or a tuple of :class:`Condition` objects. Excluded from equality.
    """

    kind: PermissionKind
    action: str
    target: Target | None = None
    conditions: Any = field(default=(), compare=False)

    def __post_init__(self) -> None:
        if not self.action:
            raise ValueError("Permission.action must not be empty.")
        object.__setattr__(self, "kind", PermissionKind(self.kind))
        object.__setattr__(self, "conditions", _normalise_conditions(self.conditions))

    @classmethod
    def privilege(
        cls,
        action: str,
        target: Target | None = None,
        conditions: Conditions = None,
    ) -> Permission:
        """Build a permission that grants ``action`` on ``target``."""
        return cls(PermissionKind.PRIVILEGE, action, target, conditions)

    @classmethod
    def restriction(
        cls,
        action: str,
        target: Target | None = None,
        conditions: Conditions = None,
    ) -> Permission:
        """Build a permission that forbids ``action`` on ``target``."""
        return cls(PermissionKind.RESTRICTION, action, target, conditions)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def is_privilege(self) -> bool:
        return self.kind is PermissionKind.PRIVILEGE

    @property
    def is_restriction(self) -> bool:
        return self.kind is PermissionKind.RESTRICTION

    @property
    def target_type(self) -> str | None:
        return self.target.type if self.target is not None else None

    @property
    def target_id(self) -> int | None:
        return self.target.id if self.target is not None else None

    def as_record(self) -> dict[str, object]:
        """Return the flat record shape understood by PermissionFactory."""
        return {
            "type": self.kind.value,
            "action": self.action,
            "target_type": self.target_type,
            "target_id": self.target_id,
        }

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def is_allowed(self, lock: Lock, action: str, target: Target | None = None) -> bool:
        """Return whether this fact lets ``action`` on ``target`` through.

        A privilege returns True when it matches. A restriction returns
        False when it matches, True otherwise.
        """
        matched = self.resolve(lock, action, target)
        if self.kind is PermissionKind.RESTRICTION:
            return not matched
        return matched

    def matches_permission(self, other: Permission) -> bool:
        """Exact comparison used for deduplication and removal.

        Neither wildcard is expanded here: a stored ``"all"`` privilege does
        not match a ``"read"`` privilege, and a type-wide target does not
        match a single id of that type.
        """
        return (
            self.kind is other.kind
            and self.action == other.action
            and self.target == other.target
        )

    def resolve(self, lock: Lock, action: str, target: Target | None = None) -> bool:
        """Return True when action, target and conditions all match."""
        if self.target is None:
            return self.matches_action(action) and self.resolve_conditions(lock, action, target)

        return (
            self.matches_action(action)
            and self.matches_target(target)
            and self.resolve_conditions(lock, action, target)
        )

    def matches_action(self, action: str) -> bool:
        return self.action == action or self.action == WILDCARD_ACTION

    def matches_target(self, target: Target | None) -> bool:
        if target is None:
            return self.target is None
        if self.target is None:
            return False
        if self.target.id is None:
            return self.target.type == target.type
        return self.target.type == target.type and self.target.id == target.id

    def resolve_conditions(self, lock: Lock, action: str, target: Target | None) -> bool:
        if callable(self.conditions):
            result = bool(self.conditions(lock, self, action, target))
            logger.debug("Condition callable on %r returned %s", self, result)
            return result

        for condition in self.conditions:
            if not condition.evaluate(lock, self, action, target):
                logger.debug(
                    "Condition %s failed for %r (action=%s target=%s)",
                    type(condition).__name__,
                    self,
                    action,
                    target,
                )
                return False
        return True

    def __repr__(self) -> str:
        scope = f" on {self.target}" if self.target is not None else ""
        return f"<{self.kind.value} {self.action}{scope}>"
