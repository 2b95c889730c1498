"""Principals: callers, roles and action aliases."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Protocol, runtime_checkable


@runtime_checkable
class Caller(Protocol):
    """An identity whose permissions are resolved.

    Identity and role membership are owned by the host application; the
    engine only reads them.
    """

    @property
    def caller_type(self) -> str: ...

    @property
    def caller_id(self) -> object: ...

    @property
    def caller_roles(self) -> Iterable[str]: ...


@dataclass(eq=False)
class SimpleCaller:
    """Reference :class:`Caller` implementation.

    Attributes
    ----------
    caller_type:
        Type label of the identity (e.g. ``"users"``).
    caller_id:
        Identifier of the identity within its type.
    caller_roles:
        Names of the roles this caller holds.
    """

    caller_type: str
    caller_id: object
    caller_roles: list[str] = field(default_factory=list)

    def __repr__(self) -> str:
        return f"SimpleCaller({self.caller_type}#{self.caller_id}, roles={self.caller_roles!r})"


@dataclass(frozen=True)
class Role:
    """A named group whose permissions are inherited by member callers."""

    name: str

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Role.name must not be empty.")

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Alias:
    """A named shorthand that expands to one or more concrete actions.

    Examples
    --------
    ::

        alias = Alias("manage", frozenset({"create", "read", "update", "delete"}))
        assert alias.has_action("read")
    """

    name: str
    actions: frozenset[str]

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Alias.name must not be empty.")
        # Accept any iterable of action names.
        object.__setattr__(self, "actions", frozenset(self.actions))

    def has_action(self, action: str) -> bool:
        return action in self.actions
