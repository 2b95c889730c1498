"""Target value object.

A target identifies the resource an action is performed on: a type label
(``"users"``, ``"tasks"``) and an optional identifier. A target without an
id stands for the type as a whole.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Target:
    """Immutable (type, id) pair identifying a resource.

    Attributes
    ----------
    type:
        Non-empty resource type label.
    id:
        Optional identifier. ``None`` means every resource of ``type``.
    """

    type: str
    id: int | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.type, str) or not self.type:
            raise ValueError(f"Target.type must be a non-empty string; got {self.type!r}.")

    def __str__(self) -> str:
        return self.type if self.id is None else f"{self.type}#{self.id}"


def as_target(target: str | Target | None, target_id: int | None = None) -> Target | None:
    """Normalise the ``(target, target_id)`` argument pair of the public API.

    ``None`` means "no target". A :class:`Target` is returned unchanged and
    ``target_id`` is ignored. A string is treated as the target type.
    """
    if target is None:
        return None
    if isinstance(target, Target):
        return target
    return Target(target, target_id)
