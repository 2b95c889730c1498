"""Permission facts, runtime conditions and the record factory.

Example
-------
::

    from permlock.permissions import Permission, PermissionFactory

    grant = Permission.privilege("read")
    [deny] = PermissionFactory.create_from_data(
        [{"type": "restriction", "action": "delete", "target_type": "tasks", "target_id": None}]
    )
"""
from __future__ import annotations

from permlock.permissions.conditions import (
    CanCondition,
    Condition,
)
from permlock.permissions.factory import PermissionFactory
from permlock.permissions.permission import (
    WILDCARD_ACTION,
    Permission,
    PermissionKind,
)

__all__ = [
    # Core types
    "Permission",
    "PermissionKind",
    "WILDCARD_ACTION",
    # Conditions
    "CanCondition",
    "Condition",
    # Factory
    "PermissionFactory",
]
