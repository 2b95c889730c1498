"""permlock: embeddable caller/role permission engine.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import permlock
>>> manager = permlock.Manager(permlock.MemoryDriver())
>>> lock = manager.caller(permlock.SimpleCaller("users", 1))
>>> lock.allow("edit", "posts", 5)
>>> lock.can("edit", "posts", 5)
True
"""
from __future__ import annotations

__version__: str = "0.1.0"

from permlock.targets import Target, as_target
from permlock.callers import Alias, Caller, Role, SimpleCaller

# ---------------------------------------------------------------------------
# Permissions
# ---------------------------------------------------------------------------
from permlock.permissions import (
    CanCondition,
    Condition,
    Permission,
    PermissionFactory,
    PermissionKind,
)

# ---------------------------------------------------------------------------
# Drivers and resolvers
# ---------------------------------------------------------------------------
from permlock.drivers import Driver, MemoryDriver
from permlock.lock import CallerLock, Lock, RoleLock
from permlock.manager import Manager
from permlock.aware import LockAware

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
from permlock.config import ConfigLoader, LockConfig, build_manager, find_caller

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
from permlock.errors import (
    InvalidLockInstance,
    InvalidPermissionType,
    LockConfigError,
    LockError,
    LockInstanceNotSet,
    UnsupportedClearMode,
)

__all__ = [
    "__version__",
    # Values
    "Alias",
    "Caller",
    "Role",
    "SimpleCaller",
    "Target",
    "as_target",
    # Permissions
    "CanCondition",
    "Condition",
    "Permission",
    "PermissionFactory",
    "PermissionKind",
    # Drivers and resolvers
    "CallerLock",
    "Driver",
    "Lock",
    "LockAware",
    "Manager",
    "MemoryDriver",
    "RoleLock",
    # Configuration
    "ConfigLoader",
    "LockConfig",
    "build_manager",
    "find_caller",
    # Errors
    "InvalidLockInstance",
    "InvalidPermissionType",
    "LockConfigError",
    "LockError",
    "LockInstanceNotSet",
    "UnsupportedClearMode",
]
