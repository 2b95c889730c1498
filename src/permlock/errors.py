"""Exception hierarchy for permlock.

Every error raised by the library derives from :class:`LockError` so host
applications can catch the whole family with a single ``except`` clause.
None of these are transient: they signal a precondition violation and are
never retried internally.
"""
from __future__ import annotations


class LockError(Exception):
    """Base class for all permlock errors."""


class InvalidLockInstance(LockError):
    """Raised when a resolver is bound to a host that is not its subject."""


class LockInstanceNotSet(LockError):
    """Raised when a lock-aware host is used before a resolver is bound."""


class InvalidPermissionType(LockError, ValueError):
    """Raised when a permission record carries an unknown ``type`` value.

    Attributes
    ----------
    permission_type:
        The offending discriminator value.
    """

    def __init__(self, permission_type: object) -> None:
        self.permission_type = permission_type
        super().__init__(
            f'The permission type you provided "{permission_type}" is incorrect.'
        )


class UnsupportedClearMode(LockError, NotImplementedError):
    """Raised when clearing permissions by target alone is requested."""


class LockConfigError(LockError, ValueError):
    """Raised when a lock YAML config is malformed or invalid.

    Attributes
    ----------
    config_path:
        The path to the config file that caused the error, if known.
    """

    def __init__(self, message: str, config_path: str | None = None) -> None:
        self.config_path = config_path
        prefix = f"[{config_path}] " if config_path else ""
        super().__init__(f"{prefix}{message}")
