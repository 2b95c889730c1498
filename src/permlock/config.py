"""Lock configuration loader with Pydantic v2 validation.

Loads a ``lock.yaml`` file into a typed :class:`LockConfig` and turns it
into a ready-to-use :class:`~permlock.manager.Manager`.

Schema
------
::

    version: "1"
    aliases:
      manage: [create, read, update, delete]
    roles: [editor]
    role_permissions:
      editor:
        - {type: privilege, action: manage, target_type: tasks}
    callers:
      - type: users
        id: 1
        roles: [editor]
        permissions:
          - {type: privilege, action: read}
          - {type: restriction, action: delete, target_type: tasks, target_id: 3}

Example
-------
>>> config = ConfigLoader().load(Path("lock.yaml"))
>>> manager = build_manager(config)
>>> manager.caller(find_caller(config, "users", 1)).can("read")
True
"""
from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from permlock.callers import SimpleCaller
from permlock.drivers.base import Driver
from permlock.drivers.memory import MemoryDriver
from permlock.errors import InvalidPermissionType, LockConfigError
from permlock.manager import Manager
from permlock.permissions.factory import PermissionFactory
from permlock.permissions.permission import Permission

logger = logging.getLogger(__name__)

_SUPPORTED_VERSIONS: frozenset[str] = frozenset(["1", "1.0"])


class PermissionRecord(BaseModel):
    """One stored permission, in the flat record format."""

    model_config = {"extra": "forbid"}

    type: str
    action: str = Field(min_length=1)
    target_type: str | None = Field(default=None)
    target_id: int | None = Field(default=None)


class CallerConfig(BaseModel):
    """A caller seeded with roles and its own permissions."""

    model_config = {"extra": "allow"}

    type: str = Field(min_length=1)
    id: int | str
    roles: list[str] = Field(default_factory=list)
    permissions: list[PermissionRecord] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, value: object) -> object:
        # Numeric ids compare equal whether written as 3 or "3".
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            return int(value)
        return value


class LockConfig(BaseModel):
    """Top-level lock configuration schema.

    All sections are optional and default to empty.
    """

    model_config = {"extra": "allow"}

    version: str = Field(default="1")
    aliases: dict[str, list[str]] = Field(default_factory=dict)
    roles: list[str] = Field(default_factory=list)
    role_permissions: dict[str, list[PermissionRecord]] = Field(default_factory=dict)
    callers: list[CallerConfig] = Field(default_factory=list)

    @field_validator("version", mode="before")
    @classmethod
    def validate_version(cls, value: object) -> str:
        version = str(value)
        if version not in _SUPPORTED_VERSIONS:
            raise ValueError(
                f"Unsupported config version {version!r}. "
                f"Supported: {sorted(_SUPPORTED_VERSIONS)}."
            )
        return version

    @field_validator("aliases")
    @classmethod
    def validate_aliases(cls, values: dict[str, list[str]]) -> dict[str, list[str]]:
        for name, actions in values.items():
            if not actions:
                raise ValueError(f"Alias '{name}' must expand to at least one action.")
        return values


class ConfigLoader:
    """Loads and validates lock YAML configuration.

    Example
    -------
    >>> loader = ConfigLoader()
    >>> config = loader.load(Path("lock.yaml"))
    """

    def load(self, config_path: Path) -> LockConfig:
        """Load and validate a lock YAML file.

        Raises
        ------
        FileNotFoundError:
            When the config file does not exist.
        LockConfigError:
            When the YAML cannot be parsed or fails validation.
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Lock config not found: {config_path}")

        with config_path.open("r", encoding="utf-8") as fh:
            text = fh.read()
        return self.load_string(text, config_path=str(config_path))

    def load_string(self, yaml_content: str, config_path: str | None = None) -> LockConfig:
        """Load and validate a YAML string directly."""
        try:
            raw = yaml.safe_load(yaml_content) or {}
        except yaml.YAMLError as exc:
            raise LockConfigError(f"Failed to parse YAML: {exc}", config_path) from exc

        if not isinstance(raw, dict):
            raise LockConfigError("Lock config must be a YAML mapping (dict).", config_path)

        try:
            config = LockConfig.model_validate(raw)
        except ValidationError as exc:
            raise LockConfigError(str(exc), config_path) from exc

        logger.info(
            "Loaded lock config from %s (%d aliases, %d roles, %d callers)",
            config_path or "<string>",
            len(config.aliases),
            len(config.roles),
            len(config.callers),
        )
        return config

    def defaults(self) -> LockConfig:
        """Return an empty configuration."""
        return LockConfig()


def _permissions_from_records(
    records: list[PermissionRecord],
    owner: str,
) -> list[Permission]:
    try:
        return PermissionFactory.create_from_data([r.model_dump() for r in records])
    except InvalidPermissionType as exc:
        raise LockConfigError(f"Invalid permission for {owner}: {exc}") from exc


def build_manager(config: LockConfig, driver: Driver | None = None) -> Manager:
    """Build a manager from ``config``, seeding ``driver`` with its permissions.

    A fresh :class:`MemoryDriver` is used when no driver is given.
    """
    manager = Manager(
        driver if driver is not None else MemoryDriver(),
        aliases=config.aliases,
        roles=config.roles,
    )

    for role_name, records in config.role_permissions.items():
        role = manager.role(role_name).role
        for permission in _permissions_from_records(records, f"role '{role_name}'"):
            manager.driver.store_role_permission(role, permission)

    for caller_config in config.callers:
        caller = _caller_from_config(caller_config)
        owner = f"caller '{caller.caller_type}#{caller.caller_id}'"
        for permission in _permissions_from_records(caller_config.permissions, owner):
            manager.driver.store_caller_permission(caller, permission)

    return manager


def find_caller(config: LockConfig, caller_type: str, caller_id: int | str) -> SimpleCaller:
    """Return the configured caller ``caller_type#caller_id``.

    An unknown caller is returned without roles, which is still a valid
    (permission-less) identity.
    """
    for caller_config in config.callers:
        if caller_config.type == caller_type and str(caller_config.id) == str(caller_id):
            return _caller_from_config(caller_config)
    return SimpleCaller(caller_type, caller_id)


def _caller_from_config(caller_config: CallerConfig) -> SimpleCaller:
    return SimpleCaller(caller_config.type, caller_config.id, list(caller_config.roles))
