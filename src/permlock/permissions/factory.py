"""Build permissions from flat storage records.

A record is a mapping (or any object with matching attributes) shaped as::

    {"type": "privilege", "action": "edit", "target_type": "users", "target_id": 1}

``target_type`` and ``target_id`` may be ``None``. Drivers backed by
external storage use this to turn rows back into :class:`Permission` facts.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from permlock.errors import InvalidPermissionType
from permlock.permissions.permission import Permission, PermissionKind
from permlock.targets import Target

logger = logging.getLogger(__name__)

_RECORD_FIELDS: tuple[str, ...] = ("type", "action", "target_type", "target_id")


class PermissionFactory:
    """Maps permission records to :class:`Permission` objects."""

    @classmethod
    def create_from_data(cls, records: Iterable[Mapping[str, Any] | object]) -> list[Permission]:
        """Map a sequence of mappings or attribute objects to permissions.

        Raises
        ------
        InvalidPermissionType
            If any record carries an unknown ``type``.
        """
        permissions: list[Permission] = []
        for record in records:
            if isinstance(record, Mapping):
                permissions.append(cls.create_from_mapping(record))
            else:
                permissions.append(cls.create_from_object(record))
        return permissions

    @classmethod
    def create_from_mapping(cls, record: Mapping[str, Any]) -> Permission:
        return cls._build(
            record.get("type"),
            record.get("action"),
            record.get("target_type"),
            record.get("target_id"),
        )

    @classmethod
    def create_from_object(cls, record: object) -> Permission:
        values = [getattr(record, name, None) for name in _RECORD_FIELDS]
        return cls._build(*values)

    @staticmethod
    def _build(
        permission_type: object,
        action: object,
        target_type: object,
        target_id: object,
    ) -> Permission:
        try:
            kind = PermissionKind(permission_type)
        except ValueError:
            raise InvalidPermissionType(permission_type) from None

        target = Target(str(target_type), target_id) if target_type else None  # type: ignore[arg-type]
        return Permission(kind, str(action or ""), target)
