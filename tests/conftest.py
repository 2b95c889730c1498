"""Shared fixtures for the permlock test suite."""
from __future__ import annotations

import pytest

from permlock.callers import SimpleCaller
from permlock.drivers.memory import MemoryDriver
from permlock.lock import CallerLock
from permlock.manager import Manager


@pytest.fixture()
def driver() -> MemoryDriver:
    return MemoryDriver()


@pytest.fixture()
def manager(driver: MemoryDriver) -> Manager:
    return Manager(driver)


@pytest.fixture()
def caller() -> SimpleCaller:
    return SimpleCaller("users", 1)


@pytest.fixture()
def lock(manager: Manager, caller: SimpleCaller) -> CallerLock:
    return manager.caller(caller)
