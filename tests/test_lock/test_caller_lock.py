"""Tests for the caller-bound resolver."""
from __future__ import annotations

import threading

import pytest

from permlock.callers import SimpleCaller
from permlock.drivers.memory import MemoryDriver
from permlock.errors import UnsupportedClearMode
from permlock.lock import CallerLock
from permlock.manager import Manager
from permlock.permissions.permission import Permission
from permlock.targets import Target


@pytest.fixture()
def seeded_lock(lock: CallerLock) -> CallerLock:
    lock.allow("read")
    lock.allow("edit", "users", 1)
    lock.allow("manage", "tasks")
    return lock


# ---------------------------------------------------------------------------
# can / cannot
# ---------------------------------------------------------------------------

class TestCan:
    def test_default_deny(self, lock: CallerLock) -> None:
        assert lock.can("read") is False
        assert lock.can("edit", "users", 1) is False

    def test_cannot_negates(self, lock: CallerLock) -> None:
        assert lock.cannot("read") is True
        lock.allow("read")
        assert lock.cannot("read") is False

    def test_global_privilege(self, seeded_lock: CallerLock) -> None:
        assert seeded_lock.can("read") is True
        assert seeded_lock.can("read", "events", 9) is True

    def test_type_wide_privilege(self, seeded_lock: CallerLock) -> None:
        assert seeded_lock.can("manage", "tasks", 42) is True
        assert seeded_lock.can("manage", "tasks") is True

    def test_no_matching_privilege(self, seeded_lock: CallerLock) -> None:
        assert seeded_lock.can("edit", "events", 9) is False
        assert seeded_lock.can("edit", "users", 2) is False

    def test_deny_type_wide(self, seeded_lock: CallerLock) -> None:
        seeded_lock.deny("manage", "tasks")
        assert seeded_lock.can("manage", "tasks", 42) is False

    def test_accepts_target_object(self, seeded_lock: CallerLock) -> None:
        assert seeded_lock.can("edit", Target("users", 1)) is True

    def test_multiple_actions_all_required(self, seeded_lock: CallerLock) -> None:
        assert seeded_lock.can(["read", "manage"], "tasks", 1) is True
        assert seeded_lock.can(["read", "delete"], "tasks", 1) is False

    def test_multiple_actions_short_circuit(self, lock: CallerLock) -> None:
        calls: list[str] = []

        def record(lk, permission, action, target):  # type: ignore[no-untyped-def]
            calls.append(action)
            return True

        lock.allow("second", conditions=record)
        assert lock.can(["first", "second"]) is False
        assert calls == []

    def test_wildcard_grant(self, lock: CallerLock) -> None:
        lock.allow("all")
        assert lock.can("anything") is True
        assert lock.can("delete", "tasks", 7) is True

    def test_wildcard_grant_with_specific_restriction(self, lock: CallerLock) -> None:
        lock.deny("delete", "tasks", 7)
        lock.allow("all")
        assert lock.can("delete", "tasks", 7) is False
        assert lock.can("delete", "tasks", 8) is True

    def test_restriction_beats_privilege(self, driver: MemoryDriver, caller: SimpleCaller, lock: CallerLock) -> None:
        target = Target("posts", 1)
        driver.store_caller_permission(caller, Permission.privilege("edit", target))
        driver.store_caller_permission(caller, Permission.restriction("edit", target))
        assert lock.can("edit", target) is False

    def test_conditional_restriction(self, driver: MemoryDriver, caller: SimpleCaller, lock: CallerLock) -> None:
        driver.store_caller_permission(caller, Permission.privilege("edit", Target("posts")))
        driver.store_caller_permission(
            caller, Permission.restriction("edit", Target("posts", 2), lambda *args: False)
        )
        driver.store_caller_permission(
            caller, Permission.restriction("edit", Target("posts", 3), lambda *args: True)
        )
        assert lock.can("edit", "posts", 2) is True
        assert lock.can("edit", "posts", 3) is False

    def test_reads_driver_every_call(self, driver: MemoryDriver, caller: SimpleCaller, lock: CallerLock) -> None:
        assert lock.can("read") is False
        driver.store_caller_permission(caller, Permission.privilege("read"))
        assert lock.can("read") is True


# ---------------------------------------------------------------------------
# allow / deny
# ---------------------------------------------------------------------------

class TestAllowDeny:
    def test_allow_then_can(self, lock: CallerLock) -> None:
        lock.allow("edit", "posts", 3)
        assert lock.can("edit", "posts", 3) is True

    def test_deny_then_cannot(self, lock: CallerLock) -> None:
        lock.deny("edit", "posts", 3)
        assert lock.can("edit", "posts", 3) is False

    def test_deny_wins_last(self, lock: CallerLock) -> None:
        lock.allow("edit", "posts", 3)
        lock.deny("edit", "posts", 3)
        assert lock.can("edit", "posts", 3) is False

    def test_allow_after_deny(self, lock: CallerLock) -> None:
        lock.deny("edit", "posts", 3)
        lock.allow("edit", "posts", 3)
        assert lock.can("edit", "posts", 3) is True
        assert not any(p.is_restriction for p in lock.get_permissions())

    def test_allow_is_idempotent(self, lock: CallerLock) -> None:
        lock.allow("edit", "posts", 3)
        count = len(lock.get_permissions())
        lock.allow("edit", "posts", 3)
        assert len(lock.get_permissions()) == count

    def test_allow_retracts_blocking_type_restriction(self, lock: CallerLock) -> None:
        lock.deny("edit", "posts")
        lock.allow("edit", "posts", 3)
        assert lock.can("edit", "posts", 3) is True
        assert lock.get_permissions() == [Permission.privilege("edit", Target("posts", 3))]

    def test_deny_single_id_clears_covering_wildcard(self, lock: CallerLock) -> None:
        lock.allow("all")
        lock.deny("delete", "tasks", 7)
        assert lock.can("delete", "tasks", 7) is False
        assert lock.can("delete", "tasks", 8) is False
        assert lock.get_permissions() == [Permission.restriction("delete", Target("tasks", 7))]

    def test_deny_single_id_clears_covering_type_grant(self, lock: CallerLock) -> None:
        lock.allow("edit", "posts")
        lock.deny("edit", "posts", 2)
        assert lock.can("edit", "posts", 2) is False
        assert lock.can("edit", "posts", 5) is False

    def test_allow_replaces_conditional_grant(self, lock: CallerLock) -> None:
        lock.allow("edit", "posts", 1, conditions=lambda *args: False)
        assert lock.can("edit", "posts", 1) is False
        lock.allow("edit", "posts", 1)
        assert lock.can("edit", "posts", 1) is True
        assert len(lock.get_permissions()) == 1

    def test_deny_replaces_conditional_denial(self, manager: Manager, caller: SimpleCaller) -> None:
        manager.set_role("editor")
        manager.role("editor").allow("edit", "posts")
        caller.caller_roles.append("editor")
        lock = manager.caller(caller)

        lock.deny("edit", "posts", 1, conditions=lambda *args: False)
        assert lock.can("edit", "posts", 1) is True
        lock.deny("edit", "posts", 1)
        assert lock.cannot("edit", "posts", 1) is True
        assert len(lock.get_permissions()) == 1

    def test_specific_grant_keeps_type_grant(self, lock: CallerLock) -> None:
        lock.allow("edit", "posts", 1)
        lock.allow("edit", "posts")
        lock.allow("edit", "posts", 1)
        assert lock.can("edit", "posts", 9) is True

    def test_allow_keeps_unrelated_restrictions(self, lock: CallerLock) -> None:
        lock.deny("delete", "posts")
        lock.allow("edit", "posts", 3)
        assert Permission.restriction("delete", Target("posts")) in lock.get_permissions()

    def test_allow_multiple_actions(self, lock: CallerLock) -> None:
        lock.allow(["create", "edit"], "posts")
        assert lock.can(["create", "edit"], "posts", 1) is True

    def test_deny_removes_covering_privileges(self, lock: CallerLock) -> None:
        lock.allow("edit")
        lock.deny("edit", "posts", 3)
        # The global privilege matched the denied scope and is gone.
        assert lock.get_permissions() == [Permission.restriction("edit", Target("posts", 3))]
        assert lock.can("edit", "users", 1) is False

    def test_deny_multiple_actions(self, lock: CallerLock) -> None:
        lock.allow(["create", "edit"], "posts")
        lock.deny(["create", "edit"], "posts")
        assert lock.can("create", "posts", 1) is False
        assert lock.can("edit", "posts", 1) is False

    def test_deny_is_idempotent(self, lock: CallerLock) -> None:
        lock.deny("edit")
        lock.deny("edit")
        assert len(lock.get_permissions()) == 1

    def test_allow_with_conditions(self, lock: CallerLock) -> None:
        lock.allow("edit", "posts", conditions=lambda lk, p, action, target: target.id == 1)
        assert lock.can("edit", "posts", 1) is True
        assert lock.can("edit", "posts", 2) is False


# ---------------------------------------------------------------------------
# toggle
# ---------------------------------------------------------------------------

class TestToggle:
    def test_toggle_grants_when_denied(self, lock: CallerLock) -> None:
        lock.toggle("edit", "posts", 1)
        assert lock.can("edit", "posts", 1) is True

    def test_toggle_denies_when_allowed(self, lock: CallerLock) -> None:
        lock.allow("edit", "posts", 1)
        lock.toggle("edit", "posts", 1)
        assert lock.can("edit", "posts", 1) is False

    def test_toggle_twice_restores_state(self, lock: CallerLock) -> None:
        lock.allow("edit", "posts", 1)
        before = lock.can("edit", "posts", 1)
        lock.toggle("edit", "posts", 1)
        lock.toggle("edit", "posts", 1)
        assert lock.can("edit", "posts", 1) is before


# ---------------------------------------------------------------------------
# allowed / denied
# ---------------------------------------------------------------------------

class TestAllowedDenied:
    def test_allowed_ids(self, lock: CallerLock) -> None:
        lock.allow("edit", "users", 1)
        lock.allow("edit", "users", 2)
        assert lock.allowed("edit", "users") == [1, 2]

    def test_allowed_after_deny(self, lock: CallerLock) -> None:
        lock.allow("edit", "users", 1)
        lock.allow("edit", "users", 2)
        lock.deny("edit", "users", 2)
        assert lock.allowed("edit", "users") == [1]

    def test_allowed_rechecks_restrictions(self, driver: MemoryDriver, caller: SimpleCaller, lock: CallerLock) -> None:
        driver.store_caller_permission(caller, Permission.privilege("edit", Target("users", 1)))
        driver.store_caller_permission(caller, Permission.restriction("edit", Target("users")))
        assert lock.allowed("edit", "users") == []

    def test_allowed_ignores_other_types_and_type_wide(self, lock: CallerLock) -> None:
        lock.allow("edit", "users")
        lock.allow("edit", "posts", 5)
        assert lock.allowed("edit", "users") == []

    def test_allowed_distinct(self, lock: CallerLock) -> None:
        lock.allow(["edit", "read"], "users", 1)
        assert lock.allowed("edit", "users") == [1]

    def test_allowed_accepts_target(self, lock: CallerLock) -> None:
        lock.allow("edit", "users", 1)
        assert lock.allowed("edit", Target("users")) == [1]

    def test_denied_ids(self, lock: CallerLock) -> None:
        lock.deny("edit", "users", 1)
        lock.deny("edit", "users", 2)
        assert lock.denied("edit", "users") == [1, 2]

    def test_denied_after_allow(self, lock: CallerLock) -> None:
        lock.deny("edit", "users", 1)
        lock.deny("edit", "users", 2)
        lock.allow("edit", "users", 2)
        assert lock.denied("edit", "users") == [1]


# ---------------------------------------------------------------------------
# clear
# ---------------------------------------------------------------------------

class TestClear:
    def test_clear_everything(self, seeded_lock: CallerLock) -> None:
        seeded_lock.deny("delete", "tasks")
        seeded_lock.clear()
        assert seeded_lock.get_permissions() == []

    def test_clear_action(self, seeded_lock: CallerLock) -> None:
        seeded_lock.clear("manage", "tasks")
        assert seeded_lock.can("manage", "tasks", 1) is False
        assert seeded_lock.can("read") is True

    def test_clear_leaves_restrictions(self, lock: CallerLock) -> None:
        lock.deny("edit", "posts")
        lock.clear("edit", "posts")
        assert lock.get_permissions() == [Permission.restriction("edit", Target("posts"))]

    def test_clear_multiple_actions(self, lock: CallerLock) -> None:
        lock.allow(["create", "edit", "read"])
        lock.clear(["create", "edit"])
        assert [p.action for p in lock.get_permissions()] == ["read"]

    def test_clear_by_target_only_unsupported(self, seeded_lock: CallerLock) -> None:
        with pytest.raises(UnsupportedClearMode):
            seeded_lock.clear(None, "tasks")
        assert len(seeded_lock.get_permissions()) == 3

    def test_unsupported_clear_is_not_implemented_error(self, lock: CallerLock) -> None:
        with pytest.raises(NotImplementedError):
            lock.clear(target=Target("tasks", 1))


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------

class TestConcurrentMutation:
    def test_concurrent_allows_on_same_caller(self, manager: Manager) -> None:
        caller = SimpleCaller("users", 7)

        def worker(offset: int) -> None:
            lock = manager.caller(caller)
            for n in range(25):
                lock.allow("edit", "posts", offset * 100 + n)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(manager.caller(caller).get_permissions()) == 100
