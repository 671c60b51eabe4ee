"""Tests for principalfs.drivers.usermanager.value_map."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest

from principalfs.drivers.memory.store import InMemoryAuthorizable, InMemoryIdentityStore
from principalfs.drivers.usermanager.paths import SystemUserManagerPaths
from principalfs.drivers.usermanager.value_map import (
    AuthorizableValueMap,
    EmptyValueMap,
    NestedAuthorizableValueMap,
)
from principalfs.kernel.domain.values import TargetType
from principalfs.kernel.exceptions import ReadOnlyMappingError
from principalfs.kernel.ports.identity_store import StoreError

PATHS = SystemUserManagerPaths.from_root()
USER = PATHS.user_prefix
GROUP = PATHS.group_prefix


def entity(store: InMemoryIdentityStore, authorizable_id: str) -> InMemoryAuthorizable:
    authorizable = store.get_authorizable(authorizable_id)
    assert authorizable is not None
    store.reset_access_history()
    return authorizable


def view_of(store: InMemoryIdentityStore, authorizable_id: str) -> AuthorizableValueMap:
    return AuthorizableValueMap(entity(store, authorizable_id), PATHS)


class FlakyAuthorizable:
    """Delegates to a real authorizable, failing selected calls a number of times."""

    def __init__(self, wrapped: InMemoryAuthorizable, failures: dict[str, int]) -> None:
        self._wrapped = wrapped
        self._failures = dict(failures)

    def _maybe_fail(self, operation: str) -> None:
        if self._failures.get(operation, 0) > 0:
            self._failures[operation] -= 1
            raise StoreError(f"{operation} failed")

    def __getattr__(self, name: str) -> Any:
        return getattr(self._wrapped, name)

    def has_property(self, rel_path: str) -> bool:
        self._maybe_fail("has_property")
        return self._wrapped.has_property(rel_path)

    def property_names(self, rel_path: str | None = None) -> Iterator[str]:
        self._maybe_fail("property_names")
        return self._wrapped.property_names(rel_path)


class TestSyntheticKeys:
    def test_path_is_canonical_store_path(self, store: InMemoryIdentityStore) -> None:
        assert view_of(store, "alice")["path"] == "/home/users/a/alice"

    def test_path_absent_when_unsupported(self, store: InMemoryIdentityStore) -> None:
        view = view_of(store, "bob")
        assert "path" not in view
        assert view.get("path") is None
        with pytest.raises(KeyError):
            view["path"]

    def test_group_members(self, store: InMemoryIdentityStore) -> None:
        view = view_of(store, "staff")
        assert view["declaredMembers"] == [f"{USER}alice", f"{GROUP}admins"]
        assert view["members"] == [f"{USER}alice", f"{GROUP}admins", f"{USER}carol"]

    def test_memberships(self, store: InMemoryIdentityStore) -> None:
        view = view_of(store, "carol")
        assert view["declaredMemberOf"] == [f"{GROUP}admins"]
        assert view["memberOf"] == [f"{GROUP}admins", f"{GROUP}staff"]

    def test_users_have_no_member_keys(self, store: InMemoryIdentityStore) -> None:
        view = view_of(store, "alice")
        assert "members" not in view
        assert "declaredMembers" not in view
        assert "members" not in list(view)

    def test_synthetic_keys_shadow_stored_properties(self, store: InMemoryIdentityStore) -> None:
        store.set_property("alice", "path", "/forged")
        store.set_property("staff", "members", ["mallory"])

        alice = view_of(store, "alice")
        staff = view_of(store, "staff")
        assert alice["path"] == "/home/users/a/alice"
        assert staff["members"] == [f"{USER}alice", f"{GROUP}admins", f"{USER}carol"]
        assert dict(alice)["path"] == "/home/users/a/alice"
        assert list(alice).count("path") == 1

    def test_reserved_name_stays_absent_when_synthetic_is_absent(
        self, store: InMemoryIdentityStore
    ) -> None:
        store.set_property("bob", "path", "/forged")
        view = view_of(store, "bob")
        assert view.get("path") is None
        assert "path" not in list(view)


class TestPointLookups:
    def test_repeated_get_is_a_cache_hit(self, store: InMemoryIdentityStore) -> None:
        view = view_of(store, "alice")
        first = view.get("email")
        count = store.access_count
        assert view.get("email") == first == "alice@example.com"
        assert store.access_count == count

    def test_repeated_synthetic_get_is_a_cache_hit(self, store: InMemoryIdentityStore) -> None:
        view = view_of(store, "carol")
        first = view.get("memberOf")
        count = store.access_count
        assert view.get("memberOf") == first
        assert store.access_count == count

    def test_contains_does_not_read_fully(self, store: InMemoryIdentityStore) -> None:
        view = view_of(store, "alice")
        assert "unknown" not in view
        assert "email" in view
        assert not view.fully_read
        assert store.get_access_history("property_names") == []

    def test_single_key_read_does_not_enumerate(self, store: InMemoryIdentityStore) -> None:
        view = view_of(store, "alice")
        view.get("memberOf")
        view.get("age")
        assert not view.fully_read
        assert store.get_access_history("property_names") == []

    def test_multi_value_property_is_a_list(self, store: InMemoryIdentityStore) -> None:
        assert view_of(store, "alice")["scores"] == ["1", "x", "3"]

    def test_store_errors_propagate(self, store: InMemoryIdentityStore) -> None:
        flaky = FlakyAuthorizable(entity(store, "alice"), {"has_property": 1})
        view = AuthorizableValueMap(flaky, PATHS)  # type: ignore[arg-type]
        with pytest.raises(StoreError, match="has_property failed"):
            view.get("email")
        assert view.get("email") == "alice@example.com"


class TestFullRead:
    def test_keys_in_table_then_store_order(self, store: InMemoryIdentityStore) -> None:
        view = view_of(store, "alice")
        assert list(view) == ["memberOf", "declaredMemberOf", "path", "email", "age", "scores"]
        assert len(view) == 6
        assert view.fully_read

    def test_group_keys(self, store: InMemoryIdentityStore) -> None:
        view = view_of(store, "staff")
        keys = list(view.keys())
        assert keys[:4] == ["members", "declaredMembers", "memberOf", "declaredMemberOf"]
        assert keys[4:] == ["path", "description"]

    def test_full_read_is_idempotent(self, store: InMemoryIdentityStore) -> None:
        view = view_of(store, "alice")
        first = set(view.keys())
        count = store.access_count
        assert set(view.keys()) == first
        assert store.access_count == count

    def test_stale_snapshot_after_full_read(self, store: InMemoryIdentityStore) -> None:
        view = view_of(store, "alice")
        before = list(view)
        store.set_property("alice", "phone", "+41 00 000 00 00")
        count = store.access_count

        assert "phone" not in view
        assert view.get("phone") is None
        assert list(view) == before
        assert store.access_count == count

    def test_point_read_values_survive_full_read(self, store: InMemoryIdentityStore) -> None:
        view = view_of(store, "alice")
        view.get("email")
        store.set_property("alice", "email", "changed@example.com")
        assert dict(view.items())["email"] == "alice@example.com"

    def test_values_and_equality(self, store: InMemoryIdentityStore) -> None:
        view = view_of(store, "bob")
        assert view == {"memberOf": [], "declaredMemberOf": [], "email": "bob@example.com"}
        assert "bob@example.com" in view.values()

    def test_failed_full_read_keeps_cache_and_retries(self, store: InMemoryIdentityStore) -> None:
        flaky = FlakyAuthorizable(entity(store, "alice"), {"property_names": 1})
        view = AuthorizableValueMap(flaky, PATHS)  # type: ignore[arg-type]

        with pytest.raises(StoreError, match="property_names failed"):
            list(view)
        assert not view.fully_read
        assert len(store.get_access_history("memberships")) == 2

        assert len(view) == 6
        assert view.fully_read
        assert len(store.get_access_history("memberships")) == 2


class TestTypedGet:
    def test_partial_array_conversion(self, store: InMemoryIdentityStore) -> None:
        assert view_of(store, "alice").get_as("scores", TargetType.INTEGER, array=True) == [1, 3]

    def test_scalar_conversion(self, store: InMemoryIdentityStore) -> None:
        view = view_of(store, "alice")
        assert view.get_as("age", TargetType.STRING) == "42"
        assert view.get_as("email", TargetType.LONG) is None
        assert view.get_as("missing", TargetType.STRING) is None

    def test_default_selects_target(self, store: InMemoryIdentityStore) -> None:
        view = view_of(store, "alice")
        assert view.get("age", 0) == 42
        assert view.get("age", "") == "42"
        assert view.get("email", 0) == 0
        assert view.get("missing", 7) == 7

    def test_list_default_reads_array(self, store: InMemoryIdentityStore) -> None:
        view = view_of(store, "alice")
        assert view.get("scores", [0]) == [1, 3]
        assert view.get("memberOf", [""]) == [f"{GROUP}staff"]
        assert view.get("nothing", []) == []

    def test_synthetic_keys_are_coerced(self, store: InMemoryIdentityStore) -> None:
        view = view_of(store, "staff")
        assert view.get_as("declaredMembers", TargetType.STRING) == f"{USER}alice"
        assert view.get_as("path", TargetType.STRING) == "/home/groups/staff"
        assert view_of(store, "bob").get_as("path", TargetType.STRING) is None

    def test_typed_read_bypasses_generic_cache(self, store: InMemoryIdentityStore) -> None:
        view = view_of(store, "alice")
        view.get("email")
        store.set_property("alice", "email", "new@example.com")
        assert view.get("email") == "alice@example.com"
        assert view.get_as("email", TargetType.STRING) == "new@example.com"

    def test_typed_read_after_full_read_goes_to_store(self, store: InMemoryIdentityStore) -> None:
        view = view_of(store, "alice")
        list(view)
        store.set_property("alice", "phone", "555")
        count = store.access_count

        assert view.get("phone") is None
        assert store.access_count == count
        assert view.get_as("phone", TargetType.LONG) == 555
        assert store.access_count > count


class TestNestedView:
    def test_keys_are_rebased(self, store: InMemoryIdentityStore) -> None:
        view = NestedAuthorizableValueMap(entity(store, "alice"), PATHS, "profile")
        assert view.get("nick") == "ally"
        assert {"operation": "has_property", "target": "alice:profile/nick"} in (
            store.get_access_history()
        )

    def test_no_synthetic_keys(self, store: InMemoryIdentityStore) -> None:
        view = NestedAuthorizableValueMap(entity(store, "alice"), PATHS, "profile")
        assert "memberOf" not in view
        assert "path" not in view

    def test_full_read_lists_direct_names_only(self, store: InMemoryIdentityStore) -> None:
        view = NestedAuthorizableValueMap(entity(store, "alice"), PATHS, "profile")
        assert dict(view) == {"nick": "ally"}

    def test_deeper_container(self, store: InMemoryIdentityStore) -> None:
        view = NestedAuthorizableValueMap(entity(store, "alice"), PATHS, "/profile/address/")
        assert view.rel_prop_path == "profile/address"
        assert view["city"] == "Basel"

    def test_emptied_container_reads_as_empty(self, store: InMemoryIdentityStore) -> None:
        view = NestedAuthorizableValueMap(entity(store, "alice"), PATHS, "profile/address")
        store.remove_property("alice", "profile/address/city")

        assert len(view) == 0
        assert view.fully_read
        assert dict(view) == {}


class TestReadOnly:
    @pytest.mark.parametrize(
        "mutate",
        [
            lambda v: v.__setitem__("email", "x"),
            lambda v: v.__delitem__("email"),
            lambda v: v.clear(),
            lambda v: v.update({"email": "x"}),
            lambda v: v.pop("email"),
            lambda v: v.popitem(),
            lambda v: v.setdefault("email", "x"),
        ],
    )
    def test_mutators_raise(self, store: InMemoryIdentityStore, mutate: Any) -> None:
        view = view_of(store, "alice")
        with pytest.raises(ReadOnlyMappingError):
            mutate(view)
        with pytest.raises(TypeError):
            mutate(EmptyValueMap())

    def test_item_assignment_syntax(self, store: InMemoryIdentityStore) -> None:
        view = view_of(store, "alice")
        with pytest.raises(ReadOnlyMappingError, match="read-only"):
            view["email"] = "x"


class TestEmptyValueMap:
    def test_is_empty(self) -> None:
        view = EmptyValueMap()
        assert len(view) == 0
        assert list(view) == []
        assert view.get("anything", "fallback") == "fallback"
        assert view.get_as("anything", TargetType.STRING) is None
        assert view == {}
