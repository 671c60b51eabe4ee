"""Shared fixtures for principalfs tests.

The default store holds:

- users ``alice`` (with a store path and nested ``profile`` properties),
  ``bob`` (no store path) and ``carol``;
- groups ``admins`` (declared member ``carol``) and ``staff`` (declared
  members ``alice`` and ``admins``, so ``carol`` is a transitive member);
- a stand-alone group principal ``everyone`` without an authorizable.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from principalfs.drivers.memory.store import InMemoryIdentityStore
from principalfs.drivers.usermanager.provider import AuthorizableResourceProvider
from principalfs.kernel.logging import reset_logging

ROOT = "/system/userManager"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep PRINCIPALFS_* variables of the developer shell out of the tests."""
    for name in (
        "PRINCIPALFS_CONFIG_PATH",
        "PRINCIPALFS_PROVIDER_ROOT",
        "PRINCIPALFS_NESTED_RESOURCES",
        "PRINCIPALFS_LOG_LEVEL",
        "PRINCIPALFS_LOG_FORMAT",
        "PRINCIPALFS_STORE",
    ):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def store() -> InMemoryIdentityStore:
    store = InMemoryIdentityStore()
    store.add_user(
        "alice",
        {
            "email": "alice@example.com",
            "age": 42,
            "scores": ["1", "x", "3"],
            "profile": {"nick": "ally", "address": {"city": "Basel"}},
        },
        path="/home/users/a/alice",
    )
    store.add_user("bob", {"email": "bob@example.com"})
    store.add_user("carol", path="/home/users/c/carol")
    store.add_group("admins", members=["carol"], path="/home/groups/admins")
    store.add_group(
        "staff",
        {"description": "All staff"},
        members=["alice", "admins"],
        path="/home/groups/staff",
    )
    store.add_principal("everyone", group=True)
    store.reset_access_history()
    return store


@pytest.fixture
def provider(store: InMemoryIdentityStore) -> AuthorizableResourceProvider:
    return AuthorizableResourceProvider(store)


@pytest.fixture
def fresh_logging() -> Iterator[None]:
    reset_logging()
    yield
    reset_logging()
