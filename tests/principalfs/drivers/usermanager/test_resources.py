"""Tests for resource nodes and their projections."""

from __future__ import annotations

import pytest

from principalfs.drivers.memory.store import InMemoryIdentityStore, InMemoryPrincipal
from principalfs.drivers.usermanager.paths import SystemUserManagerPaths
from principalfs.drivers.usermanager.resources import (
    authorizable_node,
    container_node,
    nested_properties_node,
    principal_node,
    project,
    resource_type_for,
)
from principalfs.drivers.usermanager.value_map import (
    AuthorizableValueMap,
    EmptyValueMap,
    NestedAuthorizableValueMap,
)
from principalfs.kernel.domain.resources import AdaptTarget, NodeKind

PATHS = SystemUserManagerPaths.from_root()
PROFILE = f"{PATHS.user_prefix}alice/profile"


class TestResourceTypeFor:
    @pytest.mark.parametrize(
        ("kind", "is_group", "expected"),
        [
            (NodeKind.MANAGER_ROOT, False, "sling/userManager"),
            (NodeKind.USER_COLLECTION, False, "sling/users"),
            (NodeKind.GROUP_COLLECTION, False, "sling/groups"),
            (NodeKind.AUTHORIZABLE, False, "sling/user"),
            (NodeKind.AUTHORIZABLE, True, "sling/group"),
            (NodeKind.NESTED_PROPERTIES, False, "sling/user/properties"),
            (NodeKind.NESTED_PROPERTIES, True, "sling/group/properties"),
            (NodeKind.PRINCIPAL, True, "sling/group"),
        ],
    )
    def test_tags(self, kind: NodeKind, is_group: bool, expected: str) -> None:
        assert resource_type_for(kind, is_group=is_group) == expected


class TestContainerNode:
    def test_projects_to_nothing(self) -> None:
        node = container_node(PATHS.users_path, NodeKind.USER_COLLECTION)
        assert node.is_group is None
        assert node.name == "user"
        for target in AdaptTarget:
            assert node.adapt_to(target) is None
        assert isinstance(node.value_map(), EmptyValueMap)


class TestAuthorizableNode:
    def test_user_projections(self, store: InMemoryIdentityStore) -> None:
        alice = store.get_authorizable("alice")
        assert alice is not None
        node = authorizable_node(f"{PATHS.user_prefix}alice", alice, PATHS)

        assert node.resource_type == "sling/user"
        assert node.is_group is False
        assert node.name == "alice"
        assert node.adapt_to(AdaptTarget.AUTHORIZABLE) is alice
        assert node.adapt_to(AdaptTarget.USER) is alice
        assert node.adapt_to(AdaptTarget.GROUP) is None
        assert node.adapt_to(AdaptTarget.PRINCIPAL) is None
        assert isinstance(node.adapt_to(AdaptTarget.MAP), AuthorizableValueMap)

    def test_group_projections(self, store: InMemoryIdentityStore) -> None:
        staff = store.get_authorizable("staff")
        assert staff is not None
        node = authorizable_node(f"{PATHS.group_prefix}staff", staff, PATHS)

        assert node.resource_type == "sling/group"
        assert node.adapt_to(AdaptTarget.GROUP) is staff
        assert node.adapt_to(AdaptTarget.USER) is None
        assert node.value_map()["declaredMembers"] == [
            f"{PATHS.user_prefix}alice",
            f"{PATHS.group_prefix}admins",
        ]

    def test_tag_is_computed_once(self, store: InMemoryIdentityStore) -> None:
        alice = store.get_authorizable("alice")
        assert alice is not None
        node = authorizable_node(f"{PATHS.user_prefix}alice", alice, PATHS)
        store.reset_access_history()

        node.adapt_to(AdaptTarget.USER)
        node.adapt_to(AdaptTarget.GROUP)
        assert node.resource_type == "sling/user"
        assert store.get_access_history("is_group") == []

    def test_each_projection_is_a_fresh_view(self, store: InMemoryIdentityStore) -> None:
        alice = store.get_authorizable("alice")
        assert alice is not None
        node = authorizable_node(f"{PATHS.user_prefix}alice", alice, PATHS)
        assert node.value_map() is not node.value_map()


class TestNestedPropertiesNode:
    def test_projections(self, store: InMemoryIdentityStore) -> None:
        alice = store.get_authorizable("alice")
        assert alice is not None
        node = nested_properties_node(PROFILE, alice, "profile", PATHS)

        assert node.resource_type == "sling/user/properties"
        assert node.is_group is False
        assert node.name == "profile"
        assert node.adapt_to(AdaptTarget.USER) is alice
        view = node.adapt_to(AdaptTarget.VALUE_MAP)
        assert isinstance(view, NestedAuthorizableValueMap)
        assert view["nick"] == "ally"

    def test_differs_from_entity_node(self, store: InMemoryIdentityStore) -> None:
        alice = store.get_authorizable("alice")
        assert alice is not None
        entity = authorizable_node(f"{PATHS.user_prefix}alice", alice, PATHS)
        nested = nested_properties_node(PROFILE, alice, "profile", PATHS)
        assert entity != nested


class TestPrincipalNode:
    def test_projections(self) -> None:
        everyone = InMemoryPrincipal("everyone", group=True)
        node = principal_node(f"{PATHS.group_prefix}everyone", everyone)

        assert node.kind is NodeKind.PRINCIPAL
        assert node.resource_type == "sling/group"
        assert node.is_group is True
        assert project(node, AdaptTarget.PRINCIPAL) is everyone
        assert project(node, AdaptTarget.AUTHORIZABLE) is None
        assert project(node, AdaptTarget.GROUP) is None
        assert len(node.value_map()) == 0
