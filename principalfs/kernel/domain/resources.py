"""Node kinds, projection targets and resource type tags of the user manager tree.

.. code-block:: text

    <root>                         sling/userManager   MANAGER_ROOT
    <root>/user                    sling/users         USER_COLLECTION
    <root>/group                   sling/groups        GROUP_COLLECTION
    <root>/user/<id>               sling/user          AUTHORIZABLE
    <root>/group/<id>              sling/group         AUTHORIZABLE
    <root>/user/<id>/<rel>         sling/user/properties   NESTED_PROPERTIES
    <root>/group/<id>/<rel>        sling/group/properties  NESTED_PROPERTIES
"""

from __future__ import annotations

from enum import StrEnum

DEFAULT_PROVIDER_ROOT = "/system/userManager"

RESOURCE_TYPE_USER_MANAGER = "sling/userManager"
RESOURCE_TYPE_USERS = "sling/users"
RESOURCE_TYPE_GROUPS = "sling/groups"
RESOURCE_TYPE_USER = "sling/user"
RESOURCE_TYPE_GROUP = "sling/group"
NESTED_PROPERTIES_SUFFIX = "/properties"


class NodeKind(StrEnum):
    """Variant tag of a resource node."""

    MANAGER_ROOT = "manager_root"
    USER_COLLECTION = "user_collection"
    GROUP_COLLECTION = "group_collection"
    AUTHORIZABLE = "authorizable"
    NESTED_PROPERTIES = "nested_properties"
    PRINCIPAL = "principal"

    @property
    def is_container(self) -> bool:
        """Whether nodes of this kind have no backing entity."""
        return self in (
            NodeKind.MANAGER_ROOT,
            NodeKind.USER_COLLECTION,
            NodeKind.GROUP_COLLECTION,
        )


class AdaptTarget(StrEnum):
    """What a resource node can be projected into."""

    MAP = "map"
    VALUE_MAP = "value_map"
    AUTHORIZABLE = "authorizable"
    USER = "user"
    GROUP = "group"
    PRINCIPAL = "principal"


class PrincipalSearchType(StrEnum):
    """Principal search filter understood by the identity store."""

    GROUP = "group"
    NOT_GROUP = "not_group"
    ALL = "all"


__all__ = [
    "DEFAULT_PROVIDER_ROOT",
    "NESTED_PROPERTIES_SUFFIX",
    "RESOURCE_TYPE_GROUP",
    "RESOURCE_TYPE_GROUPS",
    "RESOURCE_TYPE_USER",
    "RESOURCE_TYPE_USERS",
    "RESOURCE_TYPE_USER_MANAGER",
    "AdaptTarget",
    "NodeKind",
    "PrincipalSearchType",
]
