"""User manager tree: path algebra, property views, nodes and the resolver."""

from principalfs.drivers.usermanager.paths import SystemUserManagerPaths
from principalfs.drivers.usermanager.provider import AuthorizableResourceProvider, ChildIterator
from principalfs.drivers.usermanager.resources import ResourceNode, project
from principalfs.drivers.usermanager.value_map import (
    AuthorizableValueMap,
    BaseAuthorizableValueMap,
    EmptyValueMap,
    NestedAuthorizableValueMap,
)

__all__ = [
    "AuthorizableResourceProvider",
    "AuthorizableValueMap",
    "BaseAuthorizableValueMap",
    "ChildIterator",
    "EmptyValueMap",
    "NestedAuthorizableValueMap",
    "ResourceNode",
    "SystemUserManagerPaths",
    "project",
]
