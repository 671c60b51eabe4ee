"""Resource nodes of the user manager tree and their projections.

A :class:`ResourceNode` is one addressable point of the tree. Its
:class:`~principalfs.kernel.domain.resources.NodeKind` decides both the
resource type tag and what the node can be projected into:

- container nodes (manager root, collections) project to nothing;
- authorizable nodes project to their root property view or the backing
  user/group;
- nested property nodes project to a view scoped into the authorizable;
- principal nodes (principals without a backing authorizable) project to
  the principal and an empty view.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from principalfs.drivers.usermanager.value_map import (
    AuthorizableValueMap,
    EmptyValueMap,
    NestedAuthorizableValueMap,
)
from principalfs.kernel.domain.resources import (
    NESTED_PROPERTIES_SUFFIX,
    RESOURCE_TYPE_GROUP,
    RESOURCE_TYPE_GROUPS,
    RESOURCE_TYPE_USER,
    RESOURCE_TYPE_USER_MANAGER,
    RESOURCE_TYPE_USERS,
    AdaptTarget,
    NodeKind,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from principalfs.drivers.usermanager.paths import SystemUserManagerPaths
    from principalfs.kernel.ports.identity_store import Authorizable, Principal


def resource_type_for(kind: NodeKind, *, is_group: bool = False) -> str:
    """Resource type tag of a node of ``kind``.

    ``is_group`` is the actual kind of the backing entity and only matters
    for authorizable, nested property and principal nodes.
    """
    entity_type = RESOURCE_TYPE_GROUP if is_group else RESOURCE_TYPE_USER
    match kind:
        case NodeKind.MANAGER_ROOT:
            return RESOURCE_TYPE_USER_MANAGER
        case NodeKind.USER_COLLECTION:
            return RESOURCE_TYPE_USERS
        case NodeKind.GROUP_COLLECTION:
            return RESOURCE_TYPE_GROUPS
        case NodeKind.NESTED_PROPERTIES:
            return f"{entity_type}{NESTED_PROPERTIES_SUFFIX}"
        case NodeKind.AUTHORIZABLE | NodeKind.PRINCIPAL:
            return entity_type


@dataclass(frozen=True, slots=True)
class ResourceNode:
    """An addressable node of the user manager tree.

    Attributes
    ----------
    path : str
        Virtual path the node was resolved or listed under.
    kind : NodeKind
        Variant of the node.
    resource_type : str
        Tag computed once from ``kind`` and the entity's kind at construction.
    authorizable : Authorizable | None
        Backing user or group, ``None`` for containers and principal nodes.
    principal : Principal | None
        Backing principal of a principal node.
    rel_prop_path : str | None
        Relative property path of a nested property node.
    paths : SystemUserManagerPaths | None
        Path algebra used by the property views.
    """

    path: str
    kind: NodeKind
    resource_type: str
    authorizable: Authorizable | None = field(default=None, compare=False)
    principal: Principal | None = field(default=None, compare=False)
    rel_prop_path: str | None = None
    paths: SystemUserManagerPaths | None = field(default=None, compare=False, repr=False)

    @property
    def name(self) -> str:
        """Last segment of the path."""
        return self.path.rstrip("/").rsplit("/", 1)[-1]

    @property
    def is_group(self) -> bool | None:
        """Whether the node was tagged as a group, ``None`` for container nodes."""
        if self.kind.is_container:
            return None
        return self.resource_type.removesuffix(NESTED_PROPERTIES_SUFFIX) == RESOURCE_TYPE_GROUP

    def adapt_to(self, target: AdaptTarget) -> Any:
        """Project this node, see :func:`project`."""
        return project(self, target)

    def value_map(self) -> Mapping[str, Any]:
        """Property view of this node, empty when the node has none."""
        view = project(self, AdaptTarget.VALUE_MAP)
        return view if view is not None else EmptyValueMap()


def container_node(path: str, kind: NodeKind) -> ResourceNode:
    """Node for the manager root or a collection; no entity backs it."""
    return ResourceNode(path=path, kind=kind, resource_type=resource_type_for(kind))


def authorizable_node(
    path: str, authorizable: Authorizable, paths: SystemUserManagerPaths
) -> ResourceNode:
    return ResourceNode(
        path=path,
        kind=NodeKind.AUTHORIZABLE,
        resource_type=resource_type_for(NodeKind.AUTHORIZABLE, is_group=authorizable.is_group()),
        authorizable=authorizable,
        paths=paths,
    )


def nested_properties_node(
    path: str, authorizable: Authorizable, rel_prop_path: str, paths: SystemUserManagerPaths
) -> ResourceNode:
    return ResourceNode(
        path=path,
        kind=NodeKind.NESTED_PROPERTIES,
        resource_type=resource_type_for(
            NodeKind.NESTED_PROPERTIES, is_group=authorizable.is_group()
        ),
        authorizable=authorizable,
        rel_prop_path=rel_prop_path,
        paths=paths,
    )


def principal_node(path: str, principal: Principal) -> ResourceNode:
    return ResourceNode(
        path=path,
        kind=NodeKind.PRINCIPAL,
        resource_type=resource_type_for(NodeKind.PRINCIPAL, is_group=principal.is_group()),
        principal=principal,
    )


def project(node: ResourceNode, target: AdaptTarget) -> Any:
    """Project ``node`` into ``target``.

    Returns
    -------
    Any
        A fresh property view for ``MAP``/``VALUE_MAP``, the backing entity
        for ``AUTHORIZABLE`` or the matching ``USER``/``GROUP``, the principal
        for ``PRINCIPAL``, otherwise ``None``.
    """
    entity, paths = node.authorizable, node.paths
    has_view = entity is not None and paths is not None
    match node.kind, target:
        case NodeKind.AUTHORIZABLE, AdaptTarget.MAP | AdaptTarget.VALUE_MAP if has_view:
            return AuthorizableValueMap(entity, paths)
        case NodeKind.NESTED_PROPERTIES, AdaptTarget.MAP | AdaptTarget.VALUE_MAP if has_view:
            return NestedAuthorizableValueMap(entity, paths, node.rel_prop_path or "")
        case NodeKind.PRINCIPAL, AdaptTarget.MAP | AdaptTarget.VALUE_MAP:
            return EmptyValueMap()
        case NodeKind.PRINCIPAL, AdaptTarget.PRINCIPAL:
            return node.principal
        case NodeKind.AUTHORIZABLE | NodeKind.NESTED_PROPERTIES, AdaptTarget.AUTHORIZABLE:
            return node.authorizable
        case NodeKind.AUTHORIZABLE | NodeKind.NESTED_PROPERTIES, AdaptTarget.USER:
            return node.authorizable if node.is_group is False else None
        case NodeKind.AUTHORIZABLE | NodeKind.NESTED_PROPERTIES, AdaptTarget.GROUP:
            return node.authorizable if node.is_group else None
        case _:
            return None


__all__ = [
    "ResourceNode",
    "authorizable_node",
    "container_node",
    "nested_properties_node",
    "principal_node",
    "project",
    "resource_type_for",
]
