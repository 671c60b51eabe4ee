"""Resolution of user manager paths to resource nodes.

:class:`AuthorizableResourceProvider` classifies a virtual path, looks the
identifier up in the identity store and returns a
:class:`~principalfs.drivers.usermanager.resources.ResourceNode`. It also
lists the children of a node lazily, one store result at a time.

Examples
--------
Example usage::

    provider = AuthorizableResourceProvider(store)
    node = provider.resolve("/system/userManager/user/alice")
    node.value_map()["memberOf"]
    # ['/system/userManager/group/staff']

    with provider.list_children(provider.resolve("/system/userManager/group")) as children:
        for child in children:
            print(child.path, child.resource_type)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Self

from principalfs.drivers.usermanager.paths import SystemUserManagerPaths
from principalfs.drivers.usermanager.resources import (
    ResourceNode,
    authorizable_node,
    container_node,
    nested_properties_node,
    principal_node,
)
from principalfs.kernel.config import ProviderConfig
from principalfs.kernel.domain.resources import NodeKind, PrincipalSearchType
from principalfs.kernel.exceptions import ChildIterationError, StoreAccessError
from principalfs.kernel.logging import get_logger
from principalfs.kernel.ports.identity_store import StoreError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from types import TracebackType

    from principalfs.kernel.ports.identity_store import Authorizable, IdentityStore, Principal

logger = get_logger(__name__)

_DONE: Any = object()


class ChildIterator:
    """Single-pass lazy sequence of child nodes.

    Each store result is turned into a node only when the iterator is
    advanced; results mapped to ``None`` are skipped. Reaching the end raises
    :class:`StopIteration` once and releases the store cursor. Advancing
    again raises :class:`ChildIterationError`.

    Parameters
    ----------
    parent_path : str
        Path of the node whose children are listed
    source : Iterator
        Live store cursor (or any iterator of raw results)
    to_node : Callable
        Maps a raw result to a node, or ``None`` to skip it
    """

    def __init__(
        self,
        parent_path: str,
        source: Iterator[Any],
        to_node: Callable[[Any], ResourceNode | None],
    ) -> None:
        self.parent_path = parent_path
        self._source = source
        self._to_node = to_node
        self._peeked: Any = None
        self._exhausted = False
        self._closed = False

    def __iter__(self) -> Self:
        return self

    def _advance(self) -> ResourceNode | Any:
        while True:
            try:
                item = next(self._source)
            except StopIteration:
                return _DONE
            except StoreError as e:
                raise StoreAccessError(self.parent_path, f"listing children failed: {e}") from e
            try:
                node = self._to_node(item)
            except StoreError as e:
                raise StoreAccessError(self.parent_path, f"resolving child failed: {e}") from e
            if node is not None:
                return node

    def has_next(self) -> bool:
        """Whether another child is available, fetching it ahead if needed."""
        if self._exhausted:
            return False
        if self._peeked is None:
            self._peeked = self._advance()
        return self._peeked is not _DONE

    def __next__(self) -> ResourceNode:
        if self._exhausted:
            raise ChildIterationError(self.parent_path)
        if not self.has_next():
            self._exhausted = True
            self.close()
            raise StopIteration
        node, self._peeked = self._peeked, None
        return node

    def close(self) -> None:
        """Release the store cursor. Further advancing ends the sequence."""
        if self._closed:
            return
        self._closed = True
        self._peeked = _DONE
        release = getattr(self._source, "close", None)
        if callable(release):
            release()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class AuthorizableResourceProvider:
    """Maps user manager paths to resource nodes backed by an identity store.

    Parameters
    ----------
    store : IdentityStore
        Identity store holding users, groups and principals
    config : ProviderConfig | None
        Provider settings; defaults to ``ProviderConfig()``
    """

    def __init__(self, store: IdentityStore, config: ProviderConfig | None = None) -> None:
        self._store = store
        self._config = ProviderConfig()
        self._paths = SystemUserManagerPaths.from_root(self._config.provider_root)
        if config is not None:
            self.configure(config)

    @property
    def store(self) -> IdentityStore:
        return self._store

    @property
    def config(self) -> ProviderConfig:
        return self._config

    @property
    def paths(self) -> SystemUserManagerPaths:
        """Derived paths for the current provider root."""
        return self._paths

    def configure(self, config: ProviderConfig) -> None:
        """Apply new settings and recompute every derived path."""
        self._config = config
        self._paths = SystemUserManagerPaths.from_root(config.provider_root)
        logger.info(
            "User manager provider root set to {root} (nested resources: {nested})",
            root=self._paths.root_path,
            nested=config.resources_for_nested_properties,
        )

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, path: str) -> ResourceNode | None:
        """Return the node addressed by ``path``, or ``None`` if there is none.

        Raises
        ------
        StoreAccessError
            If the identity store fails while looking up the identifier.
        """
        paths = self._paths
        if path == paths.root_path:
            return container_node(path, NodeKind.MANAGER_ROOT)
        if path == paths.users_path:
            return container_node(path, NodeKind.USER_COLLECTION)
        if path == paths.groups_path:
            return container_node(path, NodeKind.GROUP_COLLECTION)

        if path.startswith(paths.user_prefix):
            remainder = path[len(paths.user_prefix) :]
        elif path.startswith(paths.group_prefix):
            remainder = path[len(paths.group_prefix) :]
        else:
            logger.debug("Path {} is outside the user manager tree", path)
            return None

        authorizable_id, sep, rel_prop_path = remainder.partition("/")
        if not authorizable_id or (sep and not rel_prop_path):
            return None
        if sep and not self._config.resources_for_nested_properties:
            logger.debug("Nested property resources are disabled, not resolving {}", path)
            return None

        authorizable = self._get_authorizable(path, authorizable_id)
        if authorizable is None:
            logger.debug("No authorizable '{}' for path {}", authorizable_id, path)
            return None
        if not sep:
            return authorizable_node(path, authorizable, paths)
        if not self._is_property_container(authorizable, rel_prop_path):
            logger.debug("'{}' holds no properties of '{}'", rel_prop_path, authorizable_id)
            return None
        return nested_properties_node(path, authorizable, rel_prop_path, paths)

    def get_child(self, node: ResourceNode, name: str) -> ResourceNode | None:
        """Resolve the child ``name`` of ``node``."""
        return self.resolve(f"{node.path.rstrip('/')}/{name}")

    def _get_authorizable(self, path: str, authorizable_id: str) -> Authorizable | None:
        try:
            return self._store.get_authorizable(authorizable_id)
        except StoreError as e:
            raise StoreAccessError(path, f"lookup of '{authorizable_id}' failed: {e}") from e

    @staticmethod
    def _is_property_container(authorizable: Authorizable, rel_prop_path: str) -> bool:
        try:
            return next(iter(authorizable.property_names(rel_prop_path)), None) is not None
        except StoreError as e:
            logger.debug("Cannot enumerate properties at '{}': {}", rel_prop_path, e)
            return False

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_children(self, node: ResourceNode) -> ChildIterator | None:
        """Lazily list the children of ``node``, or ``None`` if it has none.

        The manager root lists the two collections; collections list the
        principals of their kind; authorizable and nested property nodes list
        their nested property containers.

        Raises
        ------
        StoreAccessError
            If the identity store fails while starting or advancing the listing.
        """
        match node.kind:
            case NodeKind.MANAGER_ROOT:
                collections = [
                    container_node(self._paths.users_path, NodeKind.USER_COLLECTION),
                    container_node(self._paths.groups_path, NodeKind.GROUP_COLLECTION),
                ]
                return ChildIterator(node.path, iter(collections), lambda child: child)
            case NodeKind.USER_COLLECTION:
                return self._list_principals(node, PrincipalSearchType.NOT_GROUP)
            case NodeKind.GROUP_COLLECTION:
                return self._list_principals(node, PrincipalSearchType.GROUP)
            case NodeKind.AUTHORIZABLE | NodeKind.NESTED_PROPERTIES:
                return self._list_property_containers(node)
            case _:
                return None

    def _list_principals(
        self, node: ResourceNode, search_type: PrincipalSearchType
    ) -> ChildIterator:
        try:
            principals = self._store.find_principals(search_type)
        except StoreError as e:
            raise StoreAccessError(node.path, f"principal search failed: {e}") from e
        return ChildIterator(node.path, iter(principals), self._principal_to_node)

    def _principal_to_node(self, principal: Principal) -> ResourceNode:
        authorizable = self._store.get_authorizable(principal.name)
        if authorizable is None:
            path = self._paths.authorizable_path(principal.name, is_group=principal.is_group())
            return principal_node(path, principal)
        path = self._paths.authorizable_path(authorizable.id, is_group=authorizable.is_group())
        return authorizable_node(path, authorizable, self._paths)

    def _list_property_containers(self, node: ResourceNode) -> ChildIterator | None:
        authorizable = node.authorizable
        if authorizable is None or not self._config.resources_for_nested_properties:
            return None

        base = node.rel_prop_path
        entity_path = self._paths.authorizable_path(
            authorizable.id, is_group=authorizable.is_group()
        )

        def to_node(name: str) -> ResourceNode | None:
            rel_prop_path = f"{base}/{name}" if base else name
            if not self._is_property_container(authorizable, rel_prop_path):
                return None
            return nested_properties_node(
                f"{entity_path}/{rel_prop_path}", authorizable, rel_prop_path, self._paths
            )

        try:
            containers = authorizable.property_containers(base)
        except StoreError as e:
            raise StoreAccessError(node.path, f"listing property containers failed: {e}") from e

        children = ChildIterator(node.path, iter(containers), to_node)
        if not children.has_next():
            children.close()
            return None
        return children


__all__ = ["AuthorizableResourceProvider", "ChildIterator"]
