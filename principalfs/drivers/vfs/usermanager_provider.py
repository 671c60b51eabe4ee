"""VFS provider for the user manager tree.

Mounted at the provider root (``/system/userManager`` by default) and
delegating to :class:`~principalfs.drivers.usermanager.provider.AuthorizableResourceProvider`.

Paths
-----
- ``""`` → the manager root, listing ``user`` and ``group``
- ``user`` / ``group`` → collections, listing every user or group principal
- ``user/<id>`` / ``group/<id>`` → an authorizable; ``read`` returns its
  fully read property view as JSON
- ``user/<id>/<rel>`` → a nested property container of the authorizable
"""

from __future__ import annotations

import base64
import io
import json
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from principalfs.kernel.domain.resources import NodeKind
from principalfs.kernel.domain.vfs import DirEntry, StatResult
from principalfs.kernel.exceptions import StoreAccessError, VFSError
from principalfs.kernel.logging import get_logger
from principalfs.kernel.ports.identity_store import StoreError

if TYPE_CHECKING:
    from principalfs.drivers.usermanager.provider import AuthorizableResourceProvider
    from principalfs.drivers.usermanager.resources import ResourceNode

logger = get_logger(__name__)

_DESCRIPTIONS = {
    NodeKind.MANAGER_ROOT: "User manager root",
    NodeKind.USER_COLLECTION: "All users",
    NodeKind.GROUP_COLLECTION: "All groups",
}


def to_jsonable(value: Any) -> Any:
    """Convert a property view value into something ``json.dumps`` accepts.

    Streams are read and base64 encoded, dates become ISO-8601 strings and
    decimals their exact string form.
    """
    match value:
        case list() | tuple():
            return [to_jsonable(item) for item in value]
        case io.IOBase():
            with value:
                return base64.b64encode(value.read()).decode("ascii")
        case datetime() | date():
            return value.isoformat()
        case Decimal():
            return str(value)
        case _:
            return value


class UserManagerVFSProvider:
    """VFS provider for the user manager tree."""

    def __init__(self, provider: AuthorizableResourceProvider) -> None:
        self._provider = provider

    @property
    def mount_point(self) -> str:
        return self._provider.paths.root_path

    def absolute_path(self, relative_path: str) -> str:
        """Absolute virtual path of a path relative to the mount point."""
        path = relative_path.strip("/")
        return f"{self.mount_point}/{path}" if path else self.mount_point

    def _resolve(self, relative_path: str) -> ResourceNode:
        path = self.absolute_path(relative_path)
        try:
            node = self._provider.resolve(path)
        except StoreAccessError as e:
            raise VFSError(path, e.reason) from e
        if node is None:
            raise VFSError(path, "path not found")
        return node

    async def read(self, relative_path: str) -> str:
        """Read the properties of an authorizable or nested container as JSON."""
        node = self._resolve(relative_path)
        if node.kind.is_container:
            raise VFSError(node.path, "cannot read a collection; use readdir")

        try:
            data = {key: to_jsonable(value) for key, value in node.value_map().items()}
        except StoreError as e:
            raise VFSError(node.path, f"reading properties failed: {e}") from e
        return json.dumps(data, indent=2, default=str)

    async def readdir(self, relative_path: str) -> list[DirEntry]:
        """List the children of a path."""
        node = self._resolve(relative_path)
        try:
            children = self._provider.list_children(node)
            if children is None:
                raise VFSError(node.path, "no children")
            with children:
                return [
                    DirEntry(
                        name=child.name,
                        path=child.path,
                        kind=child.kind,
                        resource_type=child.resource_type,
                    )
                    for child in children
                ]
        except StoreAccessError as e:
            raise VFSError(node.path, e.reason) from e

    async def stat(self, relative_path: str) -> StatResult:
        """Get metadata about a path."""
        node = self._resolve(relative_path)
        tags: dict[str, str] = {}
        authorizable_id = None
        child_count = None

        match node.kind:
            case NodeKind.MANAGER_ROOT:
                description = _DESCRIPTIONS[node.kind]
                capabilities = ["list"]
                child_count = 2
            case NodeKind.USER_COLLECTION | NodeKind.GROUP_COLLECTION:
                description = _DESCRIPTIONS[node.kind]
                capabilities = ["list"]
            case _:
                if node.authorizable is None:
                    raise VFSError(node.path, "no authorizable behind this node")
                authorizable_id = node.authorizable.id
                kind = "Group" if node.is_group else "User"
                if node.rel_prop_path:
                    description = f"{kind} '{authorizable_id}' properties at '{node.rel_prop_path}'"
                    tags["rel_prop_path"] = node.rel_prop_path
                else:
                    description = f"{kind} '{authorizable_id}'"
                capabilities = ["read", "list"]

        return StatResult(
            path=node.path,
            kind=node.kind,
            resource_type=node.resource_type,
            description=description,
            authorizable_id=authorizable_id,
            child_count=child_count,
            capabilities=capabilities,
            tags=tags,
        )


__all__ = ["UserManagerVFSProvider", "to_jsonable"]
