"""VFS provider port: browse a subtree of the virtual namespace by path.

A provider is mounted at a path prefix (for the user manager, the configured
provider root) and answers requests for paths relative to that prefix. The
user manager provider delegates to
:class:`~principalfs.drivers.usermanager.provider.AuthorizableResourceProvider`.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from principalfs.kernel.domain.vfs import DirEntry, StatResult


@runtime_checkable
class VFSProvider(Protocol):
    """Mount point provider that handles a subtree of the namespace."""

    @abstractmethod
    async def read(self, relative_path: str) -> str:
        """Read the content at a relative path.

        Args
        ----
            relative_path: Path relative to this provider's mount point.

        Returns
        -------
            JSON-serialized content string.

        Raises
        ------
        VFSError
            If the path does not exist or cannot be read.
        """
        ...

    @abstractmethod
    async def readdir(self, relative_path: str) -> list[DirEntry]:
        """List the children of a relative path.

        Args
        ----
            relative_path: Path relative to this provider's mount point.
                Empty string means the mount point itself.

        Raises
        ------
        VFSError
            If the path does not exist or has no children.
        """
        ...

    @abstractmethod
    async def stat(self, relative_path: str) -> StatResult:
        """Get metadata about a relative path.

        Raises
        ------
        VFSError
            If the path does not exist.
        """
        ...


__all__ = ["VFSProvider"]
