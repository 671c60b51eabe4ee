"""VFS providers."""

from principalfs.drivers.vfs.usermanager_provider import UserManagerVFSProvider

__all__ = ["UserManagerVFSProvider"]
