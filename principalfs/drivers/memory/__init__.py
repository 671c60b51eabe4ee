"""In-memory identity store."""

from principalfs.drivers.memory.store import InMemoryIdentityStore

__all__ = ["InMemoryIdentityStore"]
