"""Port interfaces for principalfs."""

from principalfs.kernel.ports.identity_store import (
    Authorizable,
    Binary,
    IdentityStore,
    Principal,
    PropertyValue,
    StoreError,
    UnsupportedStoreOperationError,
    ValueFormatError,
)
from principalfs.kernel.ports.vfs import VFSProvider

__all__ = [
    "Authorizable",
    "Binary",
    "IdentityStore",
    "Principal",
    "PropertyValue",
    "StoreError",
    "UnsupportedStoreOperationError",
    "VFSProvider",
    "ValueFormatError",
]
