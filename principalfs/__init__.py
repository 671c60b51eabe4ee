"""principalfs - users and groups of an identity store as a virtual tree.

Paths such as ``/system/userManager/user/alice`` resolve to resource nodes
whose property views expose the stored properties of the authorizable plus
membership and path keys computed from the store.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("principalfs")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"  # Fallback for source checkouts

from principalfs.drivers.memory.store import InMemoryIdentityStore
from principalfs.drivers.usermanager.provider import AuthorizableResourceProvider
from principalfs.drivers.usermanager.resources import ResourceNode
from principalfs.drivers.usermanager.value_map import (
    AuthorizableValueMap,
    NestedAuthorizableValueMap,
)
from principalfs.drivers.vfs.usermanager_provider import UserManagerVFSProvider
from principalfs.kernel.config import ProviderConfig, load_config

__all__ = [
    "AuthorizableResourceProvider",
    "AuthorizableValueMap",
    "InMemoryIdentityStore",
    "NestedAuthorizableValueMap",
    "ProviderConfig",
    "ResourceNode",
    "UserManagerVFSProvider",
    "__version__",
    "load_config",
]
