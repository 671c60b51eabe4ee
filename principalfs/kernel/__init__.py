"""principalfs kernel - the public API.

Driver code (``principalfs.drivers.*``) and the CLI may import from kernel
submodules; applications should import from here.

The exports are grouped by category:
- Domain types
- Port protocols
- Type coercion and streams
- Configuration
- Exceptions
- Logging
"""

# ============================================================================
# Domain types
# ============================================================================
from principalfs.kernel.domain import (
    DEFAULT_PROVIDER_ROOT,
    AdaptTarget,
    DirEntry,
    NodeKind,
    PrincipalSearchType,
    PropertyType,
    StatResult,
    TargetType,
)

# ============================================================================
# Port protocols
# ============================================================================
from principalfs.kernel.ports import (
    Authorizable,
    Binary,
    IdentityStore,
    Principal,
    PropertyValue,
    StoreError,
    UnsupportedStoreOperationError,
    ValueFormatError,
    VFSProvider,
)

# ============================================================================
# Type coercion and streams
# ============================================================================
from principalfs.kernel.conversion import (
    coerce_object,
    convert_values,
    target_for_default,
    to_python,
    values_to_python,
)
from principalfs.kernel.streams import LazyInputStream

# ============================================================================
# Configuration
# ============================================================================
from principalfs.kernel.config import (
    LoggingConfig,
    PrincipalFSConfig,
    ProviderConfig,
    load_config,
)

# ============================================================================
# Exceptions
# ============================================================================
from principalfs.kernel.exceptions import (
    ChildIterationError,
    ConfigurationError,
    PrincipalFSError,
    ReadOnlyMappingError,
    StoreAccessError,
    VFSError,
)

# ============================================================================
# Logging
# ============================================================================
from principalfs.kernel.logging import configure_logging, get_logger

__all__ = [
    "DEFAULT_PROVIDER_ROOT",
    "AdaptTarget",
    "Authorizable",
    "Binary",
    "ChildIterationError",
    "ConfigurationError",
    "DirEntry",
    "IdentityStore",
    "LazyInputStream",
    "LoggingConfig",
    "NodeKind",
    "Principal",
    "PrincipalFSConfig",
    "PrincipalFSError",
    "PrincipalSearchType",
    "PropertyType",
    "PropertyValue",
    "ProviderConfig",
    "ReadOnlyMappingError",
    "StatResult",
    "StoreAccessError",
    "StoreError",
    "TargetType",
    "UnsupportedStoreOperationError",
    "VFSError",
    "VFSProvider",
    "ValueFormatError",
    "coerce_object",
    "configure_logging",
    "convert_values",
    "get_logger",
    "load_config",
    "target_for_default",
    "to_python",
    "values_to_python",
]
