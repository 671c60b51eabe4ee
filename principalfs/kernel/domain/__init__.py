"""Domain layer exports for principalfs."""

from principalfs.kernel.domain.resources import (
    DEFAULT_PROVIDER_ROOT,
    AdaptTarget,
    NodeKind,
    PrincipalSearchType,
)
from principalfs.kernel.domain.values import PropertyType, TargetType
from principalfs.kernel.domain.vfs import DirEntry, StatResult

__all__ = [
    "DEFAULT_PROVIDER_ROOT",
    "AdaptTarget",
    "DirEntry",
    "NodeKind",
    "PrincipalSearchType",
    "PropertyType",
    "StatResult",
    "TargetType",
]
