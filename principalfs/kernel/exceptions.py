"""Core exception hierarchy for principalfs.

All principalfs exceptions inherit from :class:`PrincipalFSError` so callers
can catch everything raised by the resolver, the property views and the VFS
surface in one place. Errors raised by the identity store itself live in
:mod:`principalfs.kernel.ports.identity_store` and are only wrapped where the
resolver turns them into fatal operation errors.
"""

from __future__ import annotations

# ============================================================================
# Base Exception
# ============================================================================


class PrincipalFSError(Exception):
    """Base exception for all principalfs errors."""

    pass


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigurationError(PrincipalFSError):
    """Raised when configuration is invalid or missing.

    Examples
    --------
    Example usage::

        raise ConfigurationError("provider_root", "must start with '/'")
    """

    def __init__(self, component: str, reason: str) -> None:
        """Initialize configuration error.

        Args
        ----
            component: Name of the setting or component with invalid configuration
            reason: Explanation of what's wrong
        """
        super().__init__(f"Configuration error in '{component}': {reason}")
        self.component = component
        self.reason = reason


# ============================================================================
# Resolution Errors
# ============================================================================


class StoreAccessError(PrincipalFSError):
    """Raised when the identity store fails while resolving or listing a path.

    The original store exception is always chained as ``__cause__``.

    Examples
    --------
    Example usage::

        raise StoreAccessError("/system/userManager/user/alice", "lookup failed") from exc
    """

    def __init__(self, path: str, reason: str) -> None:
        """Initialize store access error.

        Args
        ----
            path: The virtual path being resolved or listed
            reason: Explanation of what went wrong
        """
        super().__init__(f"Identity store error at '{path}': {reason}")
        self.path = path
        self.reason = reason


class ChildIterationError(PrincipalFSError, RuntimeError):
    """Raised when an exhausted child iterator is advanced again.

    Reaching the end of a child listing raises :class:`StopIteration` once;
    any further ``next()`` call is a programming error.
    """

    def __init__(self, parent_path: str) -> None:
        super().__init__(f"Children of '{parent_path}' have already been fully iterated")
        self.parent_path = parent_path


# ============================================================================
# Property View Errors
# ============================================================================


class ReadOnlyMappingError(PrincipalFSError, TypeError):
    """Raised on any attempt to modify an authorizable property view."""

    def __init__(self, operation: str) -> None:
        super().__init__(
            f"Authorizable property views are read-only; '{operation}' is not supported"
        )
        self.operation = operation


# ============================================================================
# VFS Errors
# ============================================================================


class VFSError(PrincipalFSError):
    """Raised when a VFS operation fails.

    Examples
    --------
    Example usage::

        raise VFSError("/system/userManager/user/nobody", "path not found")
    """

    def __init__(self, path: str, reason: str) -> None:
        """Initialize VFS error.

        Args
        ----
            path: The VFS path that caused the error
            reason: Explanation of what went wrong
        """
        super().__init__(f"VFS error at '{path}': {reason}")
        self.path = path
        self.reason = reason


__all__ = [
    "ChildIterationError",
    "ConfigurationError",
    "PrincipalFSError",
    "ReadOnlyMappingError",
    "StoreAccessError",
    "VFSError",
]
