"""Identity store port (the external service holding users and groups).

principalfs never owns identities. It reads them through the protocols in
this module, which mirror what a user-management repository exposes:

- :class:`IdentityStore` looks authorizables up by identifier and searches
  principals.
- :class:`Authorizable` gives access to one user or group: its properties
  (possibly nested under relative paths such as ``profile/nick``), its
  canonical store path and its group memberships.
- :class:`PropertyValue` is a single store-native value cell.

Every store call may raise :class:`StoreError`. Property views let these
propagate; the resolver wraps them in
:class:`~principalfs.kernel.exceptions.StoreAccessError`.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, BinaryIO, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from datetime import datetime
    from decimal import Decimal

    from principalfs.kernel.domain.resources import PrincipalSearchType
    from principalfs.kernel.domain.values import PropertyType


class StoreError(Exception):
    """Raised by an identity store when an operation fails."""


class ValueFormatError(StoreError):
    """Raised when a value cell cannot be read as the requested type."""


class UnsupportedStoreOperationError(StoreError):
    """Raised when the store does not support an operation for an entity."""


@runtime_checkable
class Binary(Protocol):
    """Binary content held by a value cell."""

    @abstractmethod
    def get_stream(self) -> BinaryIO:
        """Open a new byte stream over the content."""
        ...

    @abstractmethod
    def get_size(self) -> int:
        """Size of the content in bytes."""
        ...


@runtime_checkable
class PropertyValue(Protocol):
    """A store-native value cell.

    Each getter raises :class:`ValueFormatError` when the cell cannot be
    represented as that type.
    """

    @property
    @abstractmethod
    def type(self) -> PropertyType:
        """Native type of this cell."""
        ...

    @abstractmethod
    def get_string(self) -> str: ...

    @abstractmethod
    def get_long(self) -> int: ...

    @abstractmethod
    def get_double(self) -> float: ...

    @abstractmethod
    def get_decimal(self) -> Decimal: ...

    @abstractmethod
    def get_boolean(self) -> bool: ...

    @abstractmethod
    def get_date(self) -> datetime: ...

    @abstractmethod
    def get_binary(self) -> Binary: ...


@runtime_checkable
class Principal(Protocol):
    """A security principal returned by a principal search."""

    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def is_group(self) -> bool: ...


@runtime_checkable
class Authorizable(Protocol):
    """A user or group held by the identity store."""

    @property
    @abstractmethod
    def id(self) -> str:
        """Unique identifier of the authorizable."""
        ...

    @abstractmethod
    def is_group(self) -> bool: ...

    @abstractmethod
    def get_path(self) -> str:
        """Canonical store path of this authorizable.

        Raises
        ------
        UnsupportedStoreOperationError
            If the store has no path concept for this kind of entity.
        """
        ...

    @abstractmethod
    def has_property(self, rel_path: str) -> bool: ...

    @abstractmethod
    def get_property(self, rel_path: str) -> Sequence[PropertyValue] | None:
        """Values of the property at ``rel_path``, or ``None`` if there is none."""
        ...

    @abstractmethod
    def property_names(self, rel_path: str | None = None) -> Iterator[str]:
        """Names of the properties directly at ``rel_path`` (the root if ``None``).

        Raises
        ------
        StoreError
            If ``rel_path`` is not a valid location inside this authorizable.
        """
        ...

    @abstractmethod
    def property_containers(self, rel_path: str | None = None) -> Iterator[str]:
        """Names of the nested property containers directly below ``rel_path``."""
        ...

    @abstractmethod
    def members(self, *, transitive: bool) -> Iterator[Authorizable]:
        """Members of this group, either declared only or transitively expanded."""
        ...

    @abstractmethod
    def memberships(self, *, transitive: bool) -> Iterator[Authorizable]:
        """Groups this authorizable belongs to, declared or transitive."""
        ...


@runtime_checkable
class IdentityStore(Protocol):
    """Lookup and search entry point of the identity store."""

    @abstractmethod
    def get_authorizable(self, authorizable_id: str) -> Authorizable | None:
        """Return the authorizable with this identifier, or ``None``."""
        ...

    @abstractmethod
    def find_principals(self, search_type: PrincipalSearchType) -> Iterator[Principal]:
        """Iterate principals matching the search filter, in store order."""
        ...


__all__ = [
    "Authorizable",
    "Binary",
    "IdentityStore",
    "Principal",
    "PropertyValue",
    "StoreError",
    "UnsupportedStoreOperationError",
    "ValueFormatError",
]
