"""Read-only, lazily populated property views over users and groups.

A view answers point lookups one key at a time and caches every answer. Bulk
access (``len``, iteration, ``keys``/``values``/``items``, equality) reads
everything once and marks the view *fully read*; from then on the view never
goes back to the store and reflects the snapshot taken at that moment.

Besides the properties held by the store, the root view of an authorizable
exposes synthetic keys computed from the membership graph and the canonical
store path:

============================ ============================================
``members``                  transitive members of a group
``declaredMembers``          direct members of a group
``memberOf``                 groups the authorizable belongs to, transitively
``declaredMemberOf``         groups the authorizable directly belongs to
``path``                     canonical store path, absent if unsupported
============================ ============================================

Synthetic names are reserved: a stored property with the same name is never
returned in their place.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, NoReturn

from principalfs.kernel.conversion import (
    coerce_object,
    convert_values,
    target_for_default,
    values_to_python,
)
from principalfs.kernel.exceptions import ReadOnlyMappingError
from principalfs.kernel.logging import get_logger
from principalfs.kernel.ports.identity_store import StoreError, UnsupportedStoreOperationError

if TYPE_CHECKING:
    from principalfs.drivers.usermanager.paths import SystemUserManagerPaths
    from principalfs.kernel.domain.values import TargetType
    from principalfs.kernel.ports.identity_store import Authorizable

logger = get_logger(__name__)

_MISSING: Any = object()


class _ReadOnlyMapping(Mapping[str, Any]):
    """Mapping whose mutators fail loudly instead of being absent."""

    def _read_only(self, operation: str) -> NoReturn:
        raise ReadOnlyMappingError(operation)

    def __setitem__(self, key: str, value: Any) -> NoReturn:
        self._read_only("__setitem__")

    def __delitem__(self, key: str) -> NoReturn:
        self._read_only("__delitem__")

    def clear(self) -> NoReturn:
        self._read_only("clear")

    def update(self, *args: Any, **kwargs: Any) -> NoReturn:
        self._read_only("update")

    def pop(self, key: str, *args: Any) -> NoReturn:
        self._read_only("pop")

    def popitem(self) -> NoReturn:
        self._read_only("popitem")

    def setdefault(self, key: str, default: Any = None) -> NoReturn:
        self._read_only("setdefault")


class EmptyValueMap(_ReadOnlyMapping):
    """Immutable empty view, the projection of nodes without properties."""

    def __getitem__(self, key: str) -> Any:
        raise KeyError(key)

    def __iter__(self) -> Iterator[str]:
        return iter(())

    def __len__(self) -> int:
        return 0

    def get_as(self, key: str, target: TargetType, *, array: bool = False) -> Any:
        return None

    def __repr__(self) -> str:
        return "EmptyValueMap()"


# ============================================================================
# Synthetic keys
# ============================================================================


@dataclass(frozen=True, slots=True)
class SyntheticKey:
    """A computed key of the root view.

    Attributes
    ----------
    name : str
        Key under which the value is exposed.
    compute : Callable
        Produces the value for a view; ``None`` means absent.
    groups_only : bool
        Whether the key only exists on group views.
    """

    name: str
    compute: Callable[[BaseAuthorizableValueMap], Any]
    groups_only: bool = False

    def applies_to(self, authorizable: Authorizable) -> bool:
        return not self.groups_only or authorizable.is_group()


def _format_related(view: BaseAuthorizableValueMap, related: Iterator[Authorizable]) -> list[str]:
    paths = view.paths
    return [paths.authorizable_path(a.id, is_group=a.is_group()) for a in related]


def _canonical_path(view: BaseAuthorizableValueMap) -> str | None:
    try:
        return view.authorizable.get_path()
    except UnsupportedStoreOperationError:
        logger.debug("Authorizable '{}' has no store path", view.authorizable.id)
        return None


# Order matters: single-key reads and full reads both walk this table first.
ROOT_SYNTHETIC_KEYS: tuple[SyntheticKey, ...] = (
    SyntheticKey(
        "members",
        lambda v: _format_related(v, v.authorizable.members(transitive=True)),
        groups_only=True,
    ),
    SyntheticKey(
        "declaredMembers",
        lambda v: _format_related(v, v.authorizable.members(transitive=False)),
        groups_only=True,
    ),
    SyntheticKey(
        "memberOf",
        lambda v: _format_related(v, v.authorizable.memberships(transitive=True)),
    ),
    SyntheticKey(
        "declaredMemberOf",
        lambda v: _format_related(v, v.authorizable.memberships(transitive=False)),
    ),
    SyntheticKey("path", _canonical_path),
)


# ============================================================================
# Views
# ============================================================================


class BaseAuthorizableValueMap(_ReadOnlyMapping):
    """Cached, read-only view over the properties of one authorizable.

    Subclasses decide which synthetic keys apply, where stored properties
    live and how direct property names are enumerated.

    Parameters
    ----------
    authorizable : Authorizable
        The user or group backing the view
    paths : SystemUserManagerPaths
        Path algebra used to format membership paths
    """

    def __init__(self, authorizable: Authorizable, paths: SystemUserManagerPaths) -> None:
        self.authorizable = authorizable
        self.paths = paths
        self._cache: dict[str, Any] = {}
        self._fully_read = False
        self._synthetic: dict[str, SyntheticKey] | None = None

    # Hooks -----------------------------------------------------------------

    def _synthetic_table(self) -> tuple[SyntheticKey, ...]:
        return ()

    def _stored_name(self, key: str) -> str:
        return key

    def _direct_property_names(self) -> Iterator[str]:
        return self.authorizable.property_names()

    # Internals -------------------------------------------------------------

    @property
    def fully_read(self) -> bool:
        """Whether every key has been materialized."""
        return self._fully_read

    def _synthetic_keys(self) -> dict[str, SyntheticKey]:
        if self._synthetic is None:
            self._synthetic = {
                sk.name: sk for sk in self._synthetic_table() if sk.applies_to(self.authorizable)
            }
        return self._synthetic

    def _read(self, key: str) -> Any:
        """Look one key up in the store and cache it if found."""
        if self._fully_read:
            return _MISSING

        synthetic = self._synthetic_keys().get(key)
        if synthetic is not None:
            value = synthetic.compute(self)
        else:
            stored = self._stored_name(key)
            if not self.authorizable.has_property(stored):
                return _MISSING
            value = values_to_python(self.authorizable.get_property(stored))

        if value is None:
            return _MISSING
        self._cache[key] = value
        return value

    def _lookup(self, key: str) -> Any:
        if key in self._cache:
            return self._cache[key]
        return self._read(key)

    def read_fully(self) -> None:
        """Materialize every key.

        Synthetic keys come first, in table order, then every direct property
        name the store reports. Entries cached before a store failure stay
        cached; the view is only marked fully read once everything succeeded.
        """
        if self._fully_read:
            return

        synthetic = self._synthetic_keys()
        for name, sk in synthetic.items():
            if name not in self._cache:
                value = sk.compute(self)
                if value is not None:
                    self._cache[name] = value

        for name in self._direct_property_names():
            if name in synthetic or name in self._cache:
                continue
            value = values_to_python(self.authorizable.get_property(self._stored_name(name)))
            if value is not None:
                self._cache[name] = value

        self._fully_read = True
        logger.debug(
            "Fully read {} keys of '{}'", len(self._cache), self.authorizable.id
        )

    # Mapping ---------------------------------------------------------------

    def __getitem__(self, key: str) -> Any:
        value = self._lookup(key)
        if value is _MISSING:
            raise KeyError(key)
        return value

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._lookup(key) is not _MISSING

    def __iter__(self) -> Iterator[str]:
        self.read_fully()
        return iter(list(self._cache))

    def __len__(self) -> int:
        self.read_fully()
        return len(self._cache)

    def get(self, key: str, default: Any = None) -> Any:
        """Value of ``key``, or ``default`` when absent.

        A non-``None`` default also selects the type of the result: the value
        is read as the target matching ``default``'s runtime type (a ``list``
        default reads an array of its first element's type).

        Examples
        --------
        >>> view.get("age", 0)  # doctest: +SKIP
        42
        >>> view.get("aliases", [""])  # doctest: +SKIP
        ['al', 'ally']
        """
        if default is None:
            value = self._lookup(key)
            return None if value is _MISSING else value

        array = isinstance(default, list)
        sample = default[0] if array and default else default
        target = None if array and not default else target_for_default(sample)
        if target is None:
            value = self._lookup(key)
            return default if value is _MISSING else value

        value = self.get_as(key, target, array=array)
        return default if value is None else value

    def get_as(self, key: str, target: TargetType, *, array: bool = False) -> Any:
        """Read ``key`` converted to ``target``, or ``None`` if unconvertible.

        Stored properties are converted cell by cell straight from the store,
        regardless of what the generic lookup cached. Synthetic keys are
        converted from their computed value.

        Typed reads are never served from the snapshot, so they still reach
        the store after :meth:`read_fully` and may see properties added since.
        """
        if key in self._synthetic_keys():
            value = self._lookup(key)
            return None if value is _MISSING else coerce_object(value, target, array=array)

        stored = self._stored_name(key)
        if not self.authorizable.has_property(stored):
            return None
        return convert_values(self.authorizable.get_property(stored), target, array=array)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(id={self.authorizable.id!r}, "
            f"cached={len(self._cache)}, fully_read={self._fully_read})"
        )


class AuthorizableValueMap(BaseAuthorizableValueMap):
    """Root view of a user or group, including the synthetic keys."""

    def _synthetic_table(self) -> tuple[SyntheticKey, ...]:
        return ROOT_SYNTHETIC_KEYS


class NestedAuthorizableValueMap(BaseAuthorizableValueMap):
    """View scoped to a nested property container such as ``profile``.

    Keys are relative to the container: ``get("nick")`` reads the stored
    property ``profile/nick``.
    """

    def __init__(
        self, authorizable: Authorizable, paths: SystemUserManagerPaths, rel_prop_path: str
    ) -> None:
        super().__init__(authorizable, paths)
        self.rel_prop_path = rel_prop_path.strip("/")

    def _stored_name(self, key: str) -> str:
        return f"{self.rel_prop_path}/{key}"

    def _direct_property_names(self) -> Iterator[str]:
        try:
            names = list(self.authorizable.property_names(self.rel_prop_path))
        except StoreError as e:
            # The container may have been emptied since the node was resolved
            logger.debug("Cannot enumerate properties at '{}': {}", self.rel_prop_path, e)
            names = []
        return iter(names)

    def __repr__(self) -> str:
        return (
            f"NestedAuthorizableValueMap(id={self.authorizable.id!r}, "
            f"rel_prop_path={self.rel_prop_path!r}, fully_read={self._fully_read})"
        )


__all__ = [
    "ROOT_SYNTHETIC_KEYS",
    "AuthorizableValueMap",
    "BaseAuthorizableValueMap",
    "EmptyValueMap",
    "NestedAuthorizableValueMap",
    "SyntheticKey",
]
