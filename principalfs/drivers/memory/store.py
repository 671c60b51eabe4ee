"""In-memory implementation of the identity store for development and testing.

Property values follow the conversions of a JCR-like repository: a long can
be read as a string, a numeric string as a long, a date as epoch
milliseconds, and so on. Anything else raises
:class:`~principalfs.kernel.ports.identity_store.ValueFormatError`.

Store fixtures can be loaded from YAML or JSON::

    users:
      alice:
        path: /home/users/a/alice
        properties:
          email: alice@example.com
          age: 42
          profile:
            nick: ally
    groups:
      staff:
        members: [alice]
    principals:
      - name: everyone
        group: true
"""

from __future__ import annotations

import io
import json
from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from principalfs.kernel.domain.resources import PrincipalSearchType
from principalfs.kernel.domain.values import PropertyType
from principalfs.kernel.logging import get_logger
from principalfs.kernel.ports.identity_store import (
    StoreError,
    UnsupportedStoreOperationError,
    ValueFormatError,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping, Sequence
    from typing import BinaryIO

logger = get_logger(__name__)

__all__ = [
    "InMemoryAuthorizable",
    "InMemoryBinary",
    "InMemoryIdentityStore",
    "InMemoryPrincipal",
    "InMemoryValue",
]

# ============================================================================
# Values
# ============================================================================


class InMemoryBinary:
    """Binary content kept as bytes."""

    def __init__(self, data: bytes) -> None:
        self.data = data

    def get_stream(self) -> BinaryIO:
        return io.BytesIO(self.data)

    def get_size(self) -> int:
        return len(self.data)


class InMemoryValue:
    """A single value cell with repository-style conversions."""

    def __init__(self, value: Any, value_type: PropertyType | None = None) -> None:
        self._type = value_type or self.infer_type(value)
        self._value = value

    @staticmethod
    def infer_type(value: Any) -> PropertyType:
        """Property type of a plain Python value.

        Raises
        ------
        TypeError
            If the value has no matching property type.
        """
        match value:
            case bool():
                return PropertyType.BOOLEAN
            case int():
                return PropertyType.LONG
            case float():
                return PropertyType.DOUBLE
            case Decimal():
                return PropertyType.DECIMAL
            case datetime() | date():
                return PropertyType.DATE
            case bytes() | bytearray():
                return PropertyType.BINARY
            case str():
                return PropertyType.STRING
            case _:
                raise TypeError(f"Unsupported property value type: {type(value).__name__}")

    @property
    def type(self) -> PropertyType:
        return self._type

    @property
    def raw(self) -> Any:
        return self._value

    def _fail(self, target: str) -> ValueFormatError:
        return ValueFormatError(f"Cannot convert {self._type} value {self._value!r} to {target}")

    def _datetime(self) -> datetime:
        value = self._value
        if isinstance(value, datetime):
            return value
        return datetime.combine(value, time(), tzinfo=UTC)

    def get_string(self) -> str:
        match self._type:
            case PropertyType.BOOLEAN:
                return "true" if self._value else "false"
            case PropertyType.DATE:
                return self._datetime().isoformat()
            case PropertyType.BINARY:
                try:
                    return bytes(self._value).decode("utf-8")
                except UnicodeDecodeError as e:
                    raise self._fail("string") from e
            case _:
                return str(self._value)

    def get_long(self) -> int:
        match self._type:
            case PropertyType.LONG:
                return self._value
            case PropertyType.DOUBLE | PropertyType.DECIMAL:
                return int(self._value)
            case PropertyType.DATE:
                return int(self._datetime().timestamp() * 1000)
            case PropertyType.BOOLEAN:
                raise self._fail("long")
            case _:
                text = self.get_string().strip()
                try:
                    return int(text)
                except ValueError:
                    try:
                        return int(Decimal(text))
                    except (InvalidOperation, ValueError, OverflowError) as e:
                        raise self._fail("long") from e

    def get_double(self) -> float:
        match self._type:
            case PropertyType.LONG | PropertyType.DOUBLE | PropertyType.DECIMAL:
                return float(self._value)
            case PropertyType.DATE:
                return self._datetime().timestamp() * 1000
            case PropertyType.BOOLEAN:
                raise self._fail("double")
            case _:
                try:
                    return float(self.get_string().strip())
                except ValueError as e:
                    raise self._fail("double") from e

    def get_decimal(self) -> Decimal:
        match self._type:
            case PropertyType.DECIMAL:
                return self._value
            case PropertyType.LONG | PropertyType.DOUBLE:
                return Decimal(str(self._value))
            case PropertyType.DATE:
                return Decimal(self.get_long())
            case PropertyType.BOOLEAN:
                raise self._fail("decimal")
            case _:
                try:
                    return Decimal(self.get_string().strip())
                except InvalidOperation as e:
                    raise self._fail("decimal") from e

    def get_boolean(self) -> bool:
        match self._type:
            case PropertyType.BOOLEAN:
                return self._value
            case PropertyType.STRING | PropertyType.BINARY | PropertyType.UNDEFINED:
                return self.get_string().strip().lower() == "true"
            case _:
                raise self._fail("boolean")

    def get_date(self) -> datetime:
        match self._type:
            case PropertyType.DATE:
                return self._datetime()
            case PropertyType.LONG | PropertyType.DOUBLE | PropertyType.DECIMAL:
                return datetime.fromtimestamp(float(self._value) / 1000, tz=UTC)
            case PropertyType.BOOLEAN:
                raise self._fail("date")
            case _:
                try:
                    return datetime.fromisoformat(self.get_string().strip())
                except ValueError as e:
                    raise self._fail("date") from e

    def get_binary(self) -> InMemoryBinary:
        if self._type is PropertyType.BINARY:
            return InMemoryBinary(bytes(self._value))
        return InMemoryBinary(self.get_string().encode("utf-8"))

    def __repr__(self) -> str:
        return f"InMemoryValue({self._value!r}, {self._type})"


def _to_cells(value: Any) -> list[InMemoryValue]:
    items = value if isinstance(value, list | tuple) else [value]
    return [item if isinstance(item, InMemoryValue) else InMemoryValue(item) for item in items]


def _flatten(properties: Mapping[str, Any], prefix: str = "") -> Iterator[tuple[str, Any]]:
    for name, value in properties.items():
        rel_path = f"{prefix}{name}"
        if isinstance(value, dict):
            yield from _flatten(value, f"{rel_path}/")
        else:
            yield rel_path, value


# ============================================================================
# Entities
# ============================================================================


@dataclass(frozen=True, slots=True)
class InMemoryPrincipal:
    """A principal returned by :meth:`InMemoryIdentityStore.find_principals`."""

    name: str
    group: bool = False

    def is_group(self) -> bool:
        return self.group


class InMemoryAuthorizable:
    """A user or group held by :class:`InMemoryIdentityStore`.

    Properties are stored flat, keyed by their relative path: ``profile/nick``
    is the property ``nick`` of the nested container ``profile``.
    """

    def __init__(
        self,
        store: InMemoryIdentityStore,
        authorizable_id: str,
        *,
        group: bool = False,
        path: str | None = None,
    ) -> None:
        self._store = store
        self._id = authorizable_id
        self._group = group
        self._path = path
        self.properties: dict[str, list[InMemoryValue]] = {}

    @property
    def id(self) -> str:
        return self._id

    def is_group(self) -> bool:
        self._store._record("is_group", self._id)
        return self._group

    def get_path(self) -> str:
        self._store._record("get_path", self._id)
        if self._path is None:
            raise UnsupportedStoreOperationError(f"Authorizable '{self._id}' has no store path")
        return self._path

    def has_property(self, rel_path: str) -> bool:
        self._store._record("has_property", f"{self._id}:{rel_path}")
        return rel_path.strip("/") in self.properties

    def get_property(self, rel_path: str) -> Sequence[InMemoryValue] | None:
        self._store._record("get_property", f"{self._id}:{rel_path}")
        cells = self.properties.get(rel_path.strip("/"))
        return list(cells) if cells is not None else None

    def _below(self, rel_path: str | None) -> Iterator[str]:
        """Remainders of the property keys below ``rel_path``."""
        if not rel_path:
            return iter(self.properties)
        prefix = f"{rel_path.strip('/')}/"
        return (key[len(prefix) :] for key in self.properties if key.startswith(prefix))

    def property_names(self, rel_path: str | None = None) -> Iterator[str]:
        self._store._record("property_names", f"{self._id}:{rel_path or ''}")
        remainders = list(self._below(rel_path))
        if rel_path and not remainders:
            raise StoreError(f"No property container '{rel_path}' on '{self._id}'")
        return iter([name for name in remainders if "/" not in name])

    def property_containers(self, rel_path: str | None = None) -> Iterator[str]:
        self._store._record("property_containers", f"{self._id}:{rel_path or ''}")
        containers = dict.fromkeys(
            name.split("/", 1)[0] for name in self._below(rel_path) if "/" in name
        )
        return iter(list(containers))

    def members(self, *, transitive: bool) -> Iterator[InMemoryAuthorizable]:
        self._store._record("members", self._id)
        if not self._group:
            return iter(())
        return iter(self._store._walk(self._id, self._store._declared_members, transitive))

    def memberships(self, *, transitive: bool) -> Iterator[InMemoryAuthorizable]:
        self._store._record("memberships", self._id)
        return iter(self._store._walk(self._id, self._store._declared_groups, transitive))

    def __repr__(self) -> str:
        kind = "group" if self._group else "user"
        return f"InMemoryAuthorizable({self._id!r}, {kind})"


# ============================================================================
# Store
# ============================================================================


class InMemoryIdentityStore:
    """In-memory identity store.

    Features:
    - Users and groups with flat, optionally nested properties
    - Declared group members with cycle-safe transitive expansion
    - Stand-alone principals without a backing authorizable
    - Access history tracking for every store call
    """

    def __init__(self) -> None:
        self._authorizables: dict[str, InMemoryAuthorizable] = {}
        self._members: dict[str, list[str]] = {}
        self._principals: dict[str, InMemoryPrincipal] = {}
        self.access_history: list[dict[str, Any]] = []

    # Access tracking -------------------------------------------------------

    def _record(self, operation: str, target: str) -> None:
        self.access_history.append({"operation": operation, "target": target})

    @property
    def access_count(self) -> int:
        """Number of store calls made so far."""
        return len(self.access_history)

    def get_access_history(self, operation: str | None = None) -> list[dict[str, Any]]:
        """Copy of the access history, optionally filtered by operation."""
        if operation is None:
            return self.access_history.copy()
        return [entry for entry in self.access_history if entry["operation"] == operation]

    def reset_access_history(self) -> None:
        self.access_history.clear()

    # IdentityStore ---------------------------------------------------------

    def get_authorizable(self, authorizable_id: str) -> InMemoryAuthorizable | None:
        self._record("get_authorizable", authorizable_id)
        return self._authorizables.get(authorizable_id)

    def find_principals(self, search_type: PrincipalSearchType) -> Iterator[InMemoryPrincipal]:
        self._record("find_principals", str(search_type))
        principals = [
            InMemoryPrincipal(a.id, a._group) for a in self._authorizables.values()
        ] + list(self._principals.values())
        match search_type:
            case PrincipalSearchType.GROUP:
                principals = [p for p in principals if p.group]
            case PrincipalSearchType.NOT_GROUP:
                principals = [p for p in principals if not p.group]
        return iter(principals)

    # Graph -----------------------------------------------------------------

    def _declared_members(self, group_id: str) -> list[str]:
        return self._members.get(group_id, [])

    def _declared_groups(self, authorizable_id: str) -> list[str]:
        return [gid for gid, members in self._members.items() if authorizable_id in members]

    def _walk(
        self, start: str, neighbours: Callable[[str], list[str]], transitive: bool
    ) -> list[InMemoryAuthorizable]:
        """Entities reachable from ``start``, each once, in breadth-first order."""
        seen = {start}
        result: list[InMemoryAuthorizable] = []
        queue = list(neighbours(start))
        while queue:
            current = queue.pop(0)
            if current in seen:
                continue
            seen.add(current)
            entity = self._authorizables.get(current)
            if entity is None:
                continue
            result.append(entity)
            if transitive:
                queue.extend(neighbours(current))
        return result

    # Fixture helpers -------------------------------------------------------

    def _add(
        self,
        authorizable_id: str,
        properties: Mapping[str, Any] | None,
        *,
        group: bool,
        path: str | None,
    ) -> InMemoryAuthorizable:
        if authorizable_id in self._authorizables:
            raise ValueError(f"Authorizable '{authorizable_id}' already exists")
        authorizable = InMemoryAuthorizable(self, authorizable_id, group=group, path=path)
        self._authorizables[authorizable_id] = authorizable
        for rel_path, value in _flatten(properties or {}):
            self.set_property(authorizable_id, rel_path, value)
        return authorizable

    def add_user(
        self,
        user_id: str,
        properties: Mapping[str, Any] | None = None,
        *,
        path: str | None = None,
    ) -> InMemoryAuthorizable:
        """Add a user. Nested dicts in ``properties`` become nested containers."""
        return self._add(user_id, properties, group=False, path=path)

    def add_group(
        self,
        group_id: str,
        properties: Mapping[str, Any] | None = None,
        *,
        members: Sequence[str] = (),
        path: str | None = None,
    ) -> InMemoryAuthorizable:
        """Add a group with optional declared members (which may be added later)."""
        group = self._add(group_id, properties, group=True, path=path)
        self._members[group_id] = []
        for member_id in members:
            self.add_member(group_id, member_id)
        return group

    def add_member(self, group_id: str, member_id: str) -> None:
        """Declare ``member_id`` a direct member of ``group_id``."""
        group = self._authorizables.get(group_id)
        if group is None or not group._group:
            raise ValueError(f"'{group_id}' is not a group")
        if member_id not in self._members[group_id]:
            self._members[group_id].append(member_id)

    def set_property(self, authorizable_id: str, rel_path: str, value: Any) -> None:
        """Set (or replace) the property at ``rel_path``; lists are multi-valued."""
        authorizable = self._authorizables.get(authorizable_id)
        if authorizable is None:
            raise KeyError(authorizable_id)
        authorizable.properties[rel_path.strip("/")] = _to_cells(value)

    def remove_property(self, authorizable_id: str, rel_path: str) -> None:
        self._authorizables[authorizable_id].properties.pop(rel_path.strip("/"), None)

    def add_principal(self, name: str, *, group: bool = False) -> InMemoryPrincipal:
        """Add a principal that has no backing authorizable."""
        principal = InMemoryPrincipal(name, group)
        self._principals[name] = principal
        return principal

    # Loaders ---------------------------------------------------------------

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> InMemoryIdentityStore:
        """Build a store from a ``users``/``groups``/``principals`` mapping.

        Raises
        ------
        ValueError
            If the mapping is malformed.
        """
        store = cls()
        users = data.get("users") or {}
        groups = data.get("groups") or {}
        if not isinstance(users, dict) or not isinstance(groups, dict):
            raise ValueError("'users' and 'groups' must be mappings of id to definition")

        for user_id, spec in users.items():
            spec = spec or {}
            store.add_user(str(user_id), spec.get("properties"), path=spec.get("path"))
        for group_id, spec in groups.items():
            spec = spec or {}
            store.add_group(str(group_id), spec.get("properties"), path=spec.get("path"))
        for group_id, spec in groups.items():
            for member_id in (spec or {}).get("members", []):
                store.add_member(str(group_id), str(member_id))

        for entry in data.get("principals") or []:
            if isinstance(entry, str):
                store.add_principal(entry)
            else:
                store.add_principal(str(entry["name"]), group=bool(entry.get("group", False)))

        logger.debug(
            "Loaded in-memory store with {} authorizables and {} principals",
            len(store._authorizables),
            len(store._principals),
        )
        return store

    @classmethod
    def from_file(cls, path: str | Path) -> InMemoryIdentityStore:
        """Load a store fixture from a YAML or JSON file."""
        file_path = Path(path)
        with file_path.open("r", encoding="utf-8") as f:
            data = json.load(f) if file_path.suffix == ".json" else yaml.safe_load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Store fixture {file_path} must contain a mapping")
        return cls.from_mapping(data)
