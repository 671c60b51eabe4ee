"""Domain models returned by the VFS surface of the user manager tree.

Fields are chosen for callers browsing identities (CLIs, agents), not for
filesystem metadata.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from principalfs.kernel.domain.resources import NodeKind


class DirEntry(BaseModel):
    """A single child in a user manager listing."""

    name: str
    path: str
    kind: NodeKind
    resource_type: str


class StatResult(BaseModel):
    """Metadata about a user manager path.

    Attributes
    ----------
    path : str
        Absolute virtual path.
    kind : NodeKind
        Variant of the node the path resolved to.
    resource_type : str
        Resource type tag, e.g. ``sling/user`` or ``sling/group/properties``.
    description : str | None
        Human-readable summary.
    authorizable_id : str | None
        Identifier of the backing user or group, if any.
    child_count : int | None
        Number of children, only filled in where it is cheap to compute.
    capabilities : list[str]
        Operations available on the path (``read``, ``list``).
    tags : dict[str, str]
        Extra labels such as the nested relative property path.
    """

    path: str
    kind: NodeKind
    resource_type: str
    description: str | None = None
    authorizable_id: str | None = None
    child_count: int | None = None
    capabilities: list[str] = Field(default_factory=list)
    tags: dict[str, str] = Field(default_factory=dict)


__all__ = ["DirEntry", "StatResult"]
