"""Path algebra of the user manager tree.

All paths derive from one configured root::

    root          /system/userManager
    users_path    /system/userManager/user
    user_prefix   /system/userManager/user/
    groups_path   /system/userManager/group
    group_prefix  /system/userManager/group/
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from principalfs.kernel.domain.resources import DEFAULT_PROVIDER_ROOT


class SystemUserManagerPaths(BaseModel):
    """Derived paths of the user manager tree, computed from the provider root."""

    model_config = ConfigDict(frozen=True)

    root_path: str
    users_path: str
    user_prefix: str
    groups_path: str
    group_prefix: str

    @classmethod
    def from_root(cls, root: str = DEFAULT_PROVIDER_ROOT) -> SystemUserManagerPaths:
        """Compute every derived path from ``root`` (trailing slashes ignored)."""
        root_path = root.rstrip("/") or "/"
        base = root_path if root_path != "/" else ""
        users_path = f"{base}/user"
        groups_path = f"{base}/group"
        return cls(
            root_path=root_path,
            users_path=users_path,
            user_prefix=f"{users_path}/",
            groups_path=groups_path,
            group_prefix=f"{groups_path}/",
        )

    def prefix_for(self, *, is_group: bool) -> str:
        """Identifier prefix for an entity of the given kind."""
        return self.group_prefix if is_group else self.user_prefix

    def authorizable_path(self, authorizable_id: str, *, is_group: bool) -> str:
        """Virtual path of the user or group ``authorizable_id``."""
        return f"{self.prefix_for(is_group=is_group)}{authorizable_id}"

    def relative(self, path: str) -> str:
        """Path relative to the root, ``""`` for the root itself.

        Raises
        ------
        ValueError
            If ``path`` lies outside the user manager tree.
        """
        if path == self.root_path:
            return ""
        prefix = self.root_path if self.root_path.endswith("/") else f"{self.root_path}/"
        if not path.startswith(prefix):
            raise ValueError(f"{path!r} is not below {self.root_path!r}")
        return path[len(prefix) :]


__all__ = ["SystemUserManagerPaths"]
