"""Tests for principalfs.drivers.usermanager.paths."""

from __future__ import annotations

import pytest

from principalfs.drivers.usermanager.paths import SystemUserManagerPaths


class TestFromRoot:
    def test_default_root(self) -> None:
        paths = SystemUserManagerPaths.from_root()
        assert paths.root_path == "/system/userManager"
        assert paths.users_path == "/system/userManager/user"
        assert paths.user_prefix == "/system/userManager/user/"
        assert paths.groups_path == "/system/userManager/group"
        assert paths.group_prefix == "/system/userManager/group/"

    def test_trailing_slash_ignored(self) -> None:
        assert SystemUserManagerPaths.from_root("/um/") == SystemUserManagerPaths.from_root("/um")

    def test_authorizable_path_uses_kind_prefix(self) -> None:
        paths = SystemUserManagerPaths.from_root("/um")
        assert paths.authorizable_path("alice", is_group=False) == "/um/user/alice"
        assert paths.authorizable_path("staff", is_group=True) == "/um/group/staff"


class TestRelative:
    def test_relative_paths(self) -> None:
        paths = SystemUserManagerPaths.from_root("/um")
        assert paths.relative("/um") == ""
        assert paths.relative("/um/user/alice") == "user/alice"

    @pytest.mark.parametrize("path", ["/other", "/umbrella/user"])
    def test_outside_tree(self, path: str) -> None:
        with pytest.raises(ValueError, match="is not below"):
            SystemUserManagerPaths.from_root("/um").relative(path)
