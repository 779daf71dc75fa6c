"""
Tests for debpack.build.permissions module.

Tests file mode normalization including:
- Exact modes for directories, binaries, scripts, and control files
- Recipe-provided modes for extra files
- Failure when chmod is refused
"""

from __future__ import annotations

import os
import stat
from unittest.mock import patch

import pytest

from debpack.build.permissions import (
    expected_modes,
    normalize_permissions,
    verify_permissions,
)
from debpack.build.staging import populate_staging_tree, staging_area
from debpack.exceptions import StagingPermissionError
from debpack.metadata import PackageMetadata

pytestmark = pytest.mark.unit

METADATA = PackageMetadata("roextract", "1.0.4", "amd64")
PACKAGE_CFG = {
    "maintainer": "Test Maintainer <test@example.com>",
    "description": "Extract assets from game caches",
}


def _mode(path):
    return stat.S_IMODE(path.stat().st_mode)


@pytest.fixture
def staged_tree(tmp_path, project_dir):
    """Yield a populated staging tree with messy permissions."""
    binary = project_dir / "target" / "release" / "RoExtract"
    icon = project_dir / "icon.png"
    icon.write_bytes(b"png")
    script = project_dir / "postinst"
    script.write_text("#!/bin/sh\n")

    with staging_area(tmp_path / "staging") as root:
        tree = populate_staging_tree(
            root,
            METADATA,
            binary,
            PACKAGE_CFG,
            install_path="usr/bin/roextract",
            scripts={"postinst": str(script)},
            files=[{"source": str(icon), "target": "usr/share/pixmaps/roextract.png"}],
        )
        # Simulate a restrictive umask and sloppy sources
        os.chmod(root, 0o700)
        os.chmod(tree.control_dir, 0o777)
        os.chmod(tree.control_file, 0o666)
        os.chmod(tree.executables[0], 0o600)
        os.chmod(tree.scripts[0], 0o644)
        yield tree


class TestNormalizePermissions:
    """Tests for normalize_permissions."""

    def test_exact_modes(self, staged_tree):
        normalize_permissions(staged_tree)
        root = staged_tree.root

        assert _mode(root) == 0o755
        assert _mode(staged_tree.control_dir) == 0o755
        assert _mode(staged_tree.control_file) == 0o644
        assert _mode(root / "usr" / "bin") == 0o755
        assert _mode(root / "usr" / "bin" / "roextract") == 0o755
        assert _mode(root / "DEBIAN" / "postinst") == 0o755
        assert _mode(root / "usr" / "share" / "pixmaps" / "roextract.png") == 0o644

    def test_binary_executable_by_all(self, staged_tree):
        normalize_permissions(staged_tree)
        mode = _mode(staged_tree.executables[0])

        assert mode & (stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH) == 0o111

    def test_control_writable_only_by_owner(self, staged_tree):
        normalize_permissions(staged_tree)
        mode = _mode(staged_tree.control_file)

        assert mode & stat.S_IWUSR
        assert not mode & (stat.S_IWGRP | stat.S_IWOTH)
        assert mode & (stat.S_IRUSR | stat.S_IRGRP | stat.S_IROTH) == 0o444

    def test_verify_reports_then_clears(self, staged_tree):
        assert verify_permissions(staged_tree)

        normalize_permissions(staged_tree)

        assert verify_permissions(staged_tree) == []

    def test_recipe_mode_respected(self, staged_tree):
        icon = staged_tree.root / "usr" / "share" / "pixmaps" / "roextract.png"
        staged_tree.file_modes[icon] = 0o600

        assert expected_modes(staged_tree)[icon] == 0o600

    def test_chmod_failure_raises(self, staged_tree):
        with patch(
            "debpack.build.permissions.os.chmod",
            side_effect=PermissionError("Operation not permitted"),
        ):
            with pytest.raises(StagingPermissionError, match="Cannot set mode"):
                normalize_permissions(staged_tree)
