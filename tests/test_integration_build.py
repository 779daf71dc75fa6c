"""
Integration tests for building a real .deb with dpkg-deb.

These tests run the actual dpkg-deb tool and are skipped on systems where
it is not installed. Run them explicitly with:

    pytest -m integration
"""

from __future__ import annotations

import shutil
import subprocess

import pytest

from debpack.core import build_deb

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        shutil.which("dpkg-deb") is None, reason="dpkg-deb is not installed"
    ),
]


def test_build_real_package(recipe_path, project_dir):
    """Test a real build writes a readable archive and removes staging."""
    result = build_deb(recipe_path)

    assert result.package_path.name == "roextract_1.0.4_amd64.deb"
    assert result.package_path.is_file()
    assert not (project_dir / "packages" / "debian" / "staging").exists()

    info = subprocess.run(
        ["dpkg-deb", "--field", str(result.package_path), "Package", "Version"],
        check=True,
        capture_output=True,
        text=True,
    ).stdout
    assert "Package: roextract" in info
    assert "Version: 1.0.4" in info

    contents = subprocess.run(
        ["dpkg-deb", "--contents", str(result.package_path)],
        check=True,
        capture_output=True,
        text=True,
    ).stdout
    line = next(
        entry for entry in contents.splitlines() if entry.endswith("usr/bin/roextract")
    )
    assert line.startswith("-rwxr-xr-x root/root")


def test_rebuild_overwrites(recipe_path, project_dir):
    build_deb(recipe_path)
    build_deb(recipe_path)

    assert [p.name for p in (project_dir / "dist").iterdir()] == [
        "roextract_1.0.4_amd64.deb"
    ]
