"""
Pytest configuration and shared fixtures for debpack tests.

This module provides reusable fixtures and test utilities used across
the test suite.
"""

from __future__ import annotations

from pathlib import Path
import subprocess
from typing import Any
from unittest.mock import patch

import pytest
import yaml

from debpack.logging import get_global_logger, set_global_logger


class RecordingLogger:
    """Logger that keeps every message for assertions."""

    def __init__(self) -> None:
        self.steps: list[str] = []
        self.messages: list[tuple[str, str, str]] = []

    def step(self, step: int, total: int, message: str) -> None:
        self.steps.append(message)

    def verbose(self, prefix: str, message: str) -> None:
        self.messages.append(("verbose", prefix, message))

    def debug(self, prefix: str, message: str) -> None:
        self.messages.append(("debug", prefix, message))

    def warning(self, prefix: str, message: str) -> None:
        self.messages.append(("warning", prefix, message))

    @property
    def warnings(self) -> list[str]:
        return [m for level, _, m in self.messages if level == "warning"]


@pytest.fixture
def recording_logger():
    """Install a RecordingLogger as the global logger for one test."""
    previous = get_global_logger()
    logger = RecordingLogger()
    set_global_logger(logger)
    yield logger
    set_global_logger(previous)


@pytest.fixture
def create_yaml_file(tmp_path: Path):
    """
    Factory fixture for creating temporary YAML files.

    Usage:
        yaml_path = create_yaml_file("debpack.yaml", {"key": "value"})
    """

    def _create(filename: str, data: dict[str, Any]) -> Path:
        path = tmp_path / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f)
        return path

    return _create


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """
    Provide a fake application checkout.

    Contains a Cargo.toml at version 1.0.4 and a release binary at
    target/release/RoExtract with deliberately wrong permissions.
    """
    project = tmp_path / "project"
    project.mkdir()
    (project / "Cargo.toml").write_text(
        '[package]\nname = "RoExtract"\nversion = "1.0.4"\nedition = "2021"\n',
        encoding="utf-8",
    )
    binary = project / "target" / "release" / "RoExtract"
    binary.parent.mkdir(parents=True)
    binary.write_bytes(b"\x7fELF fake binary")
    binary.chmod(0o700)
    return project


@pytest.fixture
def sample_recipe_data() -> dict[str, Any]:
    """
    Provide a complete recipe for the roextract example.

    Paths are relative to the project directory, where the recipe is
    written by the recipe_path fixture.
    """
    return {
        "apiVersion": "debpack/v1",
        "package": {
            "name": "roextract",
            "architecture": "amd64",
            "maintainer": "Test Maintainer <test@example.com>",
            "description": "Extract assets from game caches",
            "section": "utils",
        },
        "version": {"source": "cargo", "manifest": "Cargo.toml"},
        "binary": {
            "path": "target/release/RoExtract",
            "install_path": "usr/bin/roextract",
        },
        "build": {
            "staging_dir": "packages/debian/staging",
            "output_dir": "dist",
        },
    }


@pytest.fixture
def recipe_path(project_dir: Path, sample_recipe_data: dict[str, Any]) -> Path:
    """Write sample_recipe_data to <project>/debpack.yaml."""
    path = project_dir / "debpack.yaml"
    path.write_text(yaml.dump(sample_recipe_data), encoding="utf-8")
    return path


@pytest.fixture
def fake_dpkg_deb():
    """
    Replace dpkg-deb with a fake that writes a small archive.

    The fake records the mode of every staged path at the moment it runs,
    so tests can check what the archiver actually saw.

    Yields the mock for subprocess.run; staged modes are available as
    mock.staged_modes (a dict of relative path -> mode).
    """
    import stat

    with (
        patch("debpack.build.archiver._find_tool", return_value="/usr/bin/dpkg-deb"),
        patch("debpack.build.archiver.subprocess.run") as mock_run,
    ):
        mock_run.staged_modes = {}

        def _fake_run(cmd, **kwargs):
            staging_root = Path(cmd[-2])
            mock_run.staged_modes = {
                str(p.relative_to(staging_root)): stat.S_IMODE(p.stat().st_mode)
                for p in [staging_root, *staging_root.rglob("*")]
            }
            Path(cmd[-1]).write_bytes(b"!<arch>\nfake deb")
            return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

        mock_run.side_effect = _fake_run
        yield mock_run
