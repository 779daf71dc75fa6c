"""
Tests for debpack.versioning.manifest module.

Tests reading versions from build manifests including:
- Cargo.toml (plain and workspace-inherited)
- pyproject.toml (PEP 621 and Poetry)
- Plain VERSION files and literals
- Debian version syntax checks
"""

from __future__ import annotations

import pytest

from debpack.exceptions import ConfigError
from debpack.versioning import read_manifest_version, validate_debian_version

pytestmark = pytest.mark.unit


class TestCargoManifest:
    """Tests for the cargo version source."""

    def test_reads_package_version(self, tmp_path):
        """Test reading [package].version."""
        manifest = tmp_path / "Cargo.toml"
        manifest.write_text('[package]\nname = "RoExtract"\nversion = "1.0.4"\n')

        found = read_manifest_version("cargo", manifest=manifest)

        assert found.version == "1.0.4"
        assert found.source == "cargo"
        assert found.manifest == manifest

    def test_reads_workspace_inherited_version(self, tmp_path):
        """Test version.workspace = true falls back to [workspace.package]."""
        manifest = tmp_path / "Cargo.toml"
        manifest.write_text(
            '[workspace.package]\nversion = "2.3.0"\n\n'
            '[package]\nname = "app"\nversion.workspace = true\n'
        )

        found = read_manifest_version("cargo", manifest=manifest)

        assert found.version == "2.3.0"

    def test_missing_version_raises(self, tmp_path):
        """Test a manifest without a version."""
        manifest = tmp_path / "Cargo.toml"
        manifest.write_text('[package]\nname = "app"\n')

        with pytest.raises(ConfigError, match="No \\[package\\] version"):
            read_manifest_version("cargo", manifest=manifest)

    def test_missing_manifest_raises(self, tmp_path):
        """Test a manifest path that does not exist."""
        with pytest.raises(ConfigError, match="not found"):
            read_manifest_version("cargo", manifest=tmp_path / "Cargo.toml")

    def test_invalid_toml_raises(self, tmp_path):
        """Test an unparsable manifest."""
        manifest = tmp_path / "Cargo.toml"
        manifest.write_text("[package\nversion = ")

        with pytest.raises(ConfigError, match="Error parsing TOML"):
            read_manifest_version("cargo", manifest=manifest)


class TestOtherSources:
    """Tests for pyproject, file, and literal sources."""

    def test_pyproject_project_version(self, tmp_path):
        """Test reading [project].version."""
        manifest = tmp_path / "pyproject.toml"
        manifest.write_text('[project]\nname = "tool"\nversion = "0.9.1"\n')

        assert read_manifest_version("pyproject", manifest=manifest).version == "0.9.1"

    def test_pyproject_poetry_version(self, tmp_path):
        """Test reading [tool.poetry].version."""
        manifest = tmp_path / "pyproject.toml"
        manifest.write_text('[tool.poetry]\nname = "tool"\nversion = "3.1.0"\n')

        assert read_manifest_version("pyproject", manifest=manifest).version == "3.1.0"

    def test_pyproject_dynamic_version_raises(self, tmp_path):
        """Test that dynamic versions are rejected."""
        manifest = tmp_path / "pyproject.toml"
        manifest.write_text('[project]\nname = "tool"\ndynamic = ["version"]\n')

        with pytest.raises(ConfigError, match="dynamic"):
            read_manifest_version("pyproject", manifest=manifest)

    def test_version_file_first_nonempty_line(self, tmp_path):
        """Test reading a plain VERSION file."""
        manifest = tmp_path / "VERSION"
        manifest.write_text("\n  4.2.0  \nignored\n")

        assert read_manifest_version("file", manifest=manifest).version == "4.2.0"

    def test_literal(self):
        """Test a literal version."""
        found = read_manifest_version("literal", value="1.0.4")

        assert found.version == "1.0.4"
        assert found.manifest is None

    def test_literal_without_value_raises(self):
        """Test literal source with no value."""
        with pytest.raises(ConfigError, match="version.value"):
            read_manifest_version("literal")

    def test_manifest_required(self):
        """Test manifest-based sources without a manifest."""
        with pytest.raises(ConfigError, match="version.manifest"):
            read_manifest_version("cargo")

    def test_unknown_source_raises(self):
        """Test an unsupported source name."""
        with pytest.raises(ConfigError, match="Unsupported version source"):
            read_manifest_version("git-tag")


class TestDebianVersion:
    """Tests for Debian version syntax."""

    @pytest.mark.parametrize(
        "version", ["1.0.4", "1.0.0-rc1", "2:1.0", "1.0~beta+git20240101"]
    )
    def test_valid_versions(self, version):
        """Test versions dpkg accepts."""
        assert validate_debian_version(version) == version

    @pytest.mark.parametrize("version", ["v1.0.4", "1.0_4", "", "1.0 4"])
    def test_invalid_versions(self, version):
        """Test versions dpkg rejects."""
        with pytest.raises(ConfigError, match="Invalid package version"):
            validate_debian_version(version)
