"""
Tests for debpack.validation module.

Tests recipe validation including:
- A complete recipe is valid and reports the archive name
- A missing release binary is only a warning
- apiVersion, package section, and metadata errors
- Maintainer scripts and extra payload files
"""

from __future__ import annotations

import pytest
import yaml

from debpack.validation import validate_recipe

pytestmark = pytest.mark.unit


def _write(project_dir, data):
    path = project_dir / "debpack.yaml"
    path.write_text(yaml.dump(data), encoding="utf-8")
    return path


class TestValidateRecipe:
    """Tests for validate_recipe."""

    def test_valid_recipe(self, recipe_path):
        result = validate_recipe(recipe_path)

        assert result.status == "valid"
        assert result.errors == []
        assert result.package == "roextract_1.0.4_amd64.deb"
        assert result.recipe_path == str(recipe_path)

    def test_missing_binary_is_warning(self, recipe_path, project_dir):
        """Test validation passes before the release build has run."""
        (project_dir / "target" / "release" / "RoExtract").unlink()

        result = validate_recipe(recipe_path)

        assert result.status == "valid"
        assert any("Release binary not found" in w for w in result.warnings)

    def test_invalid_yaml(self, project_dir):
        path = project_dir / "debpack.yaml"
        path.write_text("package: [unclosed\n", encoding="utf-8")

        result = validate_recipe(path)

        assert result.status == "invalid"
        assert len(result.errors) == 1

    def test_unsupported_api_version(self, project_dir, sample_recipe_data):
        sample_recipe_data["apiVersion"] = "debpack/v9"

        result = validate_recipe(_write(project_dir, sample_recipe_data))

        assert result.status == "invalid"
        assert any("Unsupported apiVersion" in e for e in result.errors)

    def test_missing_api_version(self, project_dir, sample_recipe_data):
        del sample_recipe_data["apiVersion"]

        result = validate_recipe(_write(project_dir, sample_recipe_data))

        assert "Missing required field: apiVersion" in result.errors

    def test_missing_package_section(self, project_dir, sample_recipe_data):
        del sample_recipe_data["package"]

        result = validate_recipe(_write(project_dir, sample_recipe_data))

        assert result.status == "invalid"
        assert "Missing required section: package" in result.errors
        assert result.package is None

    def test_missing_maintainer(self, project_dir, sample_recipe_data):
        del sample_recipe_data["package"]["maintainer"]

        result = validate_recipe(_write(project_dir, sample_recipe_data))

        assert any("package.maintainer" in e for e in result.errors)

    def test_invalid_package_name(self, project_dir, sample_recipe_data):
        sample_recipe_data["package"]["name"] = "RoExtract"

        result = validate_recipe(_write(project_dir, sample_recipe_data))

        assert result.status == "invalid"
        assert result.package is None

    def test_unresolvable_version(self, project_dir, sample_recipe_data):
        (project_dir / "Cargo.toml").unlink()

        result = validate_recipe(_write(project_dir, sample_recipe_data))

        assert result.status == "invalid"

    def test_missing_binary_path(self, project_dir, sample_recipe_data):
        del sample_recipe_data["binary"]["path"]

        result = validate_recipe(_write(project_dir, sample_recipe_data))

        assert "Missing required field: binary.path" in result.errors

    def test_unknown_script(self, project_dir, sample_recipe_data):
        script = project_dir / "postinst"
        script.write_text("#!/bin/sh\n")
        sample_recipe_data["control"] = {"scripts": {"post-install": "postinst"}}

        result = validate_recipe(_write(project_dir, sample_recipe_data))

        assert "Unknown maintainer script: post-install" in result.errors

    def test_missing_script(self, project_dir, sample_recipe_data):
        sample_recipe_data["control"] = {"scripts": {"postinst": "postinst"}}

        result = validate_recipe(_write(project_dir, sample_recipe_data))

        assert any("Maintainer script not found" in e for e in result.errors)

    def test_files_entries(self, project_dir, sample_recipe_data):
        (project_dir / "roextract.desktop").write_text("[Desktop Entry]\n")
        sample_recipe_data["files"] = [
            {
                "source": "roextract.desktop",
                "target": "usr/share/applications/roextract.desktop",
            },
            {"source": "missing.png", "target": "usr/share/pixmaps/roextract.png"},
            {"source": "roextract.desktop"},
        ]

        result = validate_recipe(_write(project_dir, sample_recipe_data))

        assert len(result.errors) == 2
        assert any("files[1] source not found" in e for e in result.errors)
        assert "files[2] needs both source and target" in result.errors

    def test_install_without_command_warns(self, project_dir, sample_recipe_data):
        sample_recipe_data["install"] = {"enabled": True}

        result = validate_recipe(_write(project_dir, sample_recipe_data))

        assert result.status == "valid"
        assert any("sudo apt install" in w for w in result.warnings)

    def test_staging_dir_overlapping_project(self, project_dir, sample_recipe_data):
        sample_recipe_data["build"]["staging_dir"] = "."

        result = validate_recipe(_write(project_dir, sample_recipe_data))

        assert result.status == "invalid"
        assert any("dedicated directory" in e for e in result.errors)
        assert (project_dir / "Cargo.toml").is_file()
