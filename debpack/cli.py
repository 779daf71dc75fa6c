# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Command-line interface for debpack.

Commands:

    validate: Check a recipe without building
    build: Build a .deb from a recipe and a prebuilt release binary
    install: Install an already built .deb on this machine

Example:
    Validate a recipe:
        ```bash
        $ debpack validate packages/debian/debpack.yaml
        ```

    Build the package:
        ```bash
        $ debpack build packages/debian/debpack.yaml
        ```

    Compile, build and install in one go:
        ```bash
        $ debpack build packages/debian/debpack.yaml --prebuild --install
        ```

    Install later:
        ```bash
        $ debpack install roextract_1.0.4_amd64.deb
        ```

Exit Codes:

- 0: Success
- 1: Error (recipe, missing binary, permissions, or dpkg-deb failure)
- 2: Package built but installation failed

Note:
    Each command has its own handler function (cmd_<command>).
    Verbose mode shows full tracebacks on errors for debugging.
    Debug mode implies verbose mode.

"""

from __future__ import annotations

import argparse
from importlib.metadata import version
from pathlib import Path
import sys

from debpack.core import build_deb
from debpack.exceptions import ConfigError, DebpackError, InstallError
from debpack.install import command_installer, install_archive
from debpack.logging import get_logger, set_global_logger
from debpack.validation import validate_recipe

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INSTALL_FAILED = 2


def _print_error(err: Exception, args: argparse.Namespace) -> None:
    print(f"Error: {err}", file=sys.stderr)
    if getattr(args, "verbose", False) or getattr(args, "debug", False):
        import traceback

        traceback.print_exc()


def cmd_validate(args: argparse.Namespace) -> int:
    """Handler for 'debpack validate' command.

    Args:
        args: Parsed command-line arguments containing the recipe path and
            verbose flag.

    Returns:
        Exit code (0 for valid recipe, 1 for invalid).
    """
    logger = get_logger(verbose=args.verbose, debug=False)
    set_global_logger(logger)

    recipe_path = Path(args.recipe).resolve()

    print(f"Validating recipe: {recipe_path}")
    print()

    result = validate_recipe(recipe_path)

    print("=" * 70)
    print("VALIDATION RESULTS")
    print("=" * 70)
    print(f"Recipe:      {result.recipe_path}")
    print(f"Status:      {result.status.upper()}")
    if result.package:
        print(f"Package:     {result.package}")
    print()

    if result.warnings:
        print(f"Warnings ({len(result.warnings)}):")
        for warning in result.warnings:
            print(f"  [WARNING] {warning}")
        print()

    if result.errors:
        print(f"Errors ({len(result.errors)}):")
        for error in result.errors:
            print(f"  [X] {error}")
        print()

    print("=" * 70)

    if result.status == "valid":
        print()
        print("[SUCCESS] Recipe is valid!")
        return EXIT_OK

    print()
    print(f"[FAILED] Recipe validation failed with {len(result.errors)} error(s).")
    return EXIT_ERROR


def cmd_build(args: argparse.Namespace) -> int:
    """Handler for 'debpack build' command.

    Args:
        args: Parsed command-line arguments containing the recipe path,
            binary/output overrides, install and prebuild flags.

    Returns:
        Exit code (0 for success, 1 for failure, 2 if only install failed).
    """
    logger = get_logger(verbose=args.verbose, debug=args.debug)
    set_global_logger(logger)

    recipe_path = Path(args.recipe).resolve()
    if not recipe_path.exists():
        print(f"Error: Recipe file not found: {recipe_path}", file=sys.stderr)
        return EXIT_ERROR

    print(f"Building package for recipe: {recipe_path}")
    print()

    try:
        result = build_deb(
            recipe_path,
            binary_path=Path(args.binary).resolve() if args.binary else None,
            output_dir=Path(args.output_dir).resolve() if args.output_dir else None,
            install=args.install,
            prebuild=args.prebuild,
        )
    except DebpackError as err:
        _print_error(err, args)
        return EXIT_ERROR

    print("=" * 70)
    print("BUILD RESULTS")
    print("=" * 70)
    print(f"Package:         {result.metadata.name}")
    print(f"Version:         {result.metadata.version}")
    print(f"Architecture:    {result.metadata.architecture}")
    print(f"Package Path:    {result.package_path}")
    if result.installed is None:
        print("Installed:       no (not requested)")
    else:
        print(f"Installed:       {'yes' if result.installed else 'FAILED'}")
    if not result.staging_removed:
        print(f"Staging Dir:     {result.staging_dir} (not removed)")
    print(f"Status:          {result.status}")
    print("=" * 70)
    print()

    if result.status == "install_failed":
        print(f"[FAILED] Package built but installation failed: {result.install_error}")
        print(f"Install it manually with: sudo apt install {result.package_path}")
        return EXIT_INSTALL_FAILED

    print("[SUCCESS] Package built successfully!")
    return EXIT_OK


def cmd_install(args: argparse.Namespace) -> int:
    """Handler for 'debpack install' command.

    Args:
        args: Parsed command-line arguments containing the archive path and
            optional installer command.

    Returns:
        Exit code (0 for success, 1 for an empty --command, 2 if installation
        failed).
    """
    logger = get_logger(verbose=args.verbose, debug=args.debug)
    set_global_logger(logger)

    archive = Path(args.archive).resolve()
    try:
        installer = (
            command_installer(args.command) if args.command is not None else None
        )
    except ConfigError as err:
        _print_error(err, args)
        return EXIT_ERROR

    print(f"Installing: {archive}")

    try:
        install_archive(archive, installer=installer)
    except InstallError as err:
        _print_error(err, args)
        return EXIT_INSTALL_FAILED

    print("[SUCCESS] Package installed!")
    return EXIT_OK


def _add_output_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show progress and high-level status updates",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Show detailed debugging output (implies --verbose)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the debpack CLI."""
    parser = argparse.ArgumentParser(
        prog="debpack",
        description="debpack - package a prebuilt binary as a Debian .deb",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"debpack {version('debpack')}",
    )

    subparsers = parser.add_subparsers(
        dest="command_name",
        help="Available commands",
        required=True,
    )

    # 'validate' command
    parser_validate = subparsers.add_parser(
        "validate",
        help="Validate a recipe without building",
        description="Check recipe YAML, metadata, and referenced files without staging anything.",
    )
    parser_validate.add_argument("recipe", help="Path to the recipe YAML file")
    parser_validate.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show validation progress and details",
    )
    parser_validate.set_defaults(func=cmd_validate)

    # 'build' command
    parser_build = subparsers.add_parser(
        "build",
        help="Build a .deb from a recipe and release binary",
        description="Stage the release binary, normalize permissions, and run dpkg-deb.",
    )
    parser_build.add_argument("recipe", help="Path to the recipe YAML file")
    parser_build.add_argument(
        "--binary",
        default=None,
        help="Release binary to package (default: binary.path from the recipe)",
    )
    parser_build.add_argument(
        "--output-dir",
        default=None,
        help="Directory for the .deb (default: build.output_dir or the current directory)",
    )
    install_group = parser_build.add_mutually_exclusive_group()
    install_group.add_argument(
        "--install",
        dest="install",
        action="store_true",
        default=None,
        help="Install the package after building",
    )
    install_group.add_argument(
        "--no-install",
        dest="install",
        action="store_false",
        help="Do not install, even if the recipe enables it",
    )
    parser_build.add_argument(
        "--prebuild",
        action="store_true",
        help="Run build.prebuild (e.g. cargo build --release) before packaging",
    )
    _add_output_flags(parser_build)
    parser_build.set_defaults(func=cmd_build)

    # 'install' command
    parser_install = subparsers.add_parser(
        "install",
        help="Install a built .deb on this machine",
        description="Install an existing .deb with the system package manager.",
    )
    parser_install.add_argument("archive", help="Path to the .deb file")
    parser_install.add_argument(
        "--command",
        default=None,
        help="Installer command (default: 'sudo apt install')",
    )
    _add_output_flags(parser_install)
    parser_install.set_defaults(func=cmd_install)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the debpack CLI.

    This function is registered as the 'debpack' console script in
    pyproject.toml.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
