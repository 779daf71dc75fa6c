"""
Debian package assembly for debpack.

This package holds the stages between metadata resolution and installation:
staging tree construction, control file generation, permission
normalization, and archiving with dpkg-deb.

Public API:

check_staging_dir : function
    Reject a staging directory that equals or contains the build's own files.
staging_area : context manager
    Acquire an empty staging directory that is removed on every exit path.
populate_staging_tree : function
    Copy the release binary, extra files, and control data into the tree.
normalize_permissions : function
    Set the exact file modes dpkg-deb expects.
build_archive : function
    Run dpkg-deb and place <name>_<version>_<arch>.deb in the output dir.

Example:
    from pathlib import Path
    from debpack.build import (
        build_archive,
        normalize_permissions,
        populate_staging_tree,
        staging_area,
    )

    with staging_area(Path("packages/debian/staging")) as root:
        tree = populate_staging_tree(root, metadata, binary, config["package"])
        normalize_permissions(tree)
        archive = build_archive(root, metadata, Path("."))
"""

from .archiver import archive_path, build_archive
from .control import render_control
from .permissions import normalize_permissions, verify_permissions
from .staging import (
    StagingTree,
    check_staging_dir,
    populate_staging_tree,
    staging_area,
)

__all__ = [
    "StagingTree",
    "archive_path",
    "build_archive",
    "check_staging_dir",
    "normalize_permissions",
    "populate_staging_tree",
    "render_control",
    "staging_area",
    "verify_permissions",
]
