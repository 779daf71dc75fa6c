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

"""Local installation of built archives.

Installation is an injected capability: any callable taking the archive path
and raising InstallError on failure. The build pipeline never runs a
privileged command on its own; callers pass an installer (the CLI builds one
from the recipe's install.command) or leave it out.

Example:
    ```python
    from pathlib import Path
    from debpack.install import command_installer

    install = command_installer(["sudo", "apt", "install", "-y"])
    install(Path("roextract_1.0.4_amd64.deb"))
    ```
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path
import subprocess

from debpack.exceptions import ConfigError, InstallError

Installer = Callable[[Path], None]

DEFAULT_INSTALL_COMMAND = ("sudo", "apt", "install")


def command_installer(command: Sequence[str] = DEFAULT_INSTALL_COMMAND) -> Installer:
    """Create an installer that runs command followed by the archive path.

    The command inherits the terminal, so sudo can prompt for a password
    and apt can ask for confirmation.

    Args:
        command: Installer command line without the archive argument.

    Returns:
        An installer callable.

    Raises:
        ConfigError: If command is empty.
    """
    if isinstance(command, str):
        command = command.split()
    command = tuple(command)
    if not command:
        raise ConfigError("install command must not be empty")

    def _install(archive: Path) -> None:
        from debpack.logging import get_global_logger

        logger = get_global_logger()
        # apt treats a bare file name as a package name; always pass a path
        cmd = [*command, str(archive.resolve())]
        logger.verbose("INSTALL", f"Running: {' '.join(cmd)}")

        try:
            subprocess.run(cmd, check=True)
        except subprocess.CalledProcessError as err:
            raise InstallError(
                f"{command[0]} exited with code {err.returncode}",
                returncode=err.returncode,
            ) from err
        except OSError as err:
            raise InstallError(f"Could not run {command[0]}: {err}") from err

        logger.verbose("INSTALL", f"[OK] Installed {archive.name}")

    return _install


def install_archive(archive: Path, installer: Installer | None = None) -> None:
    """Install a built archive on this machine.

    Args:
        archive: Path to the .deb file.
        installer: Installer to use. Default: command_installer().

    Raises:
        InstallError: If the archive is missing or the installer fails.
    """
    if not archive.is_file():
        raise InstallError(f"Archive not found: {archive}")
    if installer is None:
        installer = command_installer()
    installer(archive)
