"""
Package manager command definitions.

Describes how to ask the package manager for its installed units and how to
reinstall a batch of them. Only cargo is defined; the executable name is
configurable so a wrapper or an absolute path can be used.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Sequence


@dataclass(frozen=True)
class PackageManager:
    """
    Package manager definition.

    Attributes:
        name: Package manager identifier
        executable: Program to run
        list_command: Arguments that print the installed units
        reinstall_command: Arguments that (re)install the named units
        force_flag: Flag forcing a reinstall over an existing install
        locked_flag: Flag requesting the unit's own lock file
    """
    name: str
    executable: str
    list_command: tuple[str, ...]
    reinstall_command: tuple[str, ...]
    force_flag: str
    locked_flag: str

    def with_executable(self, executable: str) -> PackageManager:
        """Return a copy that runs a different executable."""
        return replace(self, executable=executable)

    def get_list_command(self) -> list[str]:
        """Full command line that lists installed units."""
        return [self.executable, *self.list_command]

    def get_reinstall_command(self, names: Sequence[str], locked: bool = False) -> list[str]:
        """
        Build the bulk reinstall command line.

        Args:
            names: Units to reinstall, in order
            locked: Add the lock-file flag

        Returns:
            Command list: executable, reinstall args, force flag, optional locked flag, names
        """
        command = [self.executable, *self.reinstall_command, self.force_flag]
        if locked:
            command.append(self.locked_flag)
        command.extend(names)
        return command


CARGO = PackageManager(
    name="cargo",
    executable="cargo",
    list_command=("install", "--list"),
    reinstall_command=("install",),
    force_flag="--force",
    locked_flag="--locked",
)


def get_package_manager(executable: str = "cargo") -> PackageManager:
    """
    Get the cargo definition, running the given executable.

    Args:
        executable: Program name or path for cargo

    Returns:
        PackageManager bound to the executable
    """
    if executable == CARGO.executable:
        return CARGO
    return CARGO.with_executable(executable)
