"""
Error taxonomy for cargo-updater.

Callers react differently depending on the failure class:
AcquisitionError aborts the run before any network access.
RegistryError is isolated to a single crate unless the abort policy is set.
ReinstallError is raised when `cargo install` cannot be run to completion.
"""

from __future__ import annotations


class UpdaterError(Exception):
    """Base class for all cargo-updater exceptions."""


class ConfigError(UpdaterError):
    """Raised when an explicitly requested configuration cannot be loaded."""


class AcquisitionError(UpdaterError):
    """Raised when the installed-package listing cannot be obtained."""


class RegistryError(UpdaterError):
    """Raised when looking up a crate in the registry fails."""


class RegistryNetworkError(RegistryError):
    """Raised when the registry request itself fails (connection, HTTP status, timeout)."""


class RegistryResponseError(RegistryError):
    """Raised when the registry answers with a body we cannot use."""


class ResolutionAborted(UpdaterError):
    """
    Raised under the abort policy when any registry lookup failed.

    Attributes:
        name: Crate whose lookup failed first
    """

    def __init__(self, name: str, message: str):
        self.name = name
        super().__init__(message)


class ReinstallError(UpdaterError):
    """Raised when the bulk reinstall cannot be spawned or ends without an exit code."""
