"""
cargo-updater - List and update crates installed with ``cargo install``.

Core Modules:
- Inventory: parse ``cargo install --list`` and classify install provenance
- Resolution: concurrent newest-version lookups against crates.io
- Versioning: semantic version ordering and the upgradability rule
- Reconciliation: list view and the bulk ``cargo install --force`` update
"""

__version__ = "1.0.0"

from .errors import (
    UpdaterError,
    ConfigError,
    AcquisitionError,
    RegistryError,
    RegistryNetworkError,
    RegistryResponseError,
    ResolutionAborted,
    ReinstallError,
)
from .config import Config, load_config, load_config_file
from .package_managers import PackageManager, CARGO, get_package_manager
from .inventory import (
    Provenance,
    ProvenanceKind,
    InventoryRecord,
    ParsedLine,
    parse_line,
    parse_inventory,
    list_installed,
)
from .versioning import parse_version, compare_versions, classify_update, is_upgradable
from .registry import RegistryClient, RegistryInfo
from .resolver import LookupFailure, Resolution, resolve_inventory
from .reconcile import (
    InventoryRow,
    UpdatePlan,
    UpdateOutcome,
    Reconciler,
    build_rows,
    plan_updates,
    reinstall,
)

__all__ = [
    "__version__",
    # Errors
    "UpdaterError",
    "ConfigError",
    "AcquisitionError",
    "RegistryError",
    "RegistryNetworkError",
    "RegistryResponseError",
    "ResolutionAborted",
    "ReinstallError",
    # Config
    "Config",
    "load_config",
    "load_config_file",
    # Package manager
    "PackageManager",
    "CARGO",
    "get_package_manager",
    # Inventory
    "Provenance",
    "ProvenanceKind",
    "InventoryRecord",
    "ParsedLine",
    "parse_line",
    "parse_inventory",
    "list_installed",
    # Versioning
    "parse_version",
    "compare_versions",
    "classify_update",
    "is_upgradable",
    # Resolution
    "RegistryClient",
    "RegistryInfo",
    "LookupFailure",
    "Resolution",
    "resolve_inventory",
    # Reconciliation
    "InventoryRow",
    "UpdatePlan",
    "UpdateOutcome",
    "Reconciler",
    "build_rows",
    "plan_updates",
    "reinstall",
]
