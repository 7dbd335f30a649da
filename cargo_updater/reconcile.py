"""
Reconciliation of installed crates against the registry.

List mode produces a name-sorted view of every installed crate. Update mode
reinstalls every upgradable crate with a single ``cargo install --force``
call. Crates installed from git or a local path are never reinstalled; they
are reported as skipped.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Callable, Sequence

from .config import Config
from .errors import ReinstallError
from .inventory import UNKNOWN, InventoryRecord, list_installed
from .package_managers import PackageManager, get_package_manager
from .registry import RegistryClient
from .resolver import Resolution, resolve_inventory
from .versioning import classify_update, is_upgradable

logger = logging.getLogger(__name__)


STATUS_UPGRADABLE = "upgradable"
STATUS_UP_TO_DATE = "up-to-date"
STATUS_UNRESOLVED = "unresolved"
STATUS_NOT_REGISTRY = "not-registry"


@dataclass(frozen=True)
class InventoryRow:
    """
    List-mode view of one crate, ready for rendering.

    Attributes:
        name: Crate name
        installed: Installed version
        latest: Newest registry version, "-" for non-registry crates, "?" if the lookup failed
        updated: Last publish date or "-"
        source: "crates.io", "git" or "local"
        repository: Repository URL, git URL or local path
        status: One of upgradable, up-to-date, unresolved, not-registry
        update_kind: "major", "minor", "patch" for upgradable crates, "" otherwise
    """
    name: str
    installed: str
    latest: str
    updated: str
    source: str
    repository: str
    status: str
    update_kind: str = ""

    @property
    def upgradable(self) -> bool:
        return self.status == STATUS_UPGRADABLE

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "installed": self.installed,
            "latest": self.latest,
            "updated": self.updated,
            "source": self.source,
            "repository": self.repository,
            "status": self.status,
            "update_kind": self.update_kind,
        }


@dataclass(frozen=True)
class UpdatePlan:
    """
    Partition of an inventory for update mode. Every tuple is sorted by name.

    Attributes:
        upgradable: Registry crates with a newer version available
        skipped: Crates not installed from the registry
        unresolved: Registry crates whose lookup failed
        current: Registry crates that are up to date (or have unparsable versions)
    """
    upgradable: tuple[str, ...]
    skipped: tuple[str, ...]
    unresolved: tuple[str, ...]
    current: tuple[str, ...]


@dataclass(frozen=True)
class UpdateOutcome:
    """
    Result of update mode.

    Attributes:
        plan: The computed plan
        exit_code: Exit status to report (the reinstall's own code on failure)
        reinstalled: Names passed to the reinstall command
    """
    plan: UpdatePlan
    exit_code: int = 0
    reinstalled: tuple[str, ...] = ()

    @property
    def nothing_to_update(self) -> bool:
        return not self.plan.upgradable


def record_status(record: InventoryRecord) -> str:
    """Status label for a (possibly unresolved) record."""
    if not record.provenance.is_registry:
        return STATUS_NOT_REGISTRY
    if not record.is_resolved:
        return STATUS_UNRESOLVED
    if is_upgradable(record):
        return STATUS_UPGRADABLE
    return STATUS_UP_TO_DATE


def build_rows(records: Sequence[InventoryRecord]) -> list[InventoryRow]:
    """
    Build the list-mode view.

    Args:
        records: Resolved records in any order

    Returns:
        One row per record, sorted by name
    """
    rows = []
    for record in sorted(records, key=lambda r: r.name):
        status = record_status(record)
        rows.append(InventoryRow(
            name=record.name,
            installed=record.installed_version,
            latest=record.resolved_version if record.is_resolved else "?",
            updated=record.last_published or UNKNOWN,
            source=str(record.provenance),
            repository=record.provenance.detail or UNKNOWN,
            status=status,
            update_kind=(
                classify_update(record.installed_version, record.resolved_version)
                if status == STATUS_UPGRADABLE else ""
            ),
        ))
    return rows


def plan_updates(records: Sequence[InventoryRecord]) -> UpdatePlan:
    """
    Split resolved records into upgradable, skipped, unresolved and current.

    Args:
        records: Resolved records

    Returns:
        UpdatePlan
    """
    buckets: dict[str, list[str]] = {
        STATUS_UPGRADABLE: [],
        STATUS_NOT_REGISTRY: [],
        STATUS_UNRESOLVED: [],
        STATUS_UP_TO_DATE: [],
    }
    for record in records:
        buckets[record_status(record)].append(record.name)

    return UpdatePlan(
        upgradable=tuple(sorted(buckets[STATUS_UPGRADABLE])),
        skipped=tuple(sorted(buckets[STATUS_NOT_REGISTRY])),
        unresolved=tuple(sorted(buckets[STATUS_UNRESOLVED])),
        current=tuple(sorted(buckets[STATUS_UP_TO_DATE])),
    )


def reinstall(
    names: Sequence[str],
    locked: bool = False,
    package_manager: PackageManager | None = None,
) -> int:
    """
    Reinstall crates with one ``cargo install --force`` invocation.

    The child inherits stdin/stdout/stderr so cargo's own progress is shown.

    Args:
        names: Crates to reinstall
        locked: Pass --locked
        package_manager: Package manager to run (default: cargo)

    Returns:
        The child's exit code (0 on success)

    Raises:
        ReinstallError: If the command cannot be started or is killed by a signal
    """
    if package_manager is None:
        package_manager = get_package_manager()

    command = package_manager.get_reinstall_command(names, locked=locked)
    logger.debug(f"Running: {' '.join(command)}")

    try:
        result = subprocess.run(command, check=False)
    except OSError as e:
        raise ReinstallError(f"`{' '.join(command[:3])}` failed to start: {e}") from e

    if result.returncode < 0:
        raise ReinstallError(
            f"Running `{package_manager.executable} install` was not successful "
            f"(terminated by signal {-result.returncode})."
        )
    if result.returncode != 0:
        logger.error(f"Exited with status code: {result.returncode}")
    return result.returncode


class Reconciler:
    """
    Runs list and update mode against one package manager and registry.

    Args:
        config: Loaded configuration
        client: Registry client (built from config when omitted)
        package_manager: Package manager (built from config when omitted)
    """

    def __init__(
        self,
        config: Config | None = None,
        client: RegistryClient | None = None,
        package_manager: PackageManager | None = None,
    ):
        self.config = config or Config()
        self.client = client or RegistryClient(
            self.config.registry_url, timeout=self.config.timeout_seconds
        )
        self.package_manager = package_manager or get_package_manager(self.config.cargo)

    def resolve(self) -> Resolution:
        """Acquire the inventory and resolve every record."""
        records = list_installed(self.package_manager)
        return resolve_inventory(
            records,
            client=self.client,
            fail_fast=self.config.failure_policy == "abort",
        )

    def list_inventory(self) -> list[InventoryRow]:
        """
        List mode: every installed crate with its newest version.

        Returns:
            Rows sorted by name
        """
        resolution = self.resolve()
        return build_rows(resolution.records)

    def update_installed(
        self,
        use_locked: bool = False,
        on_plan: Callable[[UpdatePlan], None] | None = None,
    ) -> UpdateOutcome:
        """
        Update mode: reinstall every upgradable crate.

        Args:
            use_locked: Pass --locked to the reinstall (also enabled by config)
            on_plan: Called with the plan before anything is reinstalled

        Returns:
            UpdateOutcome; nothing_to_update is set when no reinstall ran
        """
        resolution = self.resolve()
        plan = plan_updates(resolution.records)

        if on_plan is not None:
            on_plan(plan)

        if plan.unresolved:
            logger.warning(
                f"Not updating crates whose latest version is unknown: {', '.join(plan.unresolved)}"
            )

        if not plan.upgradable:
            return UpdateOutcome(plan=plan)

        by_name = {record.name: record for record in resolution.records}
        for name in plan.upgradable:
            record = by_name[name]
            if classify_update(record.installed_version, record.resolved_version) == "major":
                logger.warning(
                    f"{name}: major version upgrade "
                    f"{record.installed_version} → {record.resolved_version}"
                )

        exit_code = reinstall(
            plan.upgradable,
            locked=use_locked or self.config.locked,
            package_manager=self.package_manager,
        )
        return UpdateOutcome(plan=plan, exit_code=exit_code, reinstalled=plan.upgradable)
