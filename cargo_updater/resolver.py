"""
Concurrent resolution of newest versions.

Every registry-installed crate gets its own lookup task; all tasks are
submitted before any result is awaited and the whole batch is joined before
returning. Crates installed from git or a local path are resolved to the
"-" sentinel without touching the network.

A failed lookup is isolated by default: the crate stays unresolved and the
rest of the batch carries on. With ``fail_fast`` the first failure is raised
as ResolutionAborted once every task has finished.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Sequence

from .errors import RegistryError, ResolutionAborted
from .inventory import InventoryRecord
from .registry import RegistryClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LookupFailure:
    """
    A registry lookup that did not produce a version.

    Attributes:
        name: Crate name
        error: Exception raised by the lookup
    """
    name: str
    error: Exception

    def __str__(self) -> str:
        return f"{self.name}: {self.error}"


@dataclass(frozen=True)
class Resolution:
    """
    Outcome of resolving an inventory.

    Attributes:
        records: Records in input order; failed lookups are left unresolved
        failures: One entry per failed lookup
    """
    records: tuple[InventoryRecord, ...]
    failures: tuple[LookupFailure, ...] = ()

    @property
    def failed_names(self) -> set[str]:
        return {failure.name for failure in self.failures}


def resolve_record(record: InventoryRecord, client: RegistryClient) -> InventoryRecord:
    """
    Resolve a single record.

    Args:
        record: Unresolved record
        client: Registry client used for registry crates

    Returns:
        New resolved record

    Raises:
        RegistryError: If the registry lookup fails
    """
    if not record.provenance.is_registry:
        return record.resolve_offline()

    info = client.fetch(record.name)
    return record.resolve(info.newest_version, info.repository, info.last_published)


def resolve_inventory(
    records: Sequence[InventoryRecord],
    client: RegistryClient | None = None,
    fail_fast: bool = False,
) -> Resolution:
    """
    Resolve newest versions for a whole inventory.

    Args:
        records: Parsed records
        client: Registry client (default: crates.io, no timeout)
        fail_fast: Raise after the join if any lookup failed

    Returns:
        Resolution with every input record, resolved where possible

    Raises:
        ResolutionAborted: If fail_fast is set and a lookup failed
    """
    if client is None:
        client = RegistryClient()

    resolved: dict[int, InventoryRecord] = {}
    pending: dict[int, InventoryRecord] = {}

    for idx, record in enumerate(records):
        if record.provenance.is_registry:
            pending[idx] = record
        else:
            resolved[idx] = resolve_record(record, client)

    failures: list[LookupFailure] = []

    if pending:
        logger.debug(f"Resolving {len(pending)} crates against {client.base_url}")
        # One worker per lookup: the inventory size is the only bound
        with ThreadPoolExecutor(max_workers=len(pending)) as executor:
            future_to_idx = {
                executor.submit(resolve_record, record, client): idx
                for idx, record in pending.items()
            }
            for future in as_completed(future_to_idx):
                idx = future_to_idx[future]
                record = pending[idx]
                try:
                    resolved[idx] = future.result()
                except RegistryError as e:
                    logger.warning(f"Could not resolve latest version of {record.name}: {e}")
                    failures.append(LookupFailure(record.name, e))
                    resolved[idx] = record
                except Exception as e:
                    logger.warning(f"Unexpected error resolving {record.name}: {e}")
                    failures.append(LookupFailure(record.name, e))
                    resolved[idx] = record

    if fail_fast and failures:
        first = failures[0]
        raise ResolutionAborted(
            first.name,
            f"Registry lookup failed for {first.name}: {first.error}",
        ) from first.error

    return Resolution(
        records=tuple(resolved[idx] for idx in range(len(records))),
        failures=tuple(failures),
    )
