"""
Inventory of installed crates.

Parses the output of ``cargo install --list`` into typed records. The listing
is line oriented:

    ripgrep v14.1.0:
        rg
    mdbook v0.4.37 (https://github.com/rust-lang/mdBook#a1b2c3d4):
        mdbook
    my-tool v0.1.0 (/home/user/src/my-tool):
        my-tool

Header lines carry one crate each; indented lines list the binaries a crate
installed and are ignored. The optional third token tells where the crate
was installed from.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterator

from .errors import AcquisitionError
from .package_managers import CARGO, PackageManager

logger = logging.getLogger(__name__)

# Value shown for data that does not exist for a record (non-registry
# crates have no registry version, a crate may have no repository, ...)
UNKNOWN = "-"


class ProvenanceKind(str, Enum):
    """Where an installed crate came from."""

    registry = "registry"
    git = "git"
    local = "local"


_KIND_LABELS = {
    ProvenanceKind.registry: "crates.io",
    ProvenanceKind.git: "git",
    ProvenanceKind.local: "local",
}


@dataclass(frozen=True)
class Provenance:
    """
    Install source of a crate, tagged with the string it carries.

    registry
      detail is the repository URL reported by the registry. Empty until
      the crate is resolved, "-" when the registry has none.

    git
      detail is the repository URL the crate was built from.

    local
      detail is the filesystem path the crate was built from.
    """

    kind: ProvenanceKind
    detail: str = ""

    @classmethod
    def registry(cls, origin_hint: str = "") -> Provenance:
        return cls(ProvenanceKind.registry, origin_hint)

    @classmethod
    def version_control(cls, url: str) -> Provenance:
        return cls(ProvenanceKind.git, url)

    @classmethod
    def local(cls, path: str) -> Provenance:
        return cls(ProvenanceKind.local, path)

    @property
    def is_registry(self) -> bool:
        return self.kind is ProvenanceKind.registry

    def __str__(self) -> str:
        return _KIND_LABELS[self.kind]


@dataclass(frozen=True)
class InventoryRecord:
    """
    One locally installed crate.

    Attributes:
        name: Crate name, unique within one listing
        installed_version: Installed version without the "v" prefix (may be malformed)
        provenance: Install source
        resolved_version: Newest registry version, None until resolved, "-" for non-registry crates
        last_published: Human-readable date of the last registry publish, "-" when unknown
    """
    name: str
    installed_version: str
    provenance: Provenance
    resolved_version: str | None = None
    last_published: str | None = None

    def __post_init__(self):
        if not self.name:
            raise ValueError("InventoryRecord name must not be empty")

    @property
    def is_resolved(self) -> bool:
        return self.resolved_version is not None

    def resolve(self, version: str, repository: str, last_published: str) -> InventoryRecord:
        """
        Return a resolved copy of a registry record.

        Args:
            version: Newest published version
            repository: Repository URL reported by the registry, or "-"
            last_published: Formatted publish date, or "-"

        Returns:
            New record; this one is left untouched
        """
        if not self.provenance.is_registry:
            raise ValueError(f"{self.name} is not installed from the registry")
        return replace(
            self,
            resolved_version=version,
            provenance=Provenance.registry(repository),
            last_published=last_published,
        )

    def resolve_offline(self) -> InventoryRecord:
        """Return a copy with the sentinels used for crates the registry does not know."""
        return replace(self, resolved_version=UNKNOWN, last_published=UNKNOWN)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "installed_version": self.installed_version,
            "source": str(self.provenance),
            "source_detail": self.provenance.detail,
            "resolved_version": self.resolved_version,
            "last_published": self.last_published,
        }


@dataclass(frozen=True)
class ParsedLine:
    """
    Result of parsing one header line.

    Attributes:
        record: Parsed record
        diagnostics: Problems noticed while parsing (empty when the line was clean)
    """
    record: InventoryRecord
    diagnostics: tuple[str, ...] = ()


def is_header_line(line: str) -> bool:
    """True for lines that start a crate entry (non-blank, not indented)."""
    return bool(line) and not line[0].isspace()


def _clean_version(token: str) -> str:
    return token.rstrip(":").lstrip("v")


def _classify_source(token: str) -> Provenance:
    source = token.strip("():")
    if source.startswith("http"):
        return Provenance.version_control(source)
    return Provenance.local(source)


def parse_line(line: str) -> ParsedLine:
    """
    Parse a header line of the listing.

    Tokens are separated by single spaces:
    name, version (``v1.2.3:``), optional source (``(url-or-path):``).

    Args:
        line: Header line, see is_header_line

    Returns:
        ParsedLine with the record and any diagnostics

    Raises:
        ValueError: If the line yields no crate name
    """
    tokens = line.split(" ")
    name = tokens[0]
    diagnostics: list[str] = []

    if len(tokens) < 2:
        version = ""
        diagnostics.append("missing version token")
    else:
        version = _clean_version(tokens[1])
        if not version:
            diagnostics.append(f"empty version token {tokens[1]!r}")

    if len(tokens) >= 3:
        provenance = _classify_source(tokens[2])
    else:
        provenance = Provenance.registry()

    if len(tokens) > 3:
        diagnostics.append(f"ignored extra tokens {tokens[3:]!r}")

    record = InventoryRecord(name=name, installed_version=version, provenance=provenance)
    return ParsedLine(record=record, diagnostics=tuple(diagnostics))


def iter_parsed_lines(text: str) -> Iterator[ParsedLine]:
    """
    Yield a ParsedLine for every header line in the listing.

    Lines end at LF or CRLF only, as cargo writes them. Other Unicode line
    boundaries (form feed, U+2028, ...) stay inside the line.
    """
    for line in text.split("\n"):
        line = line.rstrip("\r")
        if not is_header_line(line):
            continue
        yield parse_line(line)


def parse_inventory(text: str) -> list[InventoryRecord]:
    """
    Parse a full ``cargo install --list`` listing.

    Args:
        text: Decoded standard output of the list command

    Returns:
        Records in listing order, unresolved
    """
    records = []
    for parsed in iter_parsed_lines(text):
        for diagnostic in parsed.diagnostics:
            logger.debug(f"{parsed.record.name}: {diagnostic}")
        records.append(parsed.record)
    return records


def list_installed(package_manager: PackageManager = CARGO) -> list[InventoryRecord]:
    """
    Run the package manager's list command and parse its output.

    Args:
        package_manager: Package manager to query

    Returns:
        Parsed, unresolved records

    Raises:
        AcquisitionError: If the command cannot run, fails, or prints non UTF-8 output
    """
    command = package_manager.get_list_command()
    display = " ".join(command)

    try:
        result = subprocess.run(command, capture_output=True, check=False)
    except OSError as e:
        raise AcquisitionError(f"{package_manager.executable} was not found in $PATH: {e}") from e

    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", "replace").strip()
        detail = f": {stderr}" if stderr else ""
        raise AcquisitionError(f"`{display}` not successful (exit {result.returncode}){detail}")

    try:
        text = result.stdout.decode("utf-8")
    except UnicodeDecodeError as e:
        raise AcquisitionError(f"`{display}` printed output that is not valid UTF-8") from e

    records = parse_inventory(text)
    logger.debug(f"Found {len(records)} installed crates")
    return records
