"""
Semantic version parsing and the upgradability rule.

Versions follow SemVer 2.0.0: MAJOR.MINOR.PATCH with optional pre-release
identifiers and build metadata. Precedence is SemVer's own: numeric
identifiers compare numerically, alphanumeric ones lexically, numeric sorts
before alphanumeric, and a longer identifier list wins when all shared
identifiers are equal. Build metadata does not take part in precedence and
is dropped on parse.

Nothing here raises on bad input: anything that does not parse is simply
not upgradable.
"""

from __future__ import annotations

import semver

from .inventory import InventoryRecord


def parse_version(text: str | None) -> semver.Version | None:
    """
    Parse a semantic version string.

    Args:
        text: Version such as "1.2.3", "0.4.0-rc.1" or "2.0.0+build.5"

    Returns:
        Comparable Version without build metadata, or None if the text is not a semantic version
    """
    if not text:
        return None

    try:
        version = semver.Version.parse(text)
    except (ValueError, TypeError):
        return None

    if version.build:
        version = version.replace(build=None)
    return version


def compare_versions(v1: str | None, v2: str | None) -> int | None:
    """
    Compare two version strings.

    Args:
        v1: First version
        v2: Second version

    Returns:
        -1 if v1 < v2, 0 if equal in precedence, 1 if v1 > v2, None if either does not parse
    """
    ver1 = parse_version(v1)
    ver2 = parse_version(v2)
    if ver1 is None or ver2 is None:
        return None
    return ver1.compare(ver2)


def classify_update(installed: str | None, latest: str | None) -> str:
    """
    Classify the size of an available update.

    Returns:
        "major", "minor" or "patch" when latest is newer, "" otherwise
    """
    cur = parse_version(installed)
    lat = parse_version(latest)

    if cur is None or lat is None or lat <= cur:
        return ""
    if lat.major > cur.major:
        return "major"
    if lat.minor > cur.minor:
        return "minor"
    return "patch"


def is_upgradable(record: InventoryRecord) -> bool:
    """
    Decide whether a record should be reinstalled.

    True only for registry-installed crates whose resolved version is
    strictly newer than the installed one.

    Args:
        record: Inventory record, resolved or not

    Returns:
        Whether the crate is upgradable
    """
    if not record.provenance.is_registry:
        return False
    return compare_versions(record.installed_version, record.resolved_version) == -1
