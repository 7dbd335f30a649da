"""
Tests for the installed-crate inventory (cargo_updater/inventory.py).
"""

from unittest.mock import MagicMock, patch

import pytest

from cargo_updater.errors import AcquisitionError
from cargo_updater.inventory import (
    UNKNOWN,
    InventoryRecord,
    Provenance,
    ProvenanceKind,
    is_header_line,
    iter_parsed_lines,
    list_installed,
    parse_inventory,
    parse_line,
)
from cargo_updater.package_managers import CARGO


LISTING = """\
ripgrep v14.1.0:
    rg
mdbook v0.4.37 (https://github.com/rust-lang/mdBook#a1b2c3d4):
    mdbook
my-tool v0.1.0 (/home/user/src/my-tool):
    my-tool
    my-tool-helper

bat v0.24.0:
    bat
"""


class TestProvenance:
    """Tests for the Provenance tagged variant."""

    def test_registry_defaults_to_empty_hint(self):
        """Test registry provenance starts with an empty origin hint."""
        prov = Provenance.registry()
        assert prov.kind is ProvenanceKind.registry
        assert prov.detail == ""
        assert prov.is_registry

    def test_version_control_carries_url(self):
        """Test git provenance exposes its URL through detail."""
        prov = Provenance.version_control("https://example.com/bar")
        assert prov.kind is ProvenanceKind.git
        assert prov.detail == "https://example.com/bar"
        assert not prov.is_registry

    def test_local_carries_path(self):
        """Test local provenance exposes its path through detail."""
        prov = Provenance.local("/home/user/baz")
        assert prov.kind is ProvenanceKind.local
        assert prov.detail == "/home/user/baz"
        assert not prov.is_registry

    def test_labels(self):
        """Test user-facing labels."""
        assert str(Provenance.registry()) == "crates.io"
        assert str(Provenance.version_control("https://x")) == "git"
        assert str(Provenance.local("/x")) == "local"


class TestParseLine:
    """Tests for header line parsing."""

    def test_registry_line(self):
        """Test 'foo v1.2.3:' gives a registry record with an empty hint."""
        parsed = parse_line("foo v1.2.3:")
        record = parsed.record
        assert record.name == "foo"
        assert record.installed_version == "1.2.3"
        assert record.provenance == Provenance.registry("")
        assert record.resolved_version is None
        assert parsed.diagnostics == ()

    def test_git_line(self):
        """Test a parenthesised http source is classified as git."""
        record = parse_line("bar v0.9.0: (https://example.com/bar):").record
        assert record.name == "bar"
        assert record.installed_version == "0.9.0"
        assert record.provenance == Provenance.version_control("https://example.com/bar")

    def test_git_line_real_cargo_format(self):
        """Test cargo's own 'name vX (url#rev):' layout."""
        record = parse_line("mdbook v0.4.37 (https://github.com/rust-lang/mdBook#a1b2c3d4):").record
        assert record.installed_version == "0.4.37"
        assert record.provenance.kind is ProvenanceKind.git
        assert record.provenance.detail == "https://github.com/rust-lang/mdBook#a1b2c3d4"

    def test_local_line(self):
        """Test a non-http source is classified as local."""
        record = parse_line("baz v2.0.0: (/home/user/baz):").record
        assert record.name == "baz"
        assert record.installed_version == "2.0.0"
        assert record.provenance == Provenance.local("/home/user/baz")

    def test_version_without_v_prefix(self):
        """Test versions without a leading 'v' are kept."""
        record = parse_line("foo 1.2.3:").record
        assert record.installed_version == "1.2.3"

    def test_repeated_v_prefix_stripped(self):
        """Test every leading 'v' is removed from the version token."""
        record = parse_line("foo vv1.2.3:").record
        assert record.installed_version == "1.2.3"

    def test_prerelease_version_kept(self):
        """Test pre-release suffixes survive cleaning."""
        record = parse_line("foo v1.0.0-rc.1:").record
        assert record.installed_version == "1.0.0-rc.1"

    def test_missing_version_token(self):
        """Test a lone name yields an empty version and a diagnostic."""
        parsed = parse_line("lonely")
        assert parsed.record.name == "lonely"
        assert parsed.record.installed_version == ""
        assert parsed.record.provenance.is_registry
        assert "missing version token" in parsed.diagnostics

    def test_empty_version_token(self):
        """Test a bare 'v:' yields an empty version and a diagnostic."""
        parsed = parse_line("foo v:")
        assert parsed.record.installed_version == ""
        assert len(parsed.diagnostics) == 1

    def test_extra_tokens_ignored(self):
        """Test tokens after the source are ignored with a diagnostic."""
        parsed = parse_line("foo v1.0.0: (/path): extra stuff")
        assert parsed.record.provenance == Provenance.local("/path")
        assert any("extra tokens" in d for d in parsed.diagnostics)

    def test_double_space_does_not_shift_source(self):
        """Test tokenization is on single spaces, so an empty token is not a source."""
        parsed = parse_line("foo  v1.0.0:")
        # tokens: ["foo", "", "v1.0.0:"]
        assert parsed.record.installed_version == ""
        assert parsed.record.provenance.kind is ProvenanceKind.local


class TestParseInventory:
    """Tests for full listing parsing."""

    def test_header_detection(self):
        """Test indented and blank lines are not headers."""
        assert is_header_line("ripgrep v14.1.0:")
        assert not is_header_line("    rg")
        assert not is_header_line("\trg")
        assert not is_header_line("")

    def test_parse_listing(self):
        """Test every header line produces one record in order."""
        records = parse_inventory(LISTING)
        assert [r.name for r in records] == ["ripgrep", "mdbook", "my-tool", "bat"]
        assert [r.provenance.kind for r in records] == [
            ProvenanceKind.registry,
            ProvenanceKind.git,
            ProvenanceKind.local,
            ProvenanceKind.registry,
        ]
        assert all(r.resolved_version is None for r in records)

    def test_parse_empty_listing(self):
        """Test empty output yields no records."""
        assert parse_inventory("") == []

    def test_crlf_line_endings(self):
        """Test a trailing carriage return is not part of the line."""
        records = parse_inventory("foo v1.0.0:\r\n    foo\r\nbar v2.0.0:\r\n")
        assert [(r.name, r.installed_version) for r in records] == [("foo", "1.0.0"), ("bar", "2.0.0")]
        assert all(r.provenance.is_registry for r in records)

    @pytest.mark.parametrize("separator", ["\x0c", "\x0b", "\x1c", "\x85", "\u2028"])
    def test_only_newline_splits_lines(self, separator):
        """Test Unicode line boundaries other than LF do not start a new entry."""
        records = parse_inventory(f"foo v1.0.0:{separator}bar v2.0.0:\n")
        assert len(records) == 1
        assert records[0].name == "foo"

    def test_iter_parsed_lines_keeps_diagnostics(self):
        """Test diagnostics are available per line."""
        parsed = list(iter_parsed_lines("foo\nbar v1.0.0:\n"))
        assert parsed[0].diagnostics
        assert parsed[1].diagnostics == ()


class TestInventoryRecord:
    """Tests for InventoryRecord."""

    def test_empty_name_rejected(self):
        """Test a record must have a name."""
        with pytest.raises(ValueError):
            InventoryRecord(name="", installed_version="1.0.0", provenance=Provenance.registry())

    def test_resolve_returns_new_record(self):
        """Test resolution builds a new record and leaves the original untouched."""
        record = InventoryRecord("foo", "1.0.0", Provenance.registry())
        resolved = record.resolve("1.1.0", "https://github.com/x/foo", "5 March 2024")

        assert resolved is not record
        assert record.resolved_version is None
        assert record.provenance.detail == ""
        assert resolved.resolved_version == "1.1.0"
        assert resolved.provenance == Provenance.registry("https://github.com/x/foo")
        assert resolved.last_published == "5 March 2024"

    def test_resolve_rejects_non_registry(self):
        """Test only registry records take registry data."""
        record = InventoryRecord("bar", "1.0.0", Provenance.local("/x"))
        with pytest.raises(ValueError):
            record.resolve("2.0.0", "-", "-")

    def test_resolve_offline(self):
        """Test non-registry records get the '-' sentinels and keep provenance."""
        record = InventoryRecord("bar", "1.0.0", Provenance.version_control("https://x"))
        resolved = record.resolve_offline()
        assert resolved.resolved_version == UNKNOWN
        assert resolved.last_published == UNKNOWN
        assert resolved.provenance == record.provenance

    def test_to_dict(self):
        """Test JSON-ready conversion."""
        record = InventoryRecord("bar", "1.0.0", Provenance.local("/x"))
        assert record.to_dict() == {
            "name": "bar",
            "installed_version": "1.0.0",
            "source": "local",
            "source_detail": "/x",
            "resolved_version": None,
            "last_published": None,
        }


class TestListInstalled:
    """Tests for running the list command."""

    @patch("cargo_updater.inventory.subprocess.run")
    def test_success(self, mock_run):
        """Test output is decoded and parsed."""
        mock_run.return_value = MagicMock(returncode=0, stdout=LISTING.encode(), stderr=b"")

        records = list_installed(CARGO)

        assert len(records) == 4
        mock_run.assert_called_once_with(
            ["cargo", "install", "--list"], capture_output=True, check=False
        )

    @patch("cargo_updater.inventory.subprocess.run")
    def test_custom_executable(self, mock_run):
        """Test the configured executable is used."""
        mock_run.return_value = MagicMock(returncode=0, stdout=b"", stderr=b"")

        list_installed(CARGO.with_executable("/opt/cargo/bin/cargo"))

        assert mock_run.call_args[0][0] == ["/opt/cargo/bin/cargo", "install", "--list"]

    @patch("cargo_updater.inventory.subprocess.run")
    def test_missing_executable(self, mock_run):
        """Test a missing cargo raises AcquisitionError."""
        mock_run.side_effect = FileNotFoundError("cargo")

        with pytest.raises(AcquisitionError, match="not found"):
            list_installed(CARGO)

    @patch("cargo_updater.inventory.subprocess.run")
    def test_nonzero_exit(self, mock_run):
        """Test a failing list command raises AcquisitionError with stderr."""
        mock_run.return_value = MagicMock(returncode=101, stdout=b"", stderr=b"error: boom")

        with pytest.raises(AcquisitionError) as exc_info:
            list_installed(CARGO)
        assert "101" in str(exc_info.value)
        assert "boom" in str(exc_info.value)

    @patch("cargo_updater.inventory.subprocess.run")
    def test_invalid_utf8(self, mock_run):
        """Test undecodable output raises AcquisitionError."""
        mock_run.return_value = MagicMock(returncode=0, stdout=b"foo v1.0.0:\xff\xfe", stderr=b"")

        with pytest.raises(AcquisitionError, match="UTF-8"):
            list_installed(CARGO)

    @patch("cargo_updater.inventory.subprocess.run")
    def test_permission_error(self, mock_run):
        """Test any OSError while spawning is an acquisition failure."""
        mock_run.side_effect = PermissionError("denied")

        with pytest.raises(AcquisitionError):
            list_installed(CARGO)
