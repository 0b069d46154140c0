"""Tests for Asterisk call file generation."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from astfax.db import TrunkNumber
from astfax.exceptions import DescriptorWriteError, TrunkResolutionError
from astfax.executor.callfile import (
    PPID_HEADER_DIRECTIVE,
    CallFileBuilder,
    escape_header_value,
    parse_call_file,
    render_call_file,
    resolve_trunk,
    unescape_header_value,
)

TRUNK = TrunkNumber(id=7, full_number="5559999999", ps_endpoints_id="trunk1")


class TestRenderCallFile:
    """Tests for render_call_file."""

    def test_renders_expected_lines(self) -> None:
        """Dial plan, caller id and fax variables appear in order."""
        text = render_call_file(
            TRUNK, 42, Path("/spool/fax/42_invoice.tiff"), "5551234567"
        )

        assert text == (
            "Channel:PJSIP/5551234567@trunk1\n"
            'CallerID:"5559999999"<5559999999>\n'
            "MaxRetries:4\n"
            "RetryTime:60\n"
            "WaitTime:45\n"
            "Archive:Yes\n"
            "Context:fax\n"
            "Extension:out\n"
            "Priority:1\n"
            "Set:FAXID=42\n"
            "Set:FAXFILE=/spool/fax/42_invoice.tiff\n"
        )

    def test_deterministic(self) -> None:
        args = (TRUNK, 1, Path("/a.tiff"), "555")
        assert render_call_file(*args) == render_call_file(*args)

    def test_no_header_line_without_ppid(self) -> None:
        text = render_call_file(TRUNK, 1, Path("/a.tiff"), "555")
        assert "P-Preferred-Identity" not in text

    def test_empty_ppid_is_omitted(self) -> None:
        trunk = TrunkNumber(7, "5559999999", "trunk1", header_ppid="")
        text = render_call_file(trunk, 1, Path("/a.tiff"), "555")
        assert "P-Preferred-Identity" not in text

    def test_header_value_round_trips(self) -> None:
        """Escaped header values parse back to the original."""
        ppid = r'"Acme; Fax" <sip:+15559999999@example.com>;tag=a\b'
        trunk = TrunkNumber(7, "5559999999", "trunk1", header_ppid=ppid)

        entries = parse_call_file(render_call_file(trunk, 1, Path("/a.tiff"), "555"))

        key, value = entries[-1]
        assert key == "Set"
        directive, _, escaped = value.partition("=")
        assert directive == PPID_HEADER_DIRECTIVE
        assert unescape_header_value(escaped) == ppid

    @pytest.mark.parametrize("ppid", ["id;x ", "  padded\\value  ", "\t;"])
    def test_header_whitespace_round_trips(self, ppid: str) -> None:
        """Leading and trailing whitespace in header values is preserved."""
        trunk = TrunkNumber(7, "5559999999", "trunk1", header_ppid=ppid)

        entries = parse_call_file(render_call_file(trunk, 1, Path("/a.tiff"), "555"))

        _, value = entries[-1]
        escaped = value.partition("=")[2]
        assert unescape_header_value(escaped) == ppid

    def test_line_break_rejected(self) -> None:
        """Values that would inject extra directives are refused."""
        with pytest.raises(ValueError, match="line breaks"):
            render_call_file(TRUNK, 1, Path("/a.tiff"), "555\nChannel:Local/1")


class TestEscaping:
    def test_escapes_semicolon_and_backslash(self) -> None:
        assert escape_header_value("a;b\\c") == "a\\;b\\\\c"

    def test_plain_value_unchanged(self) -> None:
        assert escape_header_value("<sip:1@x>") == "<sip:1@x>"

    def test_unescape_reverses(self) -> None:
        for value in ["", ";", "\\", "\\;", "a;;b", "trailing\\"]:
            assert unescape_header_value(escape_header_value(value)) == value


class TestParseCallFile:
    def test_skips_comments_and_blank_lines(self) -> None:
        entries = parse_call_file("# comment\n\nChannel:PJSIP/1@t\nSet:A=b:c\n")
        assert entries == [("Channel", "PJSIP/1@t"), ("Set", "A=b:c")]

    def test_malformed_line(self) -> None:
        with pytest.raises(ValueError):
            parse_call_file("no colon here\n")


class TestResolveTrunk:
    def test_single_match(self) -> None:
        assert resolve_trunk([TRUNK], 7) is TRUNK

    @pytest.mark.parametrize("count", [0, 2])
    def test_zero_or_many_matches(self, count: int) -> None:
        with pytest.raises(TrunkResolutionError) as exc_info:
            resolve_trunk([TRUNK] * count, 7)

        assert exc_info.value.matches == count
        assert exc_info.value.outgoing_number_id == 7


class TestCallFileBuilder:
    """Tests for CallFileBuilder.build."""

    def test_writes_call_file_beside_tiff(self, tmp_path: Path) -> None:
        store = MagicMock()
        store.lookup_fax_trunks.return_value = [TRUNK]
        tiff = tmp_path / "42_invoice.tiff"

        call_file = CallFileBuilder(store).build(7, 42, tiff, "5551234567")

        assert call_file == tmp_path / "42_invoice.call"
        assert call_file.read_text(encoding="utf-8") == render_call_file(
            TRUNK, 42, tiff, "5551234567"
        )
        store.lookup_fax_trunks.assert_called_once_with(7)

    @pytest.mark.parametrize("count", [0, 2])
    def test_unresolved_trunk_writes_nothing(self, tmp_path: Path, count) -> None:
        store = MagicMock()
        store.lookup_fax_trunks.return_value = [TRUNK] * count

        with pytest.raises(TrunkResolutionError):
            CallFileBuilder(store).build(7, 42, tmp_path / "x.tiff", "555")

        assert list(tmp_path.iterdir()) == []

    def test_write_failure(self, tmp_path: Path) -> None:
        """An unwritable directory surfaces as DescriptorWriteError."""
        store = MagicMock()
        store.lookup_fax_trunks.return_value = [TRUNK]
        tiff = tmp_path / "missing-dir" / "x.tiff"

        with pytest.raises(DescriptorWriteError) as exc_info:
            CallFileBuilder(store).build(7, 42, tiff, "555")

        assert exc_info.value.job_id == 42

    def test_render_failure(self, tmp_path: Path) -> None:
        store = MagicMock()
        store.lookup_fax_trunks.return_value = [TRUNK]

        with pytest.raises(DescriptorWriteError):
            CallFileBuilder(store).build(7, 42, tmp_path / "x.tiff", "555\r\n")

        assert list(tmp_path.iterdir()) == []
