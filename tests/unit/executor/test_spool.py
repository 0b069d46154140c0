"""Tests for SpoolDispatcher."""

import errno
from pathlib import Path
from unittest.mock import patch

import pytest

from astfax.exceptions import RelocationError, RelocationErrorType
from astfax.executor.spool import SpoolDispatcher


@pytest.fixture
def dirs(tmp_path: Path) -> tuple[Path, Path]:
    staging = tmp_path / "fax" / "outgoing"
    spool = tmp_path / "outgoing"
    staging.mkdir(parents=True)
    spool.mkdir()
    return staging, spool


class TestDispatch:
    """Tests for SpoolDispatcher.dispatch."""

    def test_moves_file_keeping_name(self, dirs) -> None:
        staging, spool = dirs
        call_file = staging / "42_invoice.call"
        call_file.write_text("Channel:PJSIP/1@t\n")

        destination = SpoolDispatcher(spool).dispatch(call_file)

        assert destination == spool / "42_invoice.call"
        assert destination.read_text() == "Channel:PJSIP/1@t\n"
        assert not call_file.exists()

    def test_second_dispatch_fails_not_found(self, dirs) -> None:
        """A call file can only be handed over once."""
        staging, spool = dirs
        call_file = staging / "42_invoice.call"
        call_file.write_text("x")
        dispatcher = SpoolDispatcher(spool)
        dispatcher.dispatch(call_file)

        with pytest.raises(RelocationError) as exc_info:
            dispatcher.dispatch(call_file)

        assert exc_info.value.error_type == RelocationErrorType.NOT_FOUND
        assert exc_info.value.source == call_file

    def test_cross_device_is_refused(self, dirs) -> None:
        """A move across filesystems is reported, never copied."""
        staging, spool = dirs
        call_file = staging / "42_invoice.call"
        call_file.write_text("x")

        with patch(
            "astfax.executor.spool.os.rename",
            side_effect=OSError(errno.EXDEV, "Invalid cross-device link"),
        ):
            with pytest.raises(RelocationError) as exc_info:
                SpoolDispatcher(spool).dispatch(call_file)

        assert exc_info.value.error_type == RelocationErrorType.CROSS_DEVICE
        assert call_file.exists()
        assert list(spool.iterdir()) == []


class TestRelocationErrorType:
    @pytest.mark.parametrize(
        ("code", "expected"),
        [
            (errno.ENOENT, RelocationErrorType.NOT_FOUND),
            (errno.EACCES, RelocationErrorType.PERMISSION),
            (errno.EXDEV, RelocationErrorType.CROSS_DEVICE),
            (errno.ENOSPC, RelocationErrorType.DISK_SPACE),
            (errno.EIO, RelocationErrorType.IO_ERROR),
            (None, RelocationErrorType.UNKNOWN),
        ],
    )
    def test_from_errno(self, code, expected) -> None:
        assert RelocationErrorType.from_errno(code) == expected
