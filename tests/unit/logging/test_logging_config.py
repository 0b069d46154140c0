"""Tests for configure_logging and the stderr formatters."""

import io
import json
import logging
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from astfax.config import LoggingConfig
from astfax.logging import (
    JournalFormatter,
    JSONFormatter,
    configure_logging,
    job_context,
    stream_is_journal,
)


@pytest.fixture(autouse=True)
def restore_astfax_logger():
    logger = logging.getLogger("astfax")
    handlers = logger.handlers[:]
    level = logger.level
    propagate = logger.propagate
    yield
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


def _flush() -> None:
    for handler in logging.getLogger("astfax").handlers:
        handler.flush()


class TestConfigureLogging:
    def test_sets_level_on_package_logger(self) -> None:
        """Only the astfax tree is configured; the root logger is untouched."""
        root = logging.getLogger()
        root_handlers = root.handlers[:]
        root_level = root.level

        logger = configure_logging(LoggingConfig(level="debug"))

        assert logger is logging.getLogger("astfax")
        assert logger.level == logging.DEBUG
        assert logger.propagate is False
        assert root.handlers == root_handlers
        assert root.level == root_level

    def test_reconfigure_replaces_handlers(self, tmp_path: Path) -> None:
        config = LoggingConfig(file=tmp_path / "astfax.log", include_stderr=True)

        configure_logging(config)
        configure_logging(config)

        assert len(logging.getLogger("astfax").handlers) == 2

    def test_file_only(self, tmp_path: Path) -> None:
        """Without stderr, records go to the rotating log file."""
        log_file = tmp_path / "logs" / "astfax.log"
        configure_logging(LoggingConfig(file=log_file, include_stderr=False))

        with job_context(42):
            logging.getLogger("astfax.test").info("Converting")
        _flush()

        line = log_file.read_text(encoding="utf-8").strip()
        assert "INFO [MainThread] [job 42] astfax.test: Converting" in line
        assert len(logging.getLogger("astfax").handlers) == 1

    def test_other_loggers_not_written(self, tmp_path: Path) -> None:
        log_file = tmp_path / "astfax.log"
        configure_logging(LoggingConfig(file=log_file, include_stderr=False))

        logging.getLogger("somelib").warning("unrelated")
        _flush()

        assert log_file.read_text(encoding="utf-8") == ""

    def test_json_format(self, tmp_path: Path) -> None:
        log_file = tmp_path / "astfax.log"
        configure_logging(
            LoggingConfig(file=log_file, format="json", include_stderr=False)
        )

        handler = logging.getLogger("astfax").handlers[0]
        assert isinstance(handler.formatter, JSONFormatter)

        with job_context(7, "a.pdf"):
            logging.getLogger("astfax.test").warning("Move failed")
        _flush()

        entry = json.loads(log_file.read_text(encoding="utf-8").splitlines()[0])
        assert entry["job_id"] == "7"
        assert entry["level"] == "WARNING"
        assert entry["logger"] == "astfax.test"

    def test_unopenable_file_falls_back_to_stderr(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("")

        configure_logging(
            LoggingConfig(file=blocker / "astfax.log", include_stderr=False)
        )

        handlers = logging.getLogger("astfax").handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.StreamHandler)

    def test_journald_stderr_uses_journal_format(self) -> None:
        with patch("astfax.logging.config.stream_is_journal", return_value=True):
            configure_logging(LoggingConfig())

        (handler,) = logging.getLogger("astfax").handlers
        assert isinstance(handler.formatter, JournalFormatter)


class TestStreamIsJournal:
    def test_matching_device_and_inode(self, tmp_path: Path) -> None:
        with open(tmp_path / "stream", "w") as stream:
            st = os.fstat(stream.fileno())
            env = {"JOURNAL_STREAM": f"{st.st_dev}:{st.st_ino}"}
            with patch.dict(os.environ, env):
                assert stream_is_journal(stream)

    def test_other_stream(self, tmp_path: Path) -> None:
        """A redirected stderr is not the journal even under systemd."""
        with open(tmp_path / "stream", "w") as stream:
            with patch.dict(os.environ, {"JOURNAL_STREAM": "1:2"}):
                assert not stream_is_journal(stream)

    def test_unset(self, tmp_path: Path) -> None:
        with open(tmp_path / "stream", "w") as stream:
            with patch.dict(os.environ, clear=True):
                assert not stream_is_journal(stream)

    def test_stream_without_descriptor(self) -> None:
        with patch.dict(os.environ, {"JOURNAL_STREAM": "1:2"}):
            assert not stream_is_journal(io.StringIO())


class TestJournalFormatter:
    def _record(self, level: int, msg: str) -> logging.LogRecord:
        record = logging.LogRecord(
            "astfax.jobs.poll", level, __file__, 1, msg, (), None
        )
        record.job_tag = "[job 42] "
        return record

    @pytest.mark.parametrize(
        ("level", "prefix"),
        [
            (logging.DEBUG, "<7>"),
            (logging.INFO, "<6>"),
            (logging.WARNING, "<4>"),
            (logging.ERROR, "<3>"),
            (logging.CRITICAL, "<2>"),
        ],
    )
    def test_priority_prefix(self, level: int, prefix: str) -> None:
        text = JournalFormatter().format(self._record(level, "Spooled"))
        assert text == f"{prefix}[job 42] astfax.jobs.poll: Spooled"

    def test_multiline_kept_in_one_entry(self) -> None:
        text = JournalFormatter().format(self._record(logging.ERROR, "a\nb"))
        assert text == "<3>[job 42] astfax.jobs.poll: a\n    b"
