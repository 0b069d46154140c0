"""Fixtures for CLI integration tests."""

import logging

import pytest


@pytest.fixture(autouse=True)
def restore_astfax_logger():
    """Undo the handlers configure_logging installs for each CLI invocation."""
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
