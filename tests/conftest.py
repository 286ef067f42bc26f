"""Shared pytest fixtures for the File Organizer tests."""

import pytest

from file_organizer.core import logging_config


@pytest.fixture(autouse=True)
def reset_logging():
    """Detach handlers installed by CLI invocations so they do not outlive the test."""
    yield
    if logging_config._logging_manager is not None:
        logging_config._logging_manager.close()
        logging_config._logging_manager = None
