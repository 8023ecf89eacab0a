"""
Pytest configuration for agentdash tests.
"""

import logging

import pytest


@pytest.fixture(autouse=True)
def restore_package_logger():
    """Undo setup_logging() calls so caplog keeps seeing agentdash records."""
    logger = logging.getLogger("agentdash")
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
