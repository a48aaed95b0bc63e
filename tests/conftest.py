"""Global configuration and fixtures for all pytest-based tests"""

import pytest

from serialtok.runner import Runner


@pytest.fixture(autouse=True)
def reset_runner_singleton():
    """Every test gets a fresh runner from Runner.get_runner"""
    Runner._runner = None  # pylint: disable=protected-access
    yield
    Runner._runner = None  # pylint: disable=protected-access
