"""Configure pytest fixtures and environment for Blockship tests."""

import pytest
from dotenv import load_dotenv

from blockship.core import config as config_module


def pytest_sessionstart(session):
    """Load environment variables from a local .env, if present."""
    load_dotenv()


@pytest.fixture(autouse=True)
def reset_settings():
    """Drop the cached settings so each test sees its own environment."""
    config_module.settings = None
    yield
    config_module.settings = None
