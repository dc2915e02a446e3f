"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from calcdesk.calculations.presets import PK_2024_NEW, PK_2024_OLD, PK_2024_SALARIED


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks integration tests")


@pytest.fixture(scope="session")
def anyio_backend():
    """Backend for async tests."""
    return "asyncio"


@pytest.fixture
def new_regime_engine():
    """Engine for the Pakistan 2024-25 new regime slabs."""
    return PK_2024_NEW.engine()


@pytest.fixture
def old_regime_engine():
    """Engine for the Pakistan 2024-25 old regime slabs."""
    return PK_2024_OLD.engine()


@pytest.fixture
def salaried_engine():
    """Engine for the salaried withholding slabs."""
    return PK_2024_SALARIED.engine()
