"""
Saros Bot Test Configuration
============================
Shared fixtures and pytest markers for the test suite.
"""

import pytest
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


# ============================================================================
# PYTEST MARKERS
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "network: marks tests that require network access"
    )


# ============================================================================
# SHARED FIXTURES
# ============================================================================

@pytest.fixture
def store(tmp_path):
    """WalletStore backed by files under tmp_path."""
    from src.shared.state.wallet_store import WalletStore

    return WalletStore(
        wallets_file=str(tmp_path / "wallets.json"),
        snapshots_file=str(tmp_path / "snapshots.json"),
    )


@pytest.fixture
def remote():
    from tests.mocks.mock_remote import MockRemoteClient

    return MockRemoteClient()


@pytest.fixture
def sample_position():
    """The position the mock DLMM pool reports for every wallet."""
    from src.shared.models.wallet import Position

    return Position(pool="mockPoolAddress", lower_bin=100, upper_bin=200, liquidity=1000.0, fees_earned=10.0)


@pytest.fixture
def no_sleep():
    """Async sleep replacement that records requested delays."""
    delays = []

    async def _sleep(seconds):
        delays.append(seconds)

    _sleep.delays = delays
    return _sleep
