"""
Unit Test Configuration
=======================
Fixtures for pure logic tests - NO NETWORK ALLOWED.

All unit tests should be completely isolated from:
- Network (RPC, HTTP, Telegram)
- File system (except tmp_path)
"""

import importlib.util

import pytest


# ============================================================================
# AUTOUSE: ENFORCE I/O ISOLATION
# ============================================================================


@pytest.fixture(autouse=True)
def isolate_unit_tests(monkeypatch):
    """
    Automatically disable all network I/O for unit tests.
    Any test that accidentally tries to make a network call will fail.
    """
    def block_network(*args, **kwargs):
        raise RuntimeError(
            "Network I/O detected in unit test! "
            "Unit tests must be pure logic with no external dependencies. "
            "Use the mocks in tests/mocks instead."
        )

    # Newer solana-py releases send through httpx2
    for package in ("httpx", "httpx2"):
        if importlib.util.find_spec(package) is None:
            continue
        monkeypatch.setattr(f"{package}.AsyncClient.send", block_network)
        monkeypatch.setattr(f"{package}.Client.send", block_network)


# ============================================================================
# ENGINE FIXTURES
# ============================================================================


@pytest.fixture
def valid_secret_b58():
    """A freshly generated, internally consistent 64-byte secret key (base58)."""
    import base58
    from solders.keypair import Keypair

    return base58.b58encode(bytes(Keypair())).decode("ascii")


@pytest.fixture
def owner_with_wallet(store):
    """Register owner 'alice' and return (owner_id, public_key)."""
    record = store.create("alice")
    return "alice", record.public_key
