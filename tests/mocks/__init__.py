"""
Saros Bot Test Mocks
====================
Reusable mock classes for isolated testing.
"""

from tests.mocks.mock_rpc import MockAsyncClient
from tests.mocks.mock_remote import MockRemoteClient

__all__ = [
    "MockAsyncClient",
    "MockRemoteClient",
]
