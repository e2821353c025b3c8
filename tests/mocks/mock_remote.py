"""
Mock Remote Client
==================
Engine-level stand-in for RemoteClient, keyed by wallet address.
"""

from typing import Dict, List, Optional, Tuple

from src.shared.models.wallet import Position


class MockRemoteClient:
    """
    Usage:
        remote = MockRemoteClient()
        remote.balances[address] = 1.5
        remote.fail("get_balance", address, TransientNetworkError("timeout"))
    """

    def __init__(self):
        self.balances: Dict[str, float] = {}
        self.positions: Dict[str, List[Position]] = {}
        self.signatures: Dict[str, List[str]] = {}
        self.airdrop_signature = "MockAirdropSig"
        self.airdrop_error: Optional[BaseException] = None
        self.calls: List[Tuple[str, str]] = []
        self._errors: Dict[Tuple[str, str], BaseException] = {}

    def fail(self, method: str, address: str, exc: BaseException):
        self._errors[(method, address)] = exc

    def recover(self, method: str, address: str):
        self._errors.pop((method, address), None)

    def _enter(self, method: str, address: str):
        self.calls.append((method, address))
        exc = self._errors.get((method, address))
        if exc is not None:
            raise exc

    async def get_balance(self, address: str) -> float:
        self._enter("get_balance", address)
        return self.balances.get(address, 0.0)

    async def get_positions(self, address: str) -> List[Position]:
        self._enter("get_positions", address)
        return list(self.positions.get(address, []))

    async def get_recent_signatures(self, address: str, limit: Optional[int] = None) -> List[str]:
        self._enter("get_recent_signatures", address)
        return list(self.signatures.get(address, []))

    async def request_airdrop(self, address: str, amount_sol: float) -> str:
        self._enter("request_airdrop", address)
        if self.airdrop_error is not None:
            raise self.airdrop_error
        return self.airdrop_signature

    async def close(self):
        pass
