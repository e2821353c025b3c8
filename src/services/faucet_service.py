"""
V1.0: Faucet Limiter
====================
Devnet airdrop gate: at most one successful airdrop per owner per rolling
window (FAUCET_WINDOW_S). Failed attempts do not consume the window.
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable, Dict, Optional

from config.settings import Settings
from src.shared.infrastructure.rpc_client import RemoteClient
from src.shared.state.wallet_store import WalletStore
from src.shared.system.errors import RateLimitExceededError, WalletNotFoundError
from src.shared.system.logging import Logger


class FaucetLimiter:
    """
    Usage:
        limiter = FaucetLimiter(store, remote)
        try:
            sig = await limiter.request(owner_id)
        except RateLimitExceededError as e:
            print(e.remaining_minutes)
    """

    def __init__(
        self,
        store: WalletStore,
        remote: RemoteClient,
        window_s: Optional[float] = None,
        amount_sol: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.remote = remote
        self.window_s = window_s if window_s is not None else Settings.FAUCET_WINDOW_S
        self.amount_sol = amount_sol if amount_sol is not None else Settings.FAUCET_AMOUNT_SOL
        self._clock = clock
        # Held across check -> airdrop -> record so two requests cannot both pass the check
        self._in_flight: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = {}

    def remaining_seconds(self, owner_id: str) -> float:
        """Seconds until the owner may request again (0 if allowed now)."""
        last = self.store.get_snapshot(owner_id).last_faucet_time
        if last is None:
            return 0.0
        return max(0.0, self.window_s - (self._clock() - last))

    async def request(self, owner_id: str) -> str:
        """
        Airdrop FAUCET_AMOUNT_SOL to the owner's wallet.

        Raises:
            WalletNotFoundError: owner has no wallet
            RateLimitExceededError: window not yet elapsed (no side effects)
            RemoteCallError: airdrop failed on every endpoint
        """
        record = self.store.get(owner_id)
        if record is None:
            raise WalletNotFoundError(owner_id)

        lock = self._in_flight.setdefault(owner_id, asyncio.Lock())
        self._waiters[owner_id] = self._waiters.get(owner_id, 0) + 1
        try:
            async with lock:
                return await self._request_locked(owner_id, record.public_key)
        finally:
            self._waiters[owner_id] -= 1
            if self._waiters[owner_id] == 0:
                # Nobody holds or awaits the lock any more
                del self._waiters[owner_id]
                del self._in_flight[owner_id]

    async def _request_locked(self, owner_id: str, public_key: str) -> str:
        remaining = self.remaining_seconds(owner_id)
        if remaining > 0:
            Logger.info(f"[FAUCET] {owner_id} rate limited ({remaining:.0f}s remaining)")
            raise RateLimitExceededError(remaining)

        Logger.info(f"[FAUCET] Requesting {self.amount_sol} SOL for {owner_id} ({public_key})")
        signature = await self.remote.request_airdrop(public_key, self.amount_sol)

        async with self.store.owner_lock(owner_id):
            self.store.set_last_faucet_time(owner_id, self._clock())

        Logger.success(f"[FAUCET] {owner_id} funded: {signature}")
        return signature
