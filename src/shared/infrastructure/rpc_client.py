"""
Remote Client (RPC Failover)
============================
Wraps a primary and a fallback Solana RPC endpoint behind four
capabilities, each translated into the engine error taxonomy:

    get_balance(address)                  -> SOL (float)
    get_positions(address)                -> List[Position]   (DLMM, no retry)
    get_recent_signatures(address, limit) -> List[str]        (most recent first)
    request_airdrop(address, amount_sol)  -> signature        (waits for "confirmed")

Failover asymmetry:
    Reads retry against the primary only.
    Airdrops exhaust the retry budget on the primary, then run the full
    budget once on the fallback. The primary is not re-attempted.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Sequence

from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment, Confirmed
from solana.rpc.core import UnconfirmedTxError
from solders.pubkey import Pubkey

from config.settings import Settings
from src.shared.infrastructure.retry_executor import RetryExecutor, RetryPolicy
from src.shared.models.wallet import Position
from src.shared.system.errors import (
    EndpointUnavailableError,
    TransactionRejectedError,
    TransientNetworkError,
    UpstreamServiceError,
)
from src.shared.system.logging import Logger

LAMPORTS_PER_SOL = 1_000_000_000


class PositionProvider(Protocol):
    """Anything that can list DLMM positions for a wallet address."""

    async def get_positions(self, address: str) -> Sequence[Any]:
        ...


@dataclass
class RpcEndpoint:
    """One RPC connection plus its health counters."""

    name: str
    client: AsyncClient
    success: int = 0
    errors: int = 0
    last_error: str = ""
    last_error_time: float = 0.0

    def record_success(self) -> None:
        self.success += 1

    def record_error(self, error: str) -> None:
        self.errors += 1
        self.last_error = error[:200]
        self.last_error_time = time.time()


def _is_a(exc: BaseException, *names: str) -> bool:
    """
    Class-name check across the MRO.

    Newer solana-py releases wrap `httpx2` instead of `httpx`; both share
    the same exception hierarchy and names.
    """
    return any(cls.__name__ in names for cls in type(exc).__mro__)


def _translate(exc: BaseException, endpoint: str, method: str = "call") -> Exception:
    """Map solana-py / httpx failures onto the engine taxonomy."""
    cause = exc.__cause__ if isinstance(exc, SolanaRpcException) and exc.__cause__ else exc

    if _is_a(cause, "ConnectError", "RemoteProtocolError"):
        return EndpointUnavailableError(f"{endpoint} unreachable: {cause}", endpoint)
    if _is_a(cause, "HTTPStatusError"):
        status = cause.response.status_code
        if status == 429 or status == 503:
            return EndpointUnavailableError(f"{endpoint} returned HTTP {status}", endpoint)
        return TransientNetworkError(f"{endpoint} returned HTTP {status}", endpoint)
    if _is_a(cause, "TimeoutException"):
        return TransientNetworkError(f"{endpoint} timed out", endpoint)
    if isinstance(exc, UnconfirmedTxError):
        return TransientNetworkError(f"{endpoint} could not confirm transaction: {exc}", endpoint)
    return TransientNetworkError(f"{method} on {endpoint} failed: {exc}", endpoint)


class RemoteClient:
    """
    Engine-facing view of the Solana RPC and the DLMM position service.

    Usage:
        client = RemoteClient.from_settings(DlmmService())
        sol = await client.get_balance(address)
        sig = await client.request_airdrop(address, 2.0)
    """

    def __init__(
        self,
        primary: AsyncClient,
        fallback: Optional[AsyncClient],
        position_provider: PositionProvider,
        read_policy: Optional[RetryPolicy] = None,
        airdrop_policy: Optional[RetryPolicy] = None,
        commitment: Commitment = Confirmed,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        self.primary = RpcEndpoint("primary", primary)
        self.fallback = RpcEndpoint("fallback", fallback) if fallback is not None else None
        self.position_provider = position_provider
        self.read_policy = read_policy or RetryPolicy.for_reads()
        self.airdrop_policy = airdrop_policy or RetryPolicy.for_airdrop()
        self.commitment = commitment
        self._sleep = sleep

    @classmethod
    def from_settings(cls, position_provider: PositionProvider) -> "RemoteClient":
        primary = AsyncClient(Settings.RPC_URL, commitment=Confirmed, timeout=Settings.RPC_TIMEOUT_S)
        fallback = None
        if Settings.FALLBACK_RPC_URL and Settings.FALLBACK_RPC_URL != Settings.RPC_URL:
            fallback = AsyncClient(Settings.FALLBACK_RPC_URL, commitment=Confirmed, timeout=Settings.RPC_TIMEOUT_S)
        Logger.info(f"[RPC] Primary {Settings.RPC_URL} | Fallback {Settings.FALLBACK_RPC_URL if fallback else 'none'}")
        return cls(primary, fallback, position_provider)

    async def close(self) -> None:
        await self.primary.client.close()
        if self.fallback:
            await self.fallback.client.close()

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    async def _call(self, endpoint: RpcEndpoint, method: str, request: Callable[[AsyncClient], Awaitable[Any]]) -> Any:
        """Run one RPC request and unwrap .value, translating failures."""
        try:
            resp = await request(endpoint.client)
        except Exception as e:
            # Also covers body parsing (solders SerdeJSONError), which runs outside solana-py's wrapper
            err = _translate(e, endpoint.name, method)
            endpoint.record_error(str(err))
            raise err from e

        # solders returns an error object (no .value) for JSON-RPC error bodies
        if not hasattr(resp, "value"):
            endpoint.record_error(f"{method}: {resp}")
            raise TransientNetworkError(f"{method} on {endpoint.name} returned error: {resp}", endpoint.name)

        endpoint.record_success()
        return resp.value

    def _executor(self, policy: RetryPolicy) -> RetryExecutor:
        return RetryExecutor(policy, sleep=self._sleep)

    # =========================================================================
    # READS (primary only)
    # =========================================================================

    async def get_balance(self, address: str) -> float:
        pubkey = Pubkey.from_string(address)

        async def attempt() -> float:
            lamports = await self._call(
                self.primary, "getBalance",
                lambda c: c.get_balance(pubkey, commitment=self.commitment),
            )
            return lamports / LAMPORTS_PER_SOL

        return await self._executor(self.read_policy).run(attempt, label="getBalance")

    async def get_recent_signatures(self, address: str, limit: Optional[int] = None) -> List[str]:
        pubkey = Pubkey.from_string(address)
        limit = limit or Settings.SIGNATURE_HISTORY_LIMIT

        async def attempt() -> List[str]:
            rows = await self._call(
                self.primary, "getSignaturesForAddress",
                lambda c: c.get_signatures_for_address(pubkey, limit=limit, commitment=self.commitment),
            )
            return [str(row.signature) for row in rows][:limit]

        return await self._executor(self.read_policy).run(attempt, label="getSignaturesForAddress")

    async def get_positions(self, address: str) -> List[Position]:
        """Single attempt; any failure surfaces as UpstreamServiceError."""
        try:
            raw = await self.position_provider.get_positions(address)
            return [p if isinstance(p, Position) else Position.from_dict(p) for p in raw]
        except UpstreamServiceError:
            raise
        except Exception as e:
            raise UpstreamServiceError(f"Failed to fetch positions: {e}", "dlmm") from e

    # =========================================================================
    # AIRDROP (retry + failover)
    # =========================================================================

    async def _airdrop_once(self, endpoint: RpcEndpoint, pubkey: Pubkey, lamports: int) -> str:
        signature = await self._call(
            endpoint, "requestAirdrop",
            lambda c: c.request_airdrop(pubkey, lamports, commitment=self.commitment),
        )
        statuses = await self._call(
            endpoint, "confirmTransaction",
            lambda c: c.confirm_transaction(signature, commitment=self.commitment),
        )
        status = statuses[0] if statuses else None
        if status is None:
            raise TransientNetworkError(f"No status for airdrop {signature}", endpoint.name)
        if status.err is not None:
            raise TransactionRejectedError(str(signature), str(status.err), endpoint.name)
        return str(signature)

    async def request_airdrop(self, address: str, amount_sol: float) -> str:
        pubkey = Pubkey.from_string(address)
        lamports = int(round(amount_sol * LAMPORTS_PER_SOL))

        try:
            signature = await self._executor(self.airdrop_policy).run(
                lambda: self._airdrop_once(self.primary, pubkey, lamports),
                label="requestAirdrop@primary",
            )
            Logger.success(f"[RPC] Airdrop {amount_sol} SOL -> {address}: {signature}")
            return signature
        except Exception as e:
            if self.fallback is None or not self.airdrop_policy.retryable(e):
                raise
            Logger.warning(f"[RPC] Airdrop exhausted on primary ({e}); failing over")

        signature = await self._executor(self.airdrop_policy).run(
            lambda: self._airdrop_once(self.fallback, pubkey, lamports),
            label="requestAirdrop@fallback",
        )
        Logger.success(f"[RPC] Airdrop {amount_sol} SOL -> {address} via fallback: {signature}")
        return signature

    def get_stats(self) -> Dict[str, Any]:
        endpoints = [self.primary] + ([self.fallback] if self.fallback else [])
        return {
            e.name: {"success": e.success, "errors": e.errors, "last_error": e.last_error}
            for e in endpoints
        }
