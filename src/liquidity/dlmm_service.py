"""
V1.0: Saros DLMM Service (Mock)
===============================
Stand-in for the Saros DLMM SDK. Returns synthetic positions and
transaction identifiers; nothing is signed or sent on-chain.

Capabilities consumed by the rest of the bot:
- get_positions(address)          -> List[Position]
- add_liquidity(...)              -> tx id
- remove_liquidity(...)           -> tx id
- suggest_rebalance(position)     -> text
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from config.settings import Settings
from src.shared.models.wallet import Position
from src.shared.system.errors import LiquidityParamsError
from src.shared.system.logging import Logger


class MockDlmmPool:
    """Raw SDK-shaped responses (string amounts, *BinId field names)."""

    async def get_user_positions(self, owner: str) -> List[Dict[str, Any]]:
        return [
            {
                "pool": Settings.DLMM_DEFAULT_POOL,
                "lowerBinId": 100,
                "upperBinId": 200,
                "liquidity": "1000",
                "feesOwed": "10",
            }
        ]

    async def create_position_and_add_liquidity(
        self, lower_bin: int, upper_bin: int, amount_x: str, amount_y: str
    ) -> str:
        return f"mockTx_{lower_bin}_{upper_bin}_{amount_x}_{amount_y}_{int(time.time() * 1000)}"

    async def remove_liquidity(self, position_pubkey: str, amount: str) -> str:
        return f"mockRemoveTx_{position_pubkey}_{amount}_{int(time.time() * 1000)}"


def _parse_amount(raw: Any, name: str) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise LiquidityParamsError(f"Invalid {name}: {raw!r}")
    if value != value or value < 0:  # NaN or negative
        raise LiquidityParamsError(f"Invalid {name}: {raw!r}")
    return value


def _parse_bin(raw: Any, name: str) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise LiquidityParamsError(f"Invalid {name}: {raw!r}")


class DlmmService:
    """Position queries and liquidity requests against the (mock) DLMM program."""

    def __init__(self, pool: Optional[MockDlmmPool] = None):
        self.pool = pool or MockDlmmPool()

    async def get_positions(self, address: str) -> List[Position]:
        raw_positions = await self.pool.get_user_positions(address)
        positions = [
            Position(
                pool=str(raw["pool"]),
                lower_bin=int(raw["lowerBinId"]),
                upper_bin=int(raw["upperBinId"]),
                liquidity=float(raw["liquidity"]),
                fees_earned=float(raw["feesOwed"]),
            )
            for raw in raw_positions
        ]
        Logger.debug(f"[DLMM] {len(positions)} position(s) for {address}")
        return positions

    async def add_liquidity(
        self,
        pool: str,
        lower_bin: Any,
        upper_bin: Any,
        amount_x: Any,
        amount_y: Any = "0",
        signer: Optional[Keypair] = None,
    ) -> str:
        if signer is None:
            raise LiquidityParamsError("A wallet is required to add liquidity")
        lower = _parse_bin(lower_bin, "lower bin")
        upper = _parse_bin(upper_bin, "upper bin")
        if lower > upper:
            raise LiquidityParamsError(f"Lower bin {lower} is above upper bin {upper}")
        if amount_x in (None, "") or amount_y in (None, ""):
            raise LiquidityParamsError("Both token amounts are required")
        _parse_amount(amount_x, "amount X")
        _parse_amount(amount_y, "amount Y")

        tx = await self.pool.create_position_and_add_liquidity(lower, upper, str(amount_x), str(amount_y))
        Logger.info(f"[DLMM] Add liquidity on {pool or Settings.DLMM_DEFAULT_POOL} by {signer.pubkey()}: {tx}")
        return tx

    async def remove_liquidity(
        self,
        position_pubkey: str,
        amount: Any,
        signer: Optional[Keypair] = None,
    ) -> str:
        if signer is None:
            raise LiquidityParamsError("A wallet is required to remove liquidity")
        try:
            position = Pubkey.from_string(position_pubkey)
        except ValueError:
            raise LiquidityParamsError(f"Invalid position address: {position_pubkey!r}")
        _parse_amount(amount, "amount")

        tx = await self.pool.remove_liquidity(str(position), str(amount))
        Logger.info(f"[DLMM] Remove liquidity from {position} by {signer.pubkey()}: {tx}")
        return tx

    async def suggest_rebalance(self, position: Position) -> str:
        Logger.debug(f"[DLMM] Rebalance requested for {position.pool} [{position.lower_bin}-{position.upper_bin}]")
        return "Suggestion: Shift 20% liquidity to lower bins for better yield."
