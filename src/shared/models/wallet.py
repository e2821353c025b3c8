"""
V1.0: Wallet State Schema
=========================
Value objects owned by the WalletStore.

- Position:      one DLMM liquidity position (validated, immutable)
- WalletRecord:  owner -> keypair material
- StateSnapshot: owner -> last observed on-chain state (diff baseline)
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Sequence, Tuple

import base58


@dataclass(frozen=True)
class Position:
    """A liquidity position in a DLMM pool, bins inclusive."""

    pool: str
    lower_bin: int
    upper_bin: int
    liquidity: float
    fees_earned: float = 0.0

    def __post_init__(self):
        if not self.pool:
            raise ValueError("Position pool address is required")
        for name in ("lower_bin", "upper_bin"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"Position {name} must be an integer, got {value!r}")
        if self.lower_bin > self.upper_bin:
            raise ValueError(f"Position range inverted: {self.lower_bin} > {self.upper_bin}")
        for name in ("liquidity", "fees_earned"):
            if getattr(self, name) < 0:
                raise ValueError(f"Position {name} must be non-negative")

    @property
    def structural_key(self) -> Tuple[str, int, int, float]:
        """Identity used for change detection. Fees accrue continuously and are left out."""
        return (self.pool, self.lower_bin, self.upper_bin, self.liquidity)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pool": self.pool,
            "lower_bin": self.lower_bin,
            "upper_bin": self.upper_bin,
            "liquidity": self.liquidity,
            "fees_earned": self.fees_earned,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Position":
        """Build from a dict; numeric strings (as returned by the DLMM SDK) are accepted."""
        return cls(
            pool=str(data["pool"]),
            lower_bin=int(data["lower_bin"]),
            upper_bin=int(data["upper_bin"]),
            liquidity=float(data["liquidity"]),
            fees_earned=float(data.get("fees_earned", 0.0)),
        )


@dataclass(frozen=True)
class WalletRecord:
    """Keypair material registered for one owner."""

    owner_id: str
    public_key: str
    secret_key: bytes  # 64 bytes: ed25519 seed + public key
    created_at: float = field(default_factory=time.time)

    @property
    def secret_key_base58(self) -> str:
        return base58.b58encode(self.secret_key).decode("ascii")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "public_key": self.public_key,
            "secret_key": self.secret_key_base58,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, owner_id: str, data: Dict[str, Any]) -> "WalletRecord":
        return cls(
            owner_id=owner_id,
            public_key=data["public_key"],
            secret_key=base58.b58decode(data["secret_key"]),
            created_at=float(data.get("created_at", 0.0)),
        )

    def __repr__(self) -> str:
        return f"WalletRecord(owner_id={self.owner_id!r}, public_key={self.public_key!r})"


@dataclass(frozen=True)
class StateSnapshot:
    """Last observed state of an owner's wallet."""

    owner_id: str
    balance: float = 0.0  # whole SOL
    positions: Tuple[Position, ...] = ()
    signatures: Tuple[str, ...] = ()  # most recent first
    last_faucet_time: Optional[float] = None

    def __post_init__(self):
        if self.balance < 0:
            raise ValueError("Snapshot balance must be non-negative")
        # Normalize list inputs so snapshots stay hashable and comparable
        object.__setattr__(self, "positions", tuple(self.positions))
        object.__setattr__(self, "signatures", tuple(self.signatures))

    @classmethod
    def empty(cls, owner_id: str) -> "StateSnapshot":
        """Zero baseline used the first time an owner is seen."""
        return cls(owner_id=owner_id)

    @classmethod
    def observed(
        cls,
        owner_id: str,
        balance: float,
        positions: Sequence[Position],
        signatures: Sequence[str],
        last_faucet_time: Optional[float] = None,
    ) -> "StateSnapshot":
        return cls(
            owner_id=owner_id,
            balance=balance,
            positions=tuple(positions),
            signatures=tuple(signatures),
            last_faucet_time=last_faucet_time,
        )

    def with_faucet_time(self, timestamp: Optional[float]) -> "StateSnapshot":
        return replace(self, last_faucet_time=timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "balance": self.balance,
            "positions": [p.to_dict() for p in self.positions],
            "signatures": list(self.signatures),
            "last_faucet_time": self.last_faucet_time,
        }

    @classmethod
    def from_dict(cls, owner_id: str, data: Dict[str, Any]) -> "StateSnapshot":
        last_faucet = data.get("last_faucet_time")
        return cls(
            owner_id=owner_id,
            balance=float(data.get("balance", 0.0)),
            positions=tuple(Position.from_dict(p) for p in data.get("positions", [])),
            signatures=tuple(data.get("signatures", [])),
            last_faucet_time=float(last_faucet) if last_faucet is not None else None,
        )
