"""
Change Detector
===============
Pure comparison of two StateSnapshots.

- balance:    compared after rounding to BALANCE_DECIMALS (sub-1e-4 SOL drift ignored)
- positions:  ordered (pool, lower_bin, upper_bin, liquidity) tuples; fees excluded
- signatures: set difference new - old
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional

from config.settings import Settings
from src.shared.models.wallet import StateSnapshot


@dataclass(frozen=True)
class ChangeSet:
    owner_id: str
    balance_changed: bool = False
    old_balance: float = 0.0
    new_balance: float = 0.0
    positions_changed: bool = False
    new_signatures: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def has_changes(self) -> bool:
        return self.balance_changed or self.positions_changed or bool(self.new_signatures)

    def changed_dimensions(self) -> List[str]:
        dims = []
        if self.balance_changed:
            dims.append("balance")
        if self.positions_changed:
            dims.append("positions")
        if self.new_signatures:
            dims.append("transactions")
        return dims

    def summary(self) -> str:
        """Plain-text description of what changed."""
        lines = []
        if self.balance_changed:
            lines.append(f"Balance changed: {self.old_balance:.4f} -> {self.new_balance:.4f} SOL")
        if self.positions_changed:
            lines.append("Positions updated.")
        if self.new_signatures:
            lines.append(f"New transactions: {len(self.new_signatures)}")
        return "\n".join(lines)


def diff(old: StateSnapshot, new: StateSnapshot, decimals: Optional[int] = None) -> ChangeSet:
    """Compare a stored snapshot against a freshly observed one."""
    if decimals is None:
        decimals = Settings.BALANCE_DECIMALS

    balance_changed = round(old.balance, decimals) != round(new.balance, decimals)
    positions_changed = [p.structural_key for p in old.positions] != [
        p.structural_key for p in new.positions
    ]
    new_signatures = frozenset(new.signatures) - frozenset(old.signatures)

    return ChangeSet(
        owner_id=new.owner_id,
        balance_changed=balance_changed,
        old_balance=old.balance,
        new_balance=new.balance,
        positions_changed=positions_changed,
        new_signatures=new_signatures,
    )
