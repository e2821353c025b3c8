"""
V1.0: Liquidity Package
=======================
Saros DLMM integration (mock SDK) for position queries and liquidity
requests.

Components:
- dlmm_service.py: Position reads, add/remove liquidity, rebalance hints
"""

from src.liquidity.dlmm_service import DlmmService, MockDlmmPool

__all__ = [
    "DlmmService",
    "MockDlmmPool",
]
