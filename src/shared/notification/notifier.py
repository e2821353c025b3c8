"""
Notifier
========
Outbound channel for owner alerts. The Telegram front end implements it;
LogNotifier is used when no bot token is configured.
"""

from __future__ import annotations

from typing import List, Protocol, Tuple

from src.shared.system.logging import Logger


class Notifier(Protocol):
    async def deliver_message(self, owner_id: str, text: str) -> None:
        """Deliver text to the owner. Raises on delivery failure."""
        ...


class LogNotifier:
    """Writes alerts to the log instead of a chat."""

    def __init__(self):
        self.sent: List[Tuple[str, str]] = []

    async def deliver_message(self, owner_id: str, text: str) -> None:
        self.sent.append((owner_id, text))
        Logger.info(f"[TG] (log only) -> {owner_id}: {text}")
