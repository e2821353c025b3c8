"""
V1.0: Wallet Reconciliation Service
===================================
Periodically compares each owner's on-chain state against the stored
snapshot and alerts the owner when something changed.

Per owner, sequentially within one tick:
    1. balance      (read retry)
    2. positions    (single attempt)
    3. signatures   (read retry)
    4. diff against the stored snapshot
    5. deliver an alert if anything changed
    6. persist the observation as the new baseline

A failed fetch (any non-storage error) or delivery skips the owner for
this tick and leaves the baseline untouched, so the change is reported on
the next tick. Storage errors are fatal and stop the loop.

Only one tick runs at a time. A timer fire that finds the previous tick
still running is skipped and counted in `skipped_ticks`.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import List, Optional

from config.settings import Settings
from src.shared.infrastructure.rpc_client import RemoteClient
from src.shared.models.wallet import StateSnapshot
from src.shared.notification.notifier import Notifier
from src.shared.state.change_detector import ChangeSet, diff
from src.shared.state.wallet_store import WalletStore
from src.shared.system.errors import RemoteCallError, WalletNotFoundError
from src.shared.system.logging import Logger
from src.shared.system.telegram_templates import AlertTemplates


@dataclass
class TickReport:
    """Outcome of one pass over all owners."""

    processed: int = 0
    alerted: int = 0
    failed_owners: List[str] = field(default_factory=list)
    duration_s: float = 0.0

    @property
    def failed(self) -> int:
        return len(self.failed_owners)

    def __str__(self) -> str:
        return (
            f"processed={self.processed} alerted={self.alerted} "
            f"failed={self.failed} ({self.duration_s:.1f}s)"
        )


def format_alert(changes: ChangeSet) -> str:
    return AlertTemplates.wallet_change(changes)


class ReconciliationScheduler:
    """
    Usage:
        scheduler = ReconciliationScheduler(store, remote, notifier)
        task = asyncio.create_task(scheduler.run_forever())
        ...
        await scheduler.shutdown()
    """

    def __init__(
        self,
        store: WalletStore,
        remote: RemoteClient,
        notifier: Notifier,
        interval_s: Optional[float] = None,
        seed_baseline: Optional[bool] = None,
    ):
        self.store = store
        self.remote = remote
        self.notifier = notifier
        self.interval_s = interval_s if interval_s is not None else Settings.RECONCILE_INTERVAL_S
        self.seed_baseline = (
            seed_baseline if seed_baseline is not None else Settings.SEED_BASELINE_ON_FIRST_SEEN
        )

        self.tick_count = 0
        self.skipped_ticks = 0
        self.last_report: Optional[TickReport] = None

        self._stop_event = asyncio.Event()
        self._tick_task: Optional[asyncio.Task] = None
        self._fatal: Optional[BaseException] = None

    # =========================================================================
    # SINGLE OWNER
    # =========================================================================

    async def reconcile_once(self, owner_id: str) -> Optional[ChangeSet]:
        """
        Reconcile one owner.

        Returns the ChangeSet that was applied, or None if the owner was
        skipped because a fetch or the alert delivery failed.

        Raises:
            WalletNotFoundError: owner has no wallet
            OSError: snapshot could not be persisted
        """
        record = self.store.get(owner_id)
        if record is None:
            raise WalletNotFoundError(owner_id)

        try:
            balance = await self.remote.get_balance(record.public_key)
            positions = await self.remote.get_positions(record.public_key)
            signatures = await self.remote.get_recent_signatures(record.public_key)
        except RemoteCallError as e:
            Logger.error(f"[RECONCILE] Skipping {owner_id}: {e}")
            return None
        except OSError:
            raise
        except Exception as e:
            Logger.error(f"[RECONCILE] Skipping {owner_id}: unexpected {type(e).__name__}: {e}")
            return None

        async with self.store.owner_lock(owner_id):
            first_seen = not self.store.has_snapshot(owner_id)
            stored = self.store.get_snapshot(owner_id)
            candidate = StateSnapshot.observed(
                owner_id,
                balance=balance,
                positions=positions,
                signatures=signatures,
                last_faucet_time=stored.last_faucet_time,
            )

            if first_seen and self.seed_baseline:
                self.store.update_snapshot(owner_id, candidate)
                Logger.info(f"[RECONCILE] Seeded baseline for {owner_id} ({balance:.4f} SOL)")
                return ChangeSet(owner_id=owner_id, old_balance=balance, new_balance=balance)

            changes = diff(stored, candidate)
            if changes.has_changes:
                try:
                    await self.notifier.deliver_message(owner_id, format_alert(changes))
                except Exception as e:
                    Logger.error(f"[RECONCILE] Alert delivery to {owner_id} failed: {e}")
                    return None
                Logger.info(
                    f"[RECONCILE] {owner_id}: {', '.join(changes.changed_dimensions())} changed"
                )

            self.store.update_snapshot(owner_id, candidate)
            return changes

    # =========================================================================
    # TICK
    # =========================================================================

    async def run_tick(self) -> TickReport:
        """One pass over every registered owner, in registration order."""
        started = time.monotonic()
        report = TickReport()
        self.tick_count += 1

        for owner_id in self.store.owners():
            try:
                changes = await self.reconcile_once(owner_id)
            except WalletNotFoundError:
                # Removed while the tick was running
                Logger.debug(f"[RECONCILE] {owner_id} removed mid-tick")
                continue

            report.processed += 1
            if changes is None:
                report.failed_owners.append(owner_id)
            elif changes.has_changes:
                report.alerted += 1

        report.duration_s = time.monotonic() - started
        self.last_report = report
        Logger.info(f"[RECONCILE] Tick #{self.tick_count}: {report}")
        return report

    # =========================================================================
    # LOOP
    # =========================================================================

    @property
    def tick_in_flight(self) -> bool:
        return self._tick_task is not None and not self._tick_task.done()

    def _on_tick_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._fatal = exc
            self._stop_event.set()

    async def run_forever(self) -> None:
        """
        Fire a tick every interval_s until shutdown().

        Re-raises the error of a tick that failed outside the per-owner
        boundary (storage failures).
        """
        Logger.section("WALLET RECONCILIATION")
        Logger.info(f"[RECONCILE] Started (interval {self.interval_s:.0f}s, {len(self.store.owners())} owner(s))")

        try:
            while not self._stop_event.is_set():
                if self.tick_in_flight:
                    self.skipped_ticks += 1
                    Logger.warning(
                        f"[RECONCILE] Previous tick still running; skipping ({self.skipped_ticks} skipped)"
                    )
                else:
                    self._tick_task = asyncio.create_task(self.run_tick())
                    self._tick_task.add_done_callback(self._on_tick_done)

                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_s)
                except asyncio.TimeoutError:
                    pass
        finally:
            await self._drain()

        if self._fatal is not None:
            Logger.critical(f"[RECONCILE] Stopped on fatal error: {self._fatal}")
            raise self._fatal
        Logger.info("[RECONCILE] Stopped")

    async def _drain(self) -> None:
        if self.tick_in_flight:
            Logger.info("[RECONCILE] Waiting for in-flight tick to finish...")
            await asyncio.wait({self._tick_task})

    async def shutdown(self) -> None:
        """Stop the timer and wait for the in-flight tick, if any."""
        self._stop_event.set()
        await self._drain()
