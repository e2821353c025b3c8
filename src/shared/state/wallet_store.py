"""
V1.0: Wallet Store
==================
Durable registry of owner wallets and their state snapshots.

Persistence (human-readable JSON, full replace on every update):
    data/wallets.json    owner_id -> {public_key, secret_key (base58), created_at}
    data/snapshots.json  owner_id -> {balance, positions[], signatures[], last_faucet_time}

Writes go to <file>.tmp and are swapped in with os.replace, so a crash
mid-write leaves the previous file intact. The new state is only adopted
in memory after the file is on disk. Any OSError is fatal and propagates.

Concurrency: every mutating method is synchronous, so a single call is
atomic on the event loop. Callers that read, await, then write for the
same owner hold owner_lock(owner_id) around the sequence.
"""

from __future__ import annotations

import asyncio
import json
import os
import time
from typing import Dict, List, Optional

import base58
from solders.keypair import Keypair

from config.settings import Settings
from src.shared.models.wallet import StateSnapshot, WalletRecord
from src.shared.system.errors import InvalidKeyError
from src.shared.system.logging import Logger

SECRET_KEY_LENGTH = 64


def _atomic_write_json(path: str, payload: dict) -> None:
    """Write payload to path via temp file + os.replace."""
    temp_file = path + ".tmp"
    max_retries = 3
    for attempt in range(max_retries):
        try:
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_file, path)
            return
        except PermissionError:
            # Another process (editor, AV scanner) briefly holding the file
            if attempt < max_retries - 1:
                time.sleep(0.05)
                continue
            Logger.critical(f"[STORE] Permission denied writing {path}")
            raise
        except OSError as e:
            Logger.critical(f"[STORE] Failed to write {path}: {e}")
            if os.path.exists(temp_file):
                os.remove(temp_file)
            raise


def _read_json(path: str) -> dict:
    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        Logger.critical(f"[STORE] Corrupted state file {path}: {e}")
        raise
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a JSON object")
    return data


def keypair_from_secret(secret_key: bytes) -> Keypair:
    """Validate 64-byte secret key material and build the keypair."""
    if len(secret_key) != SECRET_KEY_LENGTH:
        raise InvalidKeyError(
            f"Invalid private key length: expected {SECRET_KEY_LENGTH} bytes, got {len(secret_key)}"
        )
    keypair = Keypair.from_seed(secret_key[:32])
    if bytes(keypair.pubkey()) != secret_key[32:]:
        raise InvalidKeyError("Private key does not match its embedded public key")
    return keypair


def load_keypair_file(path: str) -> Keypair:
    """Read a Solana CLI keypair file (JSON array of 64 byte values)."""
    if not os.path.exists(path):
        raise FileNotFoundError(f"Keypair file not found at: {path}")
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        raise InvalidKeyError("Keypair file must contain a JSON array of bytes")
    try:
        secret_key = bytes(raw)
    except (TypeError, ValueError) as e:
        raise InvalidKeyError(f"Keypair file contains invalid byte values: {e}") from e
    return keypair_from_secret(secret_key)


class WalletStore:
    """
    Owns every WalletRecord and StateSnapshot for the lifetime of the process.

    Injected into the reconciliation scheduler, the faucet limiter and the
    Telegram front end; nothing else holds wallet state.
    """

    def __init__(self, wallets_file: Optional[str] = None, snapshots_file: Optional[str] = None):
        self.wallets_file = wallets_file or Settings.WALLETS_FILE
        self.snapshots_file = snapshots_file or Settings.SNAPSHOTS_FILE
        for path in (self.wallets_file, self.snapshots_file):
            os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)

        self._wallets: Dict[str, WalletRecord] = {
            owner: WalletRecord.from_dict(owner, data)
            for owner, data in _read_json(self.wallets_file).items()
        }
        self._snapshots: Dict[str, StateSnapshot] = {
            owner: StateSnapshot.from_dict(owner, data)
            for owner, data in _read_json(self.snapshots_file).items()
        }
        self._locks: Dict[str, asyncio.Lock] = {}

        Logger.info(f"[STORE] Loaded {len(self._wallets)} wallet(s), {len(self._snapshots)} snapshot(s)")

    # ═══════════════════════════════════════════════════════════════════════
    # PERSISTENCE
    # ═══════════════════════════════════════════════════════════════════════

    def _commit_wallets(self, wallets: Dict[str, WalletRecord]) -> None:
        _atomic_write_json(self.wallets_file, {o: r.to_dict() for o, r in wallets.items()})
        self._wallets = wallets

    def _commit_snapshots(self, snapshots: Dict[str, StateSnapshot]) -> None:
        _atomic_write_json(self.snapshots_file, {o: s.to_dict() for o, s in snapshots.items()})
        self._snapshots = snapshots

    def owner_lock(self, owner_id: str) -> asyncio.Lock:
        """Per-owner lock serializing read-await-write sequences."""
        lock = self._locks.get(owner_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[owner_id] = lock
        return lock

    # ═══════════════════════════════════════════════════════════════════════
    # WALLET RECORDS
    # ═══════════════════════════════════════════════════════════════════════

    def create(self, owner_id: str) -> WalletRecord:
        """Generate a fresh keypair for the owner, replacing any previous one."""
        keypair = Keypair()
        record = WalletRecord(
            owner_id=owner_id,
            public_key=str(keypair.pubkey()),
            secret_key=bytes(keypair),
        )
        self._commit_wallets({**self._wallets, owner_id: record})
        Logger.success(f"[STORE] Created wallet {record.public_key} for owner {owner_id}")
        return record

    def import_wallet(self, owner_id: str, secret_key_base58: str) -> WalletRecord:
        """
        Register an existing keypair from its base58 secret key.

        Raises:
            InvalidKeyError: bad base58, wrong length, or inconsistent key
        """
        text = (secret_key_base58 or "").strip()
        if not text:
            raise InvalidKeyError("Private key is empty")
        try:
            secret_key = base58.b58decode(text)
        except ValueError as e:
            raise InvalidKeyError(f"Private key is not valid base58: {e}") from e

        keypair = keypair_from_secret(secret_key)
        record = WalletRecord(
            owner_id=owner_id,
            public_key=str(keypair.pubkey()),
            secret_key=bytes(secret_key),
        )
        self._commit_wallets({**self._wallets, owner_id: record})
        Logger.success(f"[STORE] Imported wallet {record.public_key} for owner {owner_id}")
        return record

    def get(self, owner_id: str) -> Optional[WalletRecord]:
        return self._wallets.get(owner_id)

    def keypair(self, owner_id: str) -> Optional[Keypair]:
        record = self._wallets.get(owner_id)
        return keypair_from_secret(record.secret_key) if record else None

    def owners(self) -> List[str]:
        """Registered owners in registration order."""
        return list(self._wallets.keys())

    def remove(self, owner_id: str) -> bool:
        if owner_id not in self._wallets:
            return False
        self._commit_wallets({o: r for o, r in self._wallets.items() if o != owner_id})
        if owner_id in self._snapshots:
            self._commit_snapshots({o: s for o, s in self._snapshots.items() if o != owner_id})
        self._locks.pop(owner_id, None)
        Logger.info(f"[STORE] Removed wallet for owner {owner_id}")
        return True

    # ═══════════════════════════════════════════════════════════════════════
    # SNAPSHOTS
    # ═══════════════════════════════════════════════════════════════════════

    def has_snapshot(self, owner_id: str) -> bool:
        return owner_id in self._snapshots

    def get_snapshot(self, owner_id: str) -> StateSnapshot:
        """Stored snapshot, or the zero baseline if the owner was never reconciled."""
        return self._snapshots.get(owner_id) or StateSnapshot.empty(owner_id)

    def update_snapshot(self, owner_id: str, snapshot: StateSnapshot) -> None:
        """Atomically replace the owner's snapshot. Durable on return."""
        if snapshot.owner_id != owner_id:
            raise ValueError(f"Snapshot for {snapshot.owner_id} cannot be stored under {owner_id}")
        self._commit_snapshots({**self._snapshots, owner_id: snapshot})
        Logger.debug(f"[STORE] Snapshot updated for owner {owner_id}")

    def set_last_faucet_time(self, owner_id: str, timestamp: float) -> StateSnapshot:
        snapshot = self.get_snapshot(owner_id).with_faucet_time(timestamp)
        self._commit_snapshots({**self._snapshots, owner_id: snapshot})
        return snapshot
