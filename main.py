"""
Saros DLMM Bot - CLI Entrypoint
===============================
Single entrypoint with subcommands.

Bot + reconciliation loop:
    python main.py run
    python main.py run --interval 60

One-off maintenance:
    python main.py reconcile
    python main.py convert-key ./solana-key.json
"""

import argparse
import asyncio
import signal


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="SarosBot",
        description="Saros DLMM Telegram bot with wallet reconciliation alerts"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # ═══════════════════════════════════════════════════════════════
    # RUN SUBCOMMAND
    # ═══════════════════════════════════════════════════════════════
    run_parser = subparsers.add_parser(
        "run",
        help="Run the Telegram bot and the reconciliation loop"
    )
    run_parser.add_argument(
        "--interval", type=float, default=None,
        help="Reconciliation interval in seconds (default: RECONCILE_INTERVAL_S)"
    )
    run_parser.add_argument(
        "--silent", action="store_true",
        help="Only log errors to the console"
    )

    # ═══════════════════════════════════════════════════════════════
    # RECONCILE SUBCOMMAND
    # ═══════════════════════════════════════════════════════════════
    subparsers.add_parser(
        "reconcile",
        help="Run a single reconciliation tick and print the report"
    )

    # ═══════════════════════════════════════════════════════════════
    # CONVERT-KEY SUBCOMMAND
    # ═══════════════════════════════════════════════════════════════
    convert_parser = subparsers.add_parser(
        "convert-key",
        help="Convert a Solana CLI keypair file to a base58 private key"
    )
    convert_parser.add_argument(
        "keypair_file", nargs="?", default="./solana-key.json",
        help="Path to the JSON keypair file (default: ./solana-key.json)"
    )

    return parser


def build_engine():
    """Wire the store, remote client and DLMM service from Settings."""
    from src.liquidity.dlmm_service import DlmmService
    from src.shared.infrastructure.rpc_client import RemoteClient
    from src.shared.state.wallet_store import WalletStore

    dlmm = DlmmService()
    store = WalletStore()
    remote = RemoteClient.from_settings(dlmm)
    return store, remote, dlmm


async def cmd_run(args: argparse.Namespace) -> None:
    """Telegram bot + reconciliation loop until SIGINT/SIGTERM."""
    from src.services.faucet_service import FaucetLimiter
    from src.services.reconciliation_service import ReconciliationScheduler
    from src.shared.notification.notifier import LogNotifier
    from src.shared.notification.telegram_manager import TelegramManager
    from src.shared.system.logging import Logger

    if args.silent:
        Logger.set_silent(True)

    Logger.section("SAROS DLMM BOT")
    store, remote, dlmm = build_engine()
    faucet = FaucetLimiter(store, remote)
    telegram = TelegramManager(store, remote, dlmm, faucet)
    notifier = telegram if telegram.enabled else LogNotifier()
    scheduler = ReconciliationScheduler(store, remote, notifier, interval_s=args.interval)

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows: fall back to KeyboardInterrupt
            pass

    await telegram.start()
    scheduler_task = asyncio.create_task(scheduler.run_forever())
    stop_task = asyncio.create_task(stop_event.wait())

    try:
        await asyncio.wait({scheduler_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        Logger.info("[SYSTEM] Shutting down...")
        stop_task.cancel()
        await scheduler.shutdown()
        try:
            # Re-raises a fatal storage error from the loop
            await scheduler_task
        finally:
            await telegram.stop()
            await remote.close()

    Logger.info("[SYSTEM] Goodbye")


async def cmd_reconcile(args: argparse.Namespace) -> None:
    """One reconciliation tick; alerts go to the log."""
    from src.services.reconciliation_service import ReconciliationScheduler
    from src.shared.notification.notifier import LogNotifier

    store, remote, _ = build_engine()
    scheduler = ReconciliationScheduler(store, remote, LogNotifier())
    try:
        report = await scheduler.run_tick()
    finally:
        await remote.close()

    print(f"   Owners processed: {report.processed}")
    print(f"   Alerts:           {report.alerted}")
    print(f"   Failed:           {report.failed}")
    for owner_id in report.failed_owners:
        print(f"      ❌ {owner_id}")


async def cmd_convert_key(args: argparse.Namespace) -> None:
    """Print the base58 private key and public key of a keypair file."""
    import base58

    from src.shared.state.wallet_store import load_keypair_file
    from src.shared.system.errors import InvalidKeyError

    try:
        keypair = load_keypair_file(args.keypair_file)
    except (OSError, ValueError, InvalidKeyError) as e:
        print(f"❌ Error converting key: {e}")
        return

    print(f"Base58 Private Key: {base58.b58encode(bytes(keypair)).decode('ascii')}")
    print(f"Public Key: {keypair.pubkey()}")


async def main() -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return

    command_handlers = {
        "run": cmd_run,
        "reconcile": cmd_reconcile,
        "convert-key": cmd_convert_key,
    }

    handler = command_handlers.get(args.command)
    if handler:
        await handler(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n   Goodbye!")
