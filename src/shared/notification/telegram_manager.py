"""
V1.0: Telegram Manager
======================
Telegram front end for the Saros DLMM bot:
1. Owner alerts (Notifier.deliver_message, HTML)
2. Wallet commands (create / import / overview / faucet)
3. DLMM commands (positions / add / remove / rebalance) + inline menu

Owner identity is the Telegram user id. Runs on the caller's event loop
(start()/stop()) next to the reconciliation scheduler.
"""

import logging
from typing import Optional

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.constants import ParseMode
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
)

from config.settings import Settings
from src.liquidity.dlmm_service import DlmmService
from src.services.faucet_service import FaucetLimiter
from src.shared.infrastructure.rpc_client import RemoteClient
from src.shared.state.wallet_store import WalletStore
from src.shared.system.errors import (
    InvalidKeyError,
    LiquidityParamsError,
    RateLimitExceededError,
    RemoteCallError,
)
from src.shared.system.logging import Logger
from src.shared.system.telegram_templates import (
    FaucetTemplates,
    LiquidityTemplates,
    WalletTemplates,
)

# Callback data for the inline menu
CB_CREATE_WALLET = "create_wallet"
CB_IMPORT_WALLET = "import_wallet"
CB_POSITIONS = "positions"
CB_ADD_LIQUIDITY = "add_liquidity"
CB_REMOVE_LIQUIDITY = "remove_liquidity"
CB_REBALANCE = "rebalance"
CB_OVERVIEW = "wallet_overview"
CB_FAUCET = "faucet"
CB_MENU = "menu"


def setup_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([
        [InlineKeyboardButton("Create New Wallet", callback_data=CB_CREATE_WALLET)],
        [InlineKeyboardButton("Import Wallet", callback_data=CB_IMPORT_WALLET)],
    ])


def menu_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([
        [InlineKeyboardButton("View Positions", callback_data=CB_POSITIONS)],
        [InlineKeyboardButton("Add Liquidity", callback_data=CB_ADD_LIQUIDITY)],
        [InlineKeyboardButton("Remove Liquidity", callback_data=CB_REMOVE_LIQUIDITY)],
        [InlineKeyboardButton("Rebalance", callback_data=CB_REBALANCE)],
        [InlineKeyboardButton("Wallet Overview", callback_data=CB_OVERVIEW)],
        [InlineKeyboardButton("Devnet Faucet", callback_data=CB_FAUCET)],
    ])


def back_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[InlineKeyboardButton("Back to Menu", callback_data=CB_MENU)]])


class TelegramManager:
    """
    Telegram bot bound to the wallet engine.

    Usage:
        tg = TelegramManager(store, remote, dlmm, faucet)
        await tg.start()
        ...
        await tg.stop()
    """

    def __init__(
        self,
        store: WalletStore,
        remote: RemoteClient,
        dlmm: DlmmService,
        faucet: FaucetLimiter,
        token: Optional[str] = None,
    ):
        self.store = store
        self.remote = remote
        self.dlmm = dlmm
        self.faucet = faucet
        self.token = token if token is not None else Settings.TELEGRAM_BOT_TOKEN

        self.enabled = bool(self.token)
        self.application: Optional[Application] = None

        if not self.enabled:
            Logger.warning("[TG] No token. Telegram disabled.")

    # ═══════════════════════════════════════════════════════════════════
    # LIFECYCLE
    # ═══════════════════════════════════════════════════════════════════

    async def start(self) -> None:
        if not self.enabled or self.application:
            return

        self.application = ApplicationBuilder().token(self.token).build()
        self._register_commands()

        # Suppress httpx logs
        logging.getLogger("httpx").setLevel(logging.WARNING)

        await self.application.initialize()
        await self.application.start()
        await self.application.updater.start_polling(drop_pending_updates=True)
        Logger.success("[TG] Bot polling")

    async def stop(self) -> None:
        if not self.application:
            return
        Logger.info("[TG] Stopping...")
        if self.application.updater and self.application.updater.running:
            await self.application.updater.stop()
        await self.application.stop()
        await self.application.shutdown()
        self.application = None
        Logger.info("[TG] Stopped")

    def _register_commands(self) -> None:
        app = self.application
        app.add_handler(CommandHandler("start", self._cmd_start))
        app.add_handler(CommandHandler("menu", self._cmd_menu))
        app.add_handler(CommandHandler("create_wallet", self._cmd_create_wallet))
        app.add_handler(CommandHandler("import_wallet", self._cmd_import_wallet))
        app.add_handler(CommandHandler("positions", self._cmd_positions))
        app.add_handler(CommandHandler("overview", self._cmd_overview))
        app.add_handler(CommandHandler("faucet", self._cmd_faucet))
        app.add_handler(CommandHandler("add_liquidity", self._cmd_add_liquidity))
        app.add_handler(CommandHandler("remove_liquidity", self._cmd_remove_liquidity))
        app.add_handler(CommandHandler("rebalance", self._cmd_rebalance))
        app.add_handler(CallbackQueryHandler(self._on_callback))

    # ═══════════════════════════════════════════════════════════════════
    # NOTIFIER
    # ═══════════════════════════════════════════════════════════════════

    async def deliver_message(self, owner_id: str, text: str) -> None:
        """Push an alert to the owner's private chat. Raises on failure."""
        if not self.application:
            raise RuntimeError("Telegram bot is not running")
        await self.application.bot.send_message(
            chat_id=int(owner_id),
            text=text,
            parse_mode=ParseMode.HTML,
        )

    # ═══════════════════════════════════════════════════════════════════
    # HELPERS
    # ═══════════════════════════════════════════════════════════════════

    @staticmethod
    def _owner(update: Update) -> str:
        return str(update.effective_user.id)

    @staticmethod
    async def _reply(update: Update, text: str, keyboard: Optional[InlineKeyboardMarkup] = None) -> None:
        await update.effective_message.reply_text(
            text, parse_mode=ParseMode.HTML, reply_markup=keyboard
        )

    # ═══════════════════════════════════════════════════════════════════
    # COMMAND HANDLERS
    # ═══════════════════════════════════════════════════════════════════

    async def _cmd_start(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        record = self.store.get(self._owner(update))
        if record is None:
            await self._reply(update, WalletTemplates.setup_required(), setup_keyboard())
            return
        await self._reply(update, WalletTemplates.welcome_back(record.public_key), menu_keyboard())

    async def _cmd_menu(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        await self._reply(update, WalletTemplates.menu(), menu_keyboard())

    async def _cmd_create_wallet(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        record = self.store.create(self._owner(update))
        await self._reply(
            update,
            WalletTemplates.created(record.public_key, record.secret_key_base58),
            back_keyboard(),
        )

    async def _cmd_import_wallet(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        if not context.args:
            await self._reply(update, WalletTemplates.import_prompt())
            return
        try:
            record = self.store.import_wallet(self._owner(update), context.args[0])
        except InvalidKeyError as e:
            Logger.warning(f"[TG] Import rejected for {self._owner(update)}: {e}")
            await self._reply(update, WalletTemplates.error("Invalid private key. Try again."))
            return
        await self._reply(update, WalletTemplates.imported(record.public_key), back_keyboard())

    async def _cmd_positions(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        record = self.store.get(self._owner(update))
        if record is None:
            await self._reply(update, WalletTemplates.no_wallet())
            return
        try:
            positions = await self.remote.get_positions(record.public_key)
        except RemoteCallError as e:
            await self._reply(update, WalletTemplates.error(e))
            return
        await self._reply(update, LiquidityTemplates.positions(positions), back_keyboard())

    async def _cmd_overview(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        record = self.store.get(self._owner(update))
        if record is None:
            await self._reply(update, WalletTemplates.no_wallet())
            return
        try:
            balance = await self.remote.get_balance(record.public_key)
            positions = await self.remote.get_positions(record.public_key)
        except RemoteCallError as e:
            await self._reply(update, WalletTemplates.error(e))
            return
        await self._reply(
            update, WalletTemplates.overview(record.public_key, balance, positions), back_keyboard()
        )

    async def _cmd_faucet(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        owner_id = self._owner(update)
        if self.store.get(owner_id) is None:
            await self._reply(update, WalletTemplates.no_wallet())
            return
        try:
            signature = await self.faucet.request(owner_id)
        except RateLimitExceededError as e:
            await self._reply(update, FaucetTemplates.rate_limited(e.remaining_minutes))
            return
        except RemoteCallError as e:
            await self._reply(update, WalletTemplates.error(f"Airdrop failed: {e}"))
            return
        await self._reply(update, FaucetTemplates.funded(self.faucet.amount_sol, signature), back_keyboard())

    async def _cmd_add_liquidity(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        args = context.args or []
        if len(args) < 4:
            await self._reply(update, LiquidityTemplates.add_usage())
            return
        owner_id = self._owner(update)
        signer = self.store.keypair(owner_id)
        if signer is None:
            await self._reply(update, WalletTemplates.no_wallet())
            return

        pool, lower_bin, upper_bin, amount_x = args[:4]
        amount_y = args[4] if len(args) > 4 else "0"
        try:
            tx = await self.dlmm.add_liquidity(pool, lower_bin, upper_bin, amount_x, amount_y, signer=signer)
        except LiquidityParamsError as e:
            await self._reply(update, WalletTemplates.error(e))
            return
        await self._reply(update, LiquidityTemplates.added(tx), back_keyboard())

    async def _cmd_remove_liquidity(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        args = context.args or []
        if len(args) < 2:
            await self._reply(update, LiquidityTemplates.remove_usage())
            return
        signer = self.store.keypair(self._owner(update))
        if signer is None:
            await self._reply(update, WalletTemplates.no_wallet())
            return
        try:
            tx = await self.dlmm.remove_liquidity(args[0], args[1], signer=signer)
        except LiquidityParamsError as e:
            await self._reply(update, WalletTemplates.error(e))
            return
        await self._reply(update, LiquidityTemplates.removed(tx), back_keyboard())

    async def _cmd_rebalance(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        record = self.store.get(self._owner(update))
        if record is None:
            await self._reply(update, WalletTemplates.no_wallet())
            return
        try:
            positions = await self.remote.get_positions(record.public_key)
        except RemoteCallError as e:
            await self._reply(update, WalletTemplates.error(e))
            return
        suggestion = await self.dlmm.suggest_rebalance(positions[0]) if positions else None
        await self._reply(update, LiquidityTemplates.rebalance(suggestion), back_keyboard())

    # ═══════════════════════════════════════════════════════════════════
    # INLINE MENU
    # ═══════════════════════════════════════════════════════════════════

    async def _on_callback(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        query = update.callback_query
        await query.answer()

        handlers = {
            CB_CREATE_WALLET: self._cmd_create_wallet,
            CB_POSITIONS: self._cmd_positions,
            CB_REBALANCE: self._cmd_rebalance,
            CB_OVERVIEW: self._cmd_overview,
            CB_FAUCET: self._cmd_faucet,
            CB_MENU: self._cmd_menu,
        }
        prompts = {
            CB_IMPORT_WALLET: WalletTemplates.import_prompt,
            CB_ADD_LIQUIDITY: LiquidityTemplates.add_usage,
            CB_REMOVE_LIQUIDITY: LiquidityTemplates.remove_usage,
        }

        if query.data in handlers:
            await handlers[query.data](update, context)
        elif query.data in prompts:
            await self._reply(update, prompts[query.data](), back_keyboard())
        else:
            Logger.debug(f"[TG] Unknown callback: {query.data}")
