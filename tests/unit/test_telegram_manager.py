"""
TelegramManager Unit Tests
==========================
Command handlers exercised with mocked Update objects. No bot is started.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock


def make_update(user_id=42, callback_data=None):
    update = MagicMock()
    update.effective_user.id = user_id
    update.effective_message.reply_text = AsyncMock()
    if callback_data is not None:
        update.callback_query.data = callback_data
        update.callback_query.answer = AsyncMock()
    return update


def make_context(*args):
    context = MagicMock()
    context.args = list(args)
    return context


def replied_text(update):
    return update.effective_message.reply_text.call_args.args[0]


@pytest.fixture
def faucet(store, remote):
    from src.services.faucet_service import FaucetLimiter

    return FaucetLimiter(store, remote, window_s=3600, amount_sol=2, clock=lambda: 1_000_000.0)


@pytest.fixture
def tg(store, remote, faucet):
    from src.liquidity.dlmm_service import DlmmService
    from src.shared.notification.telegram_manager import TelegramManager

    return TelegramManager(store, remote, DlmmService(), faucet, token="")


class TestLifecycle:

    def test_disabled_without_token(self, tg):
        assert not tg.enabled

    @pytest.mark.asyncio
    async def test_deliver_requires_running_bot(self, tg):
        with pytest.raises(RuntimeError):
            await tg.deliver_message("42", "hello")

    @pytest.mark.asyncio
    async def test_deliver_sends_html_to_owner_chat(self, tg):
        from telegram.constants import ParseMode

        tg.application = MagicMock()
        tg.application.bot.send_message = AsyncMock()

        await tg.deliver_message("42", "<b>hi</b>")

        tg.application.bot.send_message.assert_awaited_once_with(
            chat_id=42, text="<b>hi</b>", parse_mode=ParseMode.HTML
        )

    @pytest.mark.asyncio
    async def test_deliver_failure_propagates(self, tg):
        from telegram.error import NetworkError

        tg.application = MagicMock()
        tg.application.bot.send_message = AsyncMock(side_effect=NetworkError("down"))

        with pytest.raises(NetworkError):
            await tg.deliver_message("42", "hi")


class TestWalletCommands:

    @pytest.mark.asyncio
    async def test_start_without_wallet_offers_setup(self, tg):
        update = make_update()

        await tg._cmd_start(update, make_context())

        assert "WALLET SETUP REQUIRED" in replied_text(update)

    @pytest.mark.asyncio
    async def test_create_then_start_welcomes_back(self, tg, store):
        update = make_update()

        await tg._cmd_create_wallet(update, make_context())
        record = store.get("42")
        assert record is not None
        assert record.public_key in replied_text(update)

        await tg._cmd_start(update, make_context())
        assert "WELCOME BACK" in replied_text(update)

    @pytest.mark.asyncio
    async def test_import_valid_key(self, tg, store, valid_secret_b58):
        update = make_update()

        await tg._cmd_import_wallet(update, make_context(valid_secret_b58))

        assert store.get("42").secret_key_base58 == valid_secret_b58
        assert "WALLET IMPORTED" in replied_text(update)

    @pytest.mark.asyncio
    async def test_import_invalid_key(self, tg, store):
        update = make_update()

        await tg._cmd_import_wallet(update, make_context("abc"))

        assert store.get("42") is None
        assert "Invalid private key" in replied_text(update)

    @pytest.mark.asyncio
    async def test_import_without_args_prompts(self, tg):
        update = make_update()

        await tg._cmd_import_wallet(update, make_context())

        assert "IMPORT WALLET" in replied_text(update)

    @pytest.mark.asyncio
    async def test_overview(self, tg, store, remote):
        record = store.create("42")
        remote.balances[record.public_key] = 1.5
        update = make_update()

        await tg._cmd_overview(update, make_context())

        assert "1.5000 SOL" in replied_text(update)

    @pytest.mark.asyncio
    async def test_commands_require_wallet(self, tg):
        for handler in (tg._cmd_positions, tg._cmd_overview, tg._cmd_faucet, tg._cmd_rebalance):
            update = make_update()
            await handler(update, make_context())
            assert "No wallet set" in replied_text(update)


class TestFaucetCommand:

    @pytest.mark.asyncio
    async def test_faucet_then_rate_limited(self, tg, store):
        store.create("42")

        first = make_update()
        await tg._cmd_faucet(first, make_context())
        assert "MockAirdropSig" in replied_text(first)

        second = make_update()
        await tg._cmd_faucet(second, make_context())
        assert "Try again in 60 minute(s)" in replied_text(second)

    @pytest.mark.asyncio
    async def test_faucet_remote_failure(self, tg, store, remote):
        from src.shared.system.errors import EndpointUnavailableError

        store.create("42")
        remote.airdrop_error = EndpointUnavailableError("down")
        update = make_update()

        await tg._cmd_faucet(update, make_context())

        assert "Airdrop failed" in replied_text(update)


class TestLiquidityCommands:

    @pytest.mark.asyncio
    async def test_positions_listed(self, tg, store, remote, sample_position):
        record = store.create("42")
        remote.positions[record.public_key] = [sample_position]
        update = make_update()

        await tg._cmd_positions(update, make_context())

        assert "mockPoolAddress" in replied_text(update)
        assert "100-200" in replied_text(update)

    @pytest.mark.asyncio
    async def test_add_liquidity_usage(self, tg):
        update = make_update()

        await tg._cmd_add_liquidity(update, make_context("pool", "1"))

        assert "Usage" in replied_text(update)

    @pytest.mark.asyncio
    async def test_add_liquidity(self, tg, store):
        store.create("42")
        update = make_update()

        await tg._cmd_add_liquidity(update, make_context("mockPoolAddress", "100", "200", "1", "2"))

        assert "mockTx_100_200_1_2_" in replied_text(update)

    @pytest.mark.asyncio
    async def test_add_liquidity_bad_params(self, tg, store):
        store.create("42")
        update = make_update()

        await tg._cmd_add_liquidity(update, make_context("pool", "x", "200", "1"))

        assert "Error" in replied_text(update)

    @pytest.mark.asyncio
    async def test_remove_liquidity(self, tg, store):
        record = store.create("42")
        update = make_update()

        await tg._cmd_remove_liquidity(update, make_context(record.public_key, "5"))

        assert "mockRemoveTx_" in replied_text(update)

    @pytest.mark.asyncio
    async def test_rebalance_without_positions(self, tg, store):
        store.create("42")
        update = make_update()

        await tg._cmd_rebalance(update, make_context())

        assert "No positions to rebalance" in replied_text(update)


class TestCallbacks:

    @pytest.mark.asyncio
    async def test_menu_callback(self, tg):
        update = make_update(callback_data="menu")

        await tg._on_callback(update, make_context())

        update.callback_query.answer.assert_awaited_once()
        assert "Menu" in replied_text(update)

    @pytest.mark.asyncio
    async def test_prompt_callback(self, tg):
        update = make_update(callback_data="add_liquidity")
        context = MagicMock()
        context.args = None

        await tg._on_callback(update, context)

        assert "Add Liquidity" in replied_text(update)
