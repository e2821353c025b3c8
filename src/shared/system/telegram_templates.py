"""
V1.0: Telegram Message Templates
================================
Structured message builders for the Saros DLMM bot.

All templates return Telegram HTML-formatted strings. Every value that
comes from user input or a remote service is escaped.

Usage:
    from src.shared.system.telegram_templates import WalletTemplates, AlertTemplates

    msg = AlertTemplates.wallet_change(changes)
    await notifier.deliver_message(owner_id, msg)
"""

from html import escape
from typing import Optional, Sequence

from src.shared.models.wallet import Position

DIVIDER = "━━━━━━━━━━━━━━━"


class WalletTemplates:
    """Wallet setup and overview messages."""

    @staticmethod
    def setup_required() -> str:
        return f"""🔐 <b>WALLET SETUP REQUIRED</b>
{DIVIDER}
First time? Choose how to connect your Solana wallet:"""

    @staticmethod
    def welcome_back(public_key: str) -> str:
        return f"""🚀 <b>WELCOME BACK</b>
{DIVIDER}
• Wallet: <code>{escape(public_key)}</code>
Choose an action:"""

    @staticmethod
    def menu() -> str:
        return "🚀 <b>Saros DLMM Bot Menu</b>\nChoose an action:"

    @staticmethod
    def created(public_key: str, secret_key_base58: str) -> str:
        return f"""🆕 <b>NEW WALLET CREATED</b>
{DIVIDER}
• Public Key: <code>{escape(public_key)}</code>

<b>Save this private key securely:</b>
<tg-spoiler>{escape(secret_key_base58)}</tg-spoiler>

⚠️ Never share your private key!"""

    @staticmethod
    def import_prompt() -> str:
        return """🔑 <b>IMPORT WALLET</b>
Send <code>/import_wallet &lt;base58 private key&gt;</code>

⚠️ Demo only. Use secure methods in production."""

    @staticmethod
    def imported(public_key: str) -> str:
        return f"""✅ <b>WALLET IMPORTED</b>
{DIVIDER}
• Public Key: <code>{escape(public_key)}</code>
Ready to use!"""

    @staticmethod
    def overview(public_key: str, balance: float, positions: Sequence[Position]) -> str:
        if positions:
            pools = "\n".join(
                f"• <code>{escape(p.pool)}</code> [{p.lower_bin}-{p.upper_bin}] {p.liquidity:g} SOL"
                for p in positions
            )
        else:
            pools = "No pools associated. Add liquidity to join a pool."
        return f"""💼 <b>WALLET OVERVIEW</b>
{DIVIDER}
• Address: <code>{escape(public_key)}</code>
• Balance: {balance:.4f} SOL
<b>Pools:</b>
{pools}"""

    @staticmethod
    def no_wallet() -> str:
        return "❌ <b>Error</b>: No wallet set. Use /start to configure."

    @staticmethod
    def error(message: str) -> str:
        return f"❌ <b>Error</b>: {escape(str(message))}"


class LiquidityTemplates:
    """DLMM position and liquidity messages."""

    ADD_USAGE = "/add_liquidity &lt;pool&gt; &lt;lower_bin&gt; &lt;upper_bin&gt; &lt;amount_x&gt; [amount_y]"
    REMOVE_USAGE = "/remove_liquidity &lt;position_pubkey&gt; &lt;amount&gt;"

    @staticmethod
    def positions(positions: Sequence[Position]) -> str:
        if not positions:
            return "📋 <b>YOUR POSITIONS</b>\n\nNo positions found. Try <b>Add Liquidity</b>."
        blocks = [
            f"""📊 <b>Position {i}</b>
• Pool: <code>{escape(p.pool)}</code>
• Range: {p.lower_bin}-{p.upper_bin}
• Liquidity: {p.liquidity:g} SOL
• Fees: {p.fees_earned:g} SOL"""
            for i, p in enumerate(positions, start=1)
        ]
        return "📋 <b>YOUR POSITIONS</b>\n\n" + "\n\n".join(blocks)

    @staticmethod
    def add_usage() -> str:
        return f"💧 <b>Add Liquidity</b>\nUsage: <code>{LiquidityTemplates.ADD_USAGE}</code>"

    @staticmethod
    def remove_usage() -> str:
        return f"🏦 <b>Remove Liquidity</b>\nUsage: <code>{LiquidityTemplates.REMOVE_USAGE}</code>"

    @staticmethod
    def added(tx: str) -> str:
        return f"💧 <b>LIQUIDITY ADDED</b>\n• Transaction: <code>{escape(tx)}</code>"

    @staticmethod
    def removed(tx: str) -> str:
        return f"🏦 <b>LIQUIDITY REMOVED</b>\n• Transaction: <code>{escape(tx)}</code>"

    @staticmethod
    def rebalance(suggestion: Optional[str]) -> str:
        if suggestion is None:
            return "⚖️ <b>Rebalance</b>\nNo positions to rebalance. Add liquidity first."
        return f"⚖️ <b>REBALANCE SUGGESTION</b>\n{escape(suggestion)}"


class FaucetTemplates:
    """Devnet faucet messages."""

    @staticmethod
    def funded(amount_sol: float, signature: str) -> str:
        return f"""🚰 <b>FAUCET AIRDROP</b>
{DIVIDER}
• Amount: {amount_sol:g} SOL
• Signature: <code>{escape(signature)}</code>"""

    @staticmethod
    def rate_limited(remaining_minutes: int) -> str:
        return f"⏳ Faucet already used. Try again in {remaining_minutes} minute(s)."


class AlertTemplates:
    """Reconciliation alerts pushed to owners."""

    @staticmethod
    def wallet_change(changes) -> str:
        """Format a ChangeSet (only the dimensions that changed)."""
        lines = [f"🔔 <b>WALLET UPDATE</b>", DIVIDER]
        if changes.balance_changed:
            arrow = "📈" if changes.new_balance >= changes.old_balance else "📉"
            lines.append(
                f"• Balance {arrow} {changes.old_balance:.4f} → {changes.new_balance:.4f} SOL"
            )
        if changes.positions_changed:
            lines.append("• Positions updated")
        if changes.new_signatures:
            lines.append(f"• New transactions: {len(changes.new_signatures)}")
        return "\n".join(lines)
