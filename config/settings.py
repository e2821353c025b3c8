import os
from dotenv import load_dotenv

# Load Environment Variables from project root .env
env_path = os.path.join(os.path.dirname(__file__), "../.env")
load_dotenv(env_path)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    # ═══════════════════════════════════════════════════════════════════
    # SAROS DLMM BOT CONFIGURATION (env-based)
    # ═══════════════════════════════════════════════════════════════════

    # --- Console ---
    SILENT_MODE = _env_bool("SILENT_MODE", False)

    # Paths
    DATA_DIR = os.path.abspath(
        os.getenv("DATA_DIR", os.path.join(os.path.dirname(__file__), "../data"))
    )
    WALLETS_FILE = os.getenv("WALLETS_FILE", os.path.join(DATA_DIR, "wallets.json"))
    SNAPSHOTS_FILE = os.getenv("SNAPSHOTS_FILE", os.path.join(DATA_DIR, "snapshots.json"))
    LOG_DIR = os.path.abspath(
        os.getenv("LOG_DIR", os.path.join(os.path.dirname(__file__), "../logs"))
    )

    # ═══════════════════════════════════════════════════════════════════
    # RPC ENDPOINTS
    # ═══════════════════════════════════════════════════════════════════
    RPC_URL = os.getenv("SOLANA_RPC_URL", os.getenv("RPC_URL", "https://api.devnet.solana.com"))
    FALLBACK_RPC_URL = os.getenv("FALLBACK_RPC_URL", "https://rpc.ankr.com/solana_devnet")
    RPC_TIMEOUT_S = float(os.getenv("RPC_TIMEOUT_S", "10"))

    # ═══════════════════════════════════════════════════════════════════
    # RETRY POLICIES
    # Reads retry on a fixed delay, airdrops back off exponentially.
    # ═══════════════════════════════════════════════════════════════════
    READ_RETRY_MAX = int(os.getenv("READ_RETRY_MAX", "3"))
    READ_RETRY_BASE_DELAY_S = float(os.getenv("READ_RETRY_BASE_DELAY_S", "2.0"))
    READ_RETRY_BACKOFF = os.getenv("READ_RETRY_BACKOFF", "fixed")

    AIRDROP_RETRY_MAX = int(os.getenv("AIRDROP_RETRY_MAX", "3"))
    AIRDROP_RETRY_BASE_DELAY_S = float(os.getenv("AIRDROP_RETRY_BASE_DELAY_S", "2.0"))
    AIRDROP_RETRY_BACKOFF = os.getenv("AIRDROP_RETRY_BACKOFF", "exponential")

    # ═══════════════════════════════════════════════════════════════════
    # RECONCILIATION
    # ═══════════════════════════════════════════════════════════════════
    RECONCILE_INTERVAL_S = float(os.getenv("RECONCILE_INTERVAL_S", "300"))
    SIGNATURE_HISTORY_LIMIT = int(os.getenv("SIGNATURE_HISTORY_LIMIT", "5"))
    BALANCE_DECIMALS = 4  # Rounding used when comparing balances

    # False keeps the zero baseline for new wallets (first cycle alerts on
    # a non-zero balance). True seeds the first snapshot without an alert.
    SEED_BASELINE_ON_FIRST_SEEN = _env_bool("SEED_BASELINE_ON_FIRST_SEEN", False)

    # ═══════════════════════════════════════════════════════════════════
    # FAUCET
    # ═══════════════════════════════════════════════════════════════════
    FAUCET_WINDOW_S = float(os.getenv("FAUCET_WINDOW_S", "3600"))
    FAUCET_AMOUNT_SOL = float(os.getenv("FAUCET_AMOUNT_SOL", "2"))

    # ═══════════════════════════════════════════════════════════════════
    # DLMM (mock)
    # ═══════════════════════════════════════════════════════════════════
    DLMM_DEFAULT_POOL = os.getenv("DLMM_DEFAULT_POOL", "mockPoolAddress")

    # ═══════════════════════════════════════════════════════════════════
    # TELEGRAM
    # ═══════════════════════════════════════════════════════════════════
    TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN", "")
