"""
Environment variable loading for Backend Bags.

- HELIUS_API_KEY: ledger node credential (required)
- HELIUS_RPC_URL: ledger node base URL (default: Helius mainnet)
- BAGS_API_KEY: Bags public API key (optional; creator lookups only)
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is backend_bags/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

HELIUS_MAINNET_URL = "https://mainnet.helius-rpc.com"
MAINNET_RPC_URL = "https://api.mainnet-beta.solana.com"
BAGS_API_URL = "https://public-api-v2.bags.fm/api/v1"


def load_bags_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides real env."""
    load_dotenv(_ENV_PATH, override=False)


def env_str(name: str, default: str = "") -> str:
    load_bags_env()
    return (os.getenv(name) or default).strip()


def env_int(name: str, default: int) -> int:
    raw = env_str(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def env_float(name: str, default: float) -> float:
    raw = env_str(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def env_list(name: str) -> tuple[str, ...]:
    """Comma-separated env value as a tuple of non-empty, stripped items."""
    raw = env_str(name)
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def build_rpc_url(base_url: str, api_key: str) -> str:
    """Helius-style authenticated endpoint: <base>/?api-key=<key>."""
    return f"{base_url.rstrip('/')}/?api-key={api_key}"
