"""
Best-effort token metadata: name, symbol, decimals.

Jupiter's strict token list provides name/symbol/decimals. When Jupiter has
no entry, decimals come from the on-chain mint account (solana-py, jsonParsed)
and name/symbol fall back to placeholders. Never raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import requests
from solana.rpc.api import Client
from solders.pubkey import Pubkey

from backend_bags.bags_logging import get_logger

logger = get_logger(__name__)

JUPITER_TOKEN_URL = "https://token.jup.ag/strict/{mint}"
REQUEST_TIMEOUT = 10
DEFAULT_DECIMALS = 9
UNKNOWN_TOKEN_NAME = "Unknown Token"


@dataclass(frozen=True)
class TokenInfo:
    name: str
    symbol: str
    decimals: int

    def to_dict(self) -> dict[str, Any]:
        return {"success": True, "name": self.name, "symbol": self.symbol, "decimals": self.decimals}


def fetch_jupiter_token(mint: str, timeout: float = REQUEST_TIMEOUT) -> dict[str, Any] | None:
    try:
        r = requests.get(JUPITER_TOKEN_URL.format(mint=mint), timeout=timeout)
        if r.status_code != 200:
            return None
        data = r.json()
    except (requests.RequestException, ValueError) as e:
        logger.debug("token_info_jupiter_failed", mint=mint[:8] + "...", error=str(e))
        return None
    return data if isinstance(data, dict) else None


def fetch_mint_decimals(rpc_url: str, mint: str) -> int | None:
    """Read `decimals` from the SPL mint account, or None."""
    try:
        client = Client(rpc_url)
        resp = client.get_account_info_json_parsed(Pubkey.from_string(mint))
        account = resp.value
        if account is None:
            return None
        parsed = getattr(account.data, "parsed", None)
        if isinstance(parsed, dict):
            decimals = (parsed.get("info") or {}).get("decimals")
            return int(decimals) if decimals is not None else None
    except Exception as e:
        logger.debug("token_info_mint_account_failed", mint=mint[:8] + "...", error=str(e))
    return None


def get_token_info(mint: str, rpc_url: str) -> TokenInfo:
    """Resolve metadata for a mint; falls back to placeholders."""
    jup = fetch_jupiter_token(mint) or {}
    decimals = jup.get("decimals")
    if decimals is None:
        decimals = fetch_mint_decimals(rpc_url, mint)
    return TokenInfo(
        name=jup.get("name") or UNKNOWN_TOKEN_NAME,
        symbol=jup.get("symbol") or mint[:8],
        decimals=int(decimals) if decimals is not None else DEFAULT_DECIMALS,
    )
