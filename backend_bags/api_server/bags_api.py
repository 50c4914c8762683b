"""
Bags public API proxy: creator wallet and token creator lookups.

Single authenticated GETs (x-api-key) whose JSON is passed through to the
caller. Used by GET /wallet/{username} and GET /token/{mint}.
"""

from __future__ import annotations

from typing import Any

import requests

from backend_bags.bags_logging import get_logger
from backend_bags.core.exceptions import UpstreamServiceError

logger = get_logger(__name__)

REQUEST_TIMEOUT = 15
FEE_SHARE_WALLET_PATH = "/token-launch/fee-share/wallet/v2"
TOKEN_CREATORS_PATH = "/token-launch/creator/v3"


class BagsApiClient:
    """Minimal client for the Bags token-launch API."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        *,
        timeout: float = REQUEST_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        if not api_key:
            raise UpstreamServiceError("Server misconfiguration: BAGS_API_KEY required")
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"x-api-key": api_key})

    def close(self) -> None:
        self._session.close()

    def _get(self, path: str, params: dict[str, str]) -> Any:
        url = f"{self._base_url}{path}"
        try:
            r = self._session.get(url, params=params, timeout=self._timeout)
            return r.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("bags_api_request_failed", path=path, error=str(e))
            raise UpstreamServiceError(f"Bags API request failed: {e}") from e

    def get_fee_share_wallet(self, username: str, provider: str = "twitter") -> dict[str, Any]:
        """Look up the fee-share wallet linked to a social username."""
        data = self._get(FEE_SHARE_WALLET_PATH, {"provider": provider, "username": username})
        return data if isinstance(data, dict) else {"response": data}

    def get_token_creators(self, token_mint: str) -> dict[str, Any]:
        """Return {success, creators} for a token mint."""
        data = self._get(TOKEN_CREATORS_PATH, {"tokenMint": token_mint})
        if not isinstance(data, dict):
            return {"success": False, "creators": []}
        return {"success": data.get("success"), "creators": data.get("response") or []}
