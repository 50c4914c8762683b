"""
Solana ledger client: JSON-RPC over HTTPS.

Responsibilities:
- getSignaturesForAddress: a wallet's most recent signatures, newest first.
- getTransaction (jsonParsed, confirmed, v0): the full record for one signature.
- One pooled httpx.Client per instance, bounded per-call timeout, no retries.

Failure policy: the signature list is all-or-nothing (LedgerUnavailableError);
a single transaction fetch never raises, it is logged and returned as None.
"""

from __future__ import annotations

import itertools
from typing import Any

import httpx

from backend_bags.bags_logging import get_logger, mask_url
from backend_bags.core.exceptions import LedgerRPCError, LedgerUnavailableError
from backend_bags.ledger.models import SignatureInfo, TransactionRecord

logger = get_logger(__name__)

DEFAULT_SIGNATURE_LIMIT = 50
RPC_TIMEOUT_SEC = 15.0
COMMITMENT = "confirmed"
MAX_SUPPORTED_TRANSACTION_VERSION = 0


class LedgerClient:
    """
    Thin synchronous Solana JSON-RPC client.

    Thread-safe: the underlying httpx.Client may be shared by the aggregator's
    worker threads. Use as a context manager or call close().
    """

    def __init__(
        self,
        rpc_url: str,
        *,
        timeout_sec: float = RPC_TIMEOUT_SEC,
        max_connections: int = 16,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Args:
            rpc_url: Authenticated RPC endpoint (e.g. https://mainnet.helius-rpc.com/?api-key=...).
            timeout_sec: Per-call timeout; a timeout counts as an unavailable record.
            max_connections: Connection pool size (should cover the fetch concurrency).
            transport: Optional httpx transport, used by tests (httpx.MockTransport).
        """
        if not rpc_url.strip():
            raise ValueError("rpc_url must be non-empty")
        self._rpc_url = rpc_url.strip()
        self._ids = itertools.count(1)
        self._client = httpx.Client(
            timeout=httpx.Timeout(timeout_sec),
            limits=httpx.Limits(max_connections=max_connections),
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    def __enter__(self) -> "LedgerClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _rpc(self, method: str, params: list[Any]) -> Any:
        """POST one JSON-RPC request; return `result`. Raise on transport or RPC error."""
        body = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        resp = self._client.post(self._rpc_url, json=body)
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected RPC payload type: {type(data).__name__}")
        err = data.get("error")
        if err:
            raise LedgerRPCError(method, err)
        return data.get("result")

    def list_recent_signatures(
        self,
        address: str,
        limit: int = DEFAULT_SIGNATURE_LIMIT,
    ) -> list[SignatureInfo]:
        """
        Return up to `limit` most recent signatures for address (newest first).

        An empty or null result is "no history". Any failure raises
        LedgerUnavailableError since nothing can be reported without the list.
        """
        try:
            result = self._rpc("getSignaturesForAddress", [address, {"limit": limit}])
        except (httpx.HTTPError, ValueError, LedgerRPCError) as e:
            logger.error(
                "ledger_signatures_failed",
                wallet=address[:8] + "...",
                rpc_url=mask_url(self._rpc_url),
                error=str(e),
            )
            raise LedgerUnavailableError(f"Could not fetch signatures: {e}") from e

        items = result if isinstance(result, list) else []
        infos: list[SignatureInfo] = []
        for item in items:
            if not isinstance(item, dict) or "signature" not in item:
                continue
            try:
                infos.append(SignatureInfo.from_rpc_item(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.debug("ledger_signature_item_skipped", error=str(e))
        logger.info("ledger_signatures_fetched", wallet=address[:8] + "...", count=len(infos))
        return infos

    def fetch_transaction_raw(self, signature: str) -> dict[str, Any] | None:
        """
        Return the raw getTransaction result object, or None when the node has
        no such transaction (unknown or pruned). Raises on transport/RPC error.
        """
        result = self._rpc(
            "getTransaction",
            [
                signature,
                {
                    "encoding": "jsonParsed",
                    "maxSupportedTransactionVersion": MAX_SUPPORTED_TRANSACTION_VERSION,
                    "commitment": COMMITMENT,
                },
            ],
        )
        return result if isinstance(result, dict) else None

    def get_transaction(self, signature: str) -> TransactionRecord | None:
        """
        Fetch and normalize one transaction. Returns None (after logging) on an
        RPC error, a missing result, a result without meta, or a transport
        failure/timeout.
        """
        try:
            raw = self.fetch_transaction_raw(signature)
        except LedgerRPCError as e:
            logger.warning("ledger_tx_rpc_error", signature=signature[:12] + "...", error=str(e))
            return None
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("ledger_tx_fetch_failed", signature=signature[:12] + "...", error=str(e))
            return None
        if raw is None:
            logger.debug("ledger_tx_no_result", signature=signature[:12] + "...")
            return None
        record = TransactionRecord.from_rpc_result(signature, raw)
        if record is None:
            logger.debug("ledger_tx_no_meta", signature=signature[:12] + "...")
        return record
