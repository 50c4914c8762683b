"""
Data models for ledger client output.

Responsibilities:
- Normalize getSignaturesForAddress items and jsonParsed getTransaction
  results into immutable dataclasses.
- Keep only what the claim pipeline needs: participants, logs, token
  balances and native balances.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any


def _to_decimal(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal(0)
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal(0)


def _account_keys(message: dict[str, Any]) -> tuple[str, ...]:
    """
    Resolve accountKeys to plain base58 strings (handles json vs jsonParsed).

    jsonParsed already lists lookup-table addresses in accountKeys, so
    loadedAddresses are not appended; indexes must line up with pre/postBalances.
    """
    keys = message.get("accountKeys") or []
    out: list[str] = []
    for k in keys:
        if isinstance(k, str):
            out.append(k)
        elif isinstance(k, dict):
            out.append(str(k.get("pubkey") or ""))
    return tuple(out)


@dataclass(frozen=True)
class SignatureInfo:
    """
    Transaction signature info from getSignaturesForAddress.

    Mirrors Solana RPC response fields. The ledger returns these newest
    first; the client keeps that order.
    """

    signature: str
    slot: int
    block_time: int | None  # Unix timestamp; None if not available
    err: Any = None  # None if success; dict from RPC if failed
    memo: str | None = None
    confirmation_status: str | None = None  # processed | confirmed | finalized

    @classmethod
    def from_rpc_item(cls, item: dict[str, Any]) -> "SignatureInfo":
        """Build from a single getSignaturesForAddress result item."""
        block_time = item.get("blockTime")
        return cls(
            signature=item["signature"],
            slot=int(item.get("slot") or 0),
            block_time=int(block_time) if block_time is not None else None,
            err=item.get("err"),
            memo=item.get("memo"),
            confirmation_status=item.get("confirmationStatus"),
        )


@dataclass(frozen=True)
class TokenBalance:
    """One entry of meta.preTokenBalances / meta.postTokenBalances."""

    account_index: int
    mint: str
    owner: str | None
    ui_amount: Decimal

    @classmethod
    def from_rpc_item(cls, item: dict[str, Any]) -> "TokenBalance":
        ui = item.get("uiTokenAmount") or {}
        # uiAmountString is exact; uiAmount is a float and may be null
        raw = ui.get("uiAmountString")
        if raw in (None, ""):
            raw = ui.get("uiAmount")
        return cls(
            account_index=int(item.get("accountIndex", -1)),
            mint=str(item.get("mint") or ""),
            owner=item.get("owner"),
            ui_amount=_to_decimal(raw),
        )


@dataclass(frozen=True)
class TransactionRecord:
    """
    Parsed transaction as needed by classification and reconciliation.

    Fetched per signature, never cached or shared across requests.
    Native balances are in lamports, indexed like account_keys.
    """

    signature: str
    slot: int
    block_time: int | None
    account_keys: tuple[str, ...]
    log_messages: tuple[str, ...]
    pre_token_balances: tuple[TokenBalance, ...]
    post_token_balances: tuple[TokenBalance, ...]
    pre_balances: tuple[int, ...]
    post_balances: tuple[int, ...]

    @classmethod
    def from_rpc_result(cls, signature: str, result: dict[str, Any]) -> "TransactionRecord | None":
        """
        Build from a jsonParsed getTransaction result.

        Returns None when the result has no meta section (record unavailable).
        """
        meta = result.get("meta")
        if not isinstance(meta, dict):
            return None
        tx_obj = result.get("transaction") or {}
        message = tx_obj.get("message") if isinstance(tx_obj, dict) else None
        block_time = result.get("blockTime")
        return cls(
            signature=signature,
            slot=int(result.get("slot") or 0),
            block_time=int(block_time) if block_time is not None else None,
            account_keys=_account_keys(message if isinstance(message, dict) else {}),
            log_messages=tuple(str(m) for m in meta.get("logMessages") or []),
            pre_token_balances=tuple(
                TokenBalance.from_rpc_item(b) for b in meta.get("preTokenBalances") or []
            ),
            post_token_balances=tuple(
                TokenBalance.from_rpc_item(b) for b in meta.get("postTokenBalances") or []
            ),
            pre_balances=tuple(int(b) for b in meta.get("preBalances") or []),
            post_balances=tuple(int(b) for b in meta.get("postBalances") or []),
        )

    def index_of(self, address: str) -> int | None:
        """Position of address among account_keys, or None."""
        try:
            return self.account_keys.index(address)
        except ValueError:
            return None
