"""
Balance reconciliation: how much SOL a transaction paid to a wallet.

A payout can settle as a wrapped-SOL token credit or as a native lamport
credit, so both signals are summed:
- WSOL: post minus pre ui amount per token account owned by the wallet
  (matched on account index; a missing pre entry counts as 0), positive only.
- Native: lamport delta at the wallet's account index, counted only above
  NATIVE_NOISE_THRESHOLD_SOL so fee payments and refund dust are ignored.

The two signals are not cross-checked against each other.
"""

from __future__ import annotations

from decimal import Decimal

from backend_bags.ledger.models import TransactionRecord

WSOL_MINT = "So11111111111111111111111111111111111111112"
LAMPORTS_PER_SOL = 1_000_000_000
# Exclusive: a delta must be strictly greater
NATIVE_NOISE_THRESHOLD_SOL = Decimal("0.01")

_ZERO = Decimal(0)


def wrapped_sol_received(record: TransactionRecord, wallet: str) -> Decimal:
    """Sum of positive WSOL balance increases on token accounts owned by wallet."""
    pre_by_index = {b.account_index: b.ui_amount for b in record.pre_token_balances}
    total = _ZERO
    for post in record.post_token_balances:
        if post.mint != WSOL_MINT or post.owner != wallet:
            continue
        received = post.ui_amount - pre_by_index.get(post.account_index, _ZERO)
        if received > 0:
            total += received
    return total


def native_sol_change(record: TransactionRecord, wallet: str) -> Decimal | None:
    """Signed SOL delta for the wallet, or None if it has no balance entry."""
    idx = record.index_of(wallet)
    if idx is None or idx >= len(record.pre_balances) or idx >= len(record.post_balances):
        return None
    lamports = record.post_balances[idx] - record.pre_balances[idx]
    return Decimal(lamports) / LAMPORTS_PER_SOL


def native_sol_received(record: TransactionRecord, wallet: str) -> Decimal:
    change = native_sol_change(record, wallet)
    if change is None or change <= NATIVE_NOISE_THRESHOLD_SOL:
        return _ZERO
    return change


def amount_received(record: TransactionRecord, wallet: str) -> Decimal:
    """Net SOL received by wallet in this transaction (>= 0)."""
    return wrapped_sol_received(record, wallet) + native_sol_received(record, wallet)
