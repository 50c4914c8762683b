"""
Claim pipeline output models: one ClaimRecord per confirmed payout and the
ClaimReport returned to the API. to_dict() produces the wire format.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

CURRENCY_SOL = "SOL"
TX_URL_TEMPLATE = "https://solscan.io/tx/{signature}"


def iso_utc(dt: datetime | None) -> str | None:
    """datetime to ISO 8601 UTC string with millisecond precision ('...Z')."""
    if dt is None:
        return None
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def from_unix(ts: int | None) -> datetime | None:
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc)


@dataclass(frozen=True)
class ClaimRecord:
    """A fee-claim transaction that paid `amount` SOL to the wallet."""

    signature: str
    amount: Decimal
    timestamp: datetime | None
    token_mint: str
    slot: int
    currency: str = CURRENCY_SOL

    @property
    def tx_url(self) -> str:
        return TX_URL_TEMPLATE.format(signature=self.signature)

    def to_dict(self) -> dict[str, Any]:
        return {
            "signature": self.signature,
            "amount": float(self.amount),
            "timestamp": iso_utc(self.timestamp),
            "tokenMint": self.token_mint,
            "currency": self.currency,
            "txUrl": self.tx_url,
            "slot": self.slot,
        }


@dataclass(frozen=True)
class ClaimReport:
    """
    Result of one claim check. claim_history is newest first with unknown
    timestamps last; total_claimed and claim_count are derived from it.
    """

    wallet: str
    token_mint: str
    claim_history: tuple[ClaimRecord, ...]
    last_checked: datetime
    currency: str = CURRENCY_SOL
    total_claimed: Decimal = field(init=False)
    claim_count: int = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "total_claimed",
            sum((c.amount for c in self.claim_history), Decimal(0)),
        )
        object.__setattr__(self, "claim_count", len(self.claim_history))

    @property
    def has_claimed(self) -> bool:
        return self.claim_count > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "wallet": self.wallet,
            "tokenMint": self.token_mint,
            "hasClaimed": self.has_claimed,
            "claimHistory": [c.to_dict() for c in self.claim_history],
            "totalClaimed": float(self.total_claimed),
            "claimCount": self.claim_count,
            "currency": self.currency,
            "lastChecked": iso_utc(self.last_checked),
        }
