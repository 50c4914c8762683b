"""
Claim aggregation: signature list → per-transaction classification and
reconciliation → sorted ClaimReport.

Transaction fetches are independent and run on a bounded thread pool.
Failures are isolated per signature; only a failure to list signatures
aborts the report (LedgerUnavailableError from the ledger client).
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Protocol

from backend_bags.bags_logging import get_logger
from backend_bags.claims.classifier import (
    DEFAULT_CONFIG,
    VERDICT_CANDIDATE,
    VERDICT_NOT_CLAIM,
    VERDICT_NOT_INVOLVED,
    VERDICT_OTHER_TOKEN,
    ClassifierConfig,
    classify,
)
from backend_bags.claims.models import ClaimRecord, ClaimReport, from_unix
from backend_bags.claims.reconciler import amount_received
from backend_bags.ledger.models import SignatureInfo, TransactionRecord

logger = get_logger(__name__)

DEFAULT_SIGNATURE_LIMIT = 50
DEFAULT_MAX_WORKERS = 8

OUTCOME_UNAVAILABLE = "unavailable"
OUTCOME_NO_VALUE = "no_value"
OUTCOME_RECORDED = "recorded"


class Ledger(Protocol):
    def list_recent_signatures(self, address: str, limit: int = ...) -> list[SignatureInfo]: ...

    def get_transaction(self, signature: str) -> TransactionRecord | None: ...


@dataclass
class ScanStats:
    """Per-report counters, logged once as a summary."""

    checked: int = 0
    unavailable: int = 0
    wallet_involved: int = 0
    fee_claims: int = 0
    token_matches: int = 0
    recorded: int = 0

    def add(self, outcome: str) -> None:
        self.checked += 1
        if outcome == OUTCOME_UNAVAILABLE:
            self.unavailable += 1
            return
        if outcome == VERDICT_NOT_INVOLVED:
            return
        self.wallet_involved += 1
        if outcome == VERDICT_NOT_CLAIM:
            return
        self.fee_claims += 1
        if outcome == VERDICT_OTHER_TOKEN:
            return
        self.token_matches += 1
        if outcome == OUTCOME_RECORDED:
            self.recorded += 1


def _sort_key(claim: ClaimRecord) -> tuple[bool, datetime]:
    # Unknown timestamps sort as oldest
    ts = claim.timestamp
    return (ts is not None, ts or datetime.min.replace(tzinfo=timezone.utc))


def sort_newest_first(claims: list[ClaimRecord]) -> list[ClaimRecord]:
    return sorted(claims, key=_sort_key, reverse=True)


class ClaimAggregator:
    """
    Builds ClaimReports from a ledger client.

    max_workers=1 scans sequentially in ledger order; larger values fetch
    transactions concurrently. Output order is the same either way.
    """

    def __init__(
        self,
        ledger: Ledger,
        *,
        classifier_config: ClassifierConfig = DEFAULT_CONFIG,
        signature_limit: int = DEFAULT_SIGNATURE_LIMIT,
        max_workers: int = DEFAULT_MAX_WORKERS,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self._ledger = ledger
        self._classifier_config = classifier_config
        self._signature_limit = signature_limit
        self._max_workers = max_workers
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def inspect(
        self,
        sig: SignatureInfo,
        wallet: str,
        token_mint: str,
    ) -> tuple[str, ClaimRecord | None]:
        """
        Fetch and evaluate one signature. Returns (outcome, claim or None).
        Never raises: any failure is logged and reported as unavailable.
        """
        try:
            record = self._ledger.get_transaction(sig.signature)
        except Exception as e:
            logger.warning("claims_tx_fetch_error", signature=sig.signature[:12] + "...", error=str(e))
            return OUTCOME_UNAVAILABLE, None
        if record is None:
            return OUTCOME_UNAVAILABLE, None

        verdict = classify(record, wallet, token_mint, self._classifier_config)
        if verdict != VERDICT_CANDIDATE:
            logger.debug("claims_tx_skipped", signature=sig.signature[:12] + "...", verdict=verdict)
            return verdict, None

        amount = amount_received(record, wallet)
        if amount <= 0:
            logger.debug("claims_tx_no_value", signature=sig.signature[:12] + "...")
            return OUTCOME_NO_VALUE, None

        block_time = record.block_time if record.block_time is not None else sig.block_time
        claim = ClaimRecord(
            signature=sig.signature,
            amount=amount,
            timestamp=from_unix(block_time),
            token_mint=token_mint,
            slot=record.slot,
        )
        logger.info(
            "claims_tx_recorded",
            signature=sig.signature[:12] + "...",
            amount=str(amount),
            timestamp=block_time,
        )
        return OUTCOME_RECORDED, claim

    def _scan(
        self,
        signatures: list[SignatureInfo],
        wallet: str,
        token_mint: str,
    ) -> tuple[list[ClaimRecord], ScanStats]:
        stats = ScanStats()
        claims: list[ClaimRecord] = []
        if self._max_workers == 1:
            results = [self.inspect(sig, wallet, token_mint) for sig in signatures]
        else:
            workers = min(self._max_workers, len(signatures))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="claim-scan") as executor:
                futures = [executor.submit(self.inspect, sig, wallet, token_mint) for sig in signatures]
                # Ledger order, so equal timestamps sort the same as a sequential scan
                results = [fut.result() for fut in futures]
        for outcome, claim in results:
            stats.add(outcome)
            if claim is not None:
                claims.append(claim)
        return claims, stats

    def build_report(self, wallet: str, token_mint: str) -> ClaimReport:
        """
        Scan the wallet's recent transactions for fee claims on token_mint.

        Raises LedgerUnavailableError if the signature list cannot be fetched.
        """
        signatures = self._ledger.list_recent_signatures(wallet, limit=self._signature_limit)
        if not signatures:
            logger.info("claims_no_history", wallet=wallet[:8] + "...")
            return ClaimReport(
                wallet=wallet,
                token_mint=token_mint,
                claim_history=(),
                last_checked=self._clock(),
            )

        claims, stats = self._scan(signatures, wallet, token_mint)
        report = ClaimReport(
            wallet=wallet,
            token_mint=token_mint,
            claim_history=tuple(sort_newest_first(claims)),
            last_checked=self._clock(),
        )
        logger.info(
            "claims_report_built",
            wallet=wallet[:8] + "...",
            token_mint=token_mint[:8] + "...",
            checked=stats.checked,
            unavailable=stats.unavailable,
            wallet_involved=stats.wallet_involved,
            fee_claims=stats.fee_claims,
            token_matches=stats.token_matches,
            claim_count=report.claim_count,
            total_claimed=str(report.total_claimed),
        )
        return report
