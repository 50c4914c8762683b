"""
Fee-claim transaction classification.

Three gates, in order, each short-circuiting:
1. involvement: the wallet is one of the transaction's account keys;
2. claim shape: a known claim instruction in the logs OR a known
   fee-distribution program among the account keys;
3. token relevance: the token mint is an account key or the mint of any
   pre/post token balance.

The claim-shape signals are heuristic and kept as extensible sets.
"""

from __future__ import annotations

from dataclasses import dataclass

from backend_bags.ledger.models import TransactionRecord

# Meteora DAMM v2 fee claims as logged by the Bags fee-share program
CLAIM_LOG_MARKERS: tuple[str, ...] = (
    "Instruction: ClaimDammV2",
    "Instruction: ClaimUser",
)
# Meteora fee program
FEE_PROGRAM_IDS: frozenset[str] = frozenset({
    "FEE2tBhCKAt7shrod19QttSVREUYPiyMzoku1mL1gqVK",
})

VERDICT_NOT_INVOLVED = "not_involved"
VERDICT_NOT_CLAIM = "not_claim"
VERDICT_OTHER_TOKEN = "other_token"
VERDICT_CANDIDATE = "candidate"


@dataclass(frozen=True)
class ClassifierConfig:
    """Recognized claim markers and program addresses."""

    log_markers: tuple[str, ...] = CLAIM_LOG_MARKERS
    program_ids: frozenset[str] = FEE_PROGRAM_IDS

    @classmethod
    def with_extras(
        cls,
        log_markers: tuple[str, ...] = (),
        program_ids: tuple[str, ...] = (),
    ) -> "ClassifierConfig":
        """Defaults plus additional markers / program ids (e.g. from env)."""
        markers = CLAIM_LOG_MARKERS + tuple(m for m in log_markers if m not in CLAIM_LOG_MARKERS)
        return cls(log_markers=markers, program_ids=FEE_PROGRAM_IDS | frozenset(program_ids))


DEFAULT_CONFIG = ClassifierConfig()


def wallet_involved(record: TransactionRecord, wallet: str) -> bool:
    return wallet in record.account_keys


def has_claim_log(record: TransactionRecord, config: ClassifierConfig = DEFAULT_CONFIG) -> bool:
    return any(marker in line for line in record.log_messages for marker in config.log_markers)


def has_fee_program(record: TransactionRecord, config: ClassifierConfig = DEFAULT_CONFIG) -> bool:
    return any(key in config.program_ids for key in record.account_keys)


def has_claim_shape(record: TransactionRecord, config: ClassifierConfig = DEFAULT_CONFIG) -> bool:
    """Either signal suffices; log formats are not stable across program versions."""
    return has_claim_log(record, config) or has_fee_program(record, config)


def involves_token(record: TransactionRecord, token_mint: str) -> bool:
    # Fee claims often list the mint only in account keys, not in balances
    if token_mint in record.account_keys:
        return True
    return any(
        b.mint == token_mint
        for b in record.pre_token_balances + record.post_token_balances
    )


def classify(
    record: TransactionRecord,
    wallet: str,
    token_mint: str,
    config: ClassifierConfig = DEFAULT_CONFIG,
) -> str:
    """
    Return the first gate that rejects the record, or VERDICT_CANDIDATE.

    One of: not_involved, not_claim, other_token, candidate.
    """
    if not wallet_involved(record, wallet):
        return VERDICT_NOT_INVOLVED
    if not has_claim_shape(record, config):
        return VERDICT_NOT_CLAIM
    if not involves_token(record, token_mint):
        return VERDICT_OTHER_TOKEN
    return VERDICT_CANDIDATE


def is_fee_claim(
    record: TransactionRecord,
    wallet: str,
    token_mint: str,
    config: ClassifierConfig = DEFAULT_CONFIG,
) -> bool:
    """True if the record is a fee-claim candidate for this wallet and token."""
    return classify(record, wallet, token_mint, config) == VERDICT_CANDIDATE
