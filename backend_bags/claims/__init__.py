"""
Fee-claim detection: classification, balance reconciliation and aggregation.

Pipeline per transaction: classifier (involvement → claim shape → token)
then reconciler (WSOL + native SOL received). The aggregator runs it over a
wallet's recent signatures and produces a ClaimReport.
"""

from backend_bags.claims.aggregator import ClaimAggregator
from backend_bags.claims.classifier import ClassifierConfig, is_fee_claim
from backend_bags.claims.models import ClaimRecord, ClaimReport
from backend_bags.claims.reconciler import amount_received

__all__ = [
    "ClaimAggregator",
    "ClaimRecord",
    "ClaimReport",
    "ClassifierConfig",
    "amount_received",
    "is_fee_claim",
]
