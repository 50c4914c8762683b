"""
Solana ledger access: JSON-RPC client and normalized transaction models.

Exports:
- LedgerClient: getSignaturesForAddress / getTransaction over HTTPS.
- SignatureInfo, TokenBalance, TransactionRecord: immutable RPC views.
"""

from backend_bags.ledger.client import LedgerClient
from backend_bags.ledger.models import SignatureInfo, TokenBalance, TransactionRecord

__all__ = ["LedgerClient", "SignatureInfo", "TokenBalance", "TransactionRecord"]
