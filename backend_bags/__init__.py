"""
Backend Bags: fee-claim checker for Bags token creators.

Replays a wallet's recent Solana transactions, classifies fee-claim payouts
for a given token, and reports how much SOL was received. Modular layout:
ledger client, claim classification/reconciliation, and the API server.
"""

__version__ = "0.1.0"
