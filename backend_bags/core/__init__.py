"""
Core utilities: shared exceptions and cross-cutting concerns.

Used by the ledger client, claim pipeline and API server.
"""
