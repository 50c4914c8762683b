"""
Application-level exceptions.

Domain errors raised by the config layer, the ledger client and the outbound
service proxies. The API server maps them to HTTP status codes.
"""

from __future__ import annotations


class BagsBackendError(Exception):
    """Base class for all errors raised by backend_bags."""


class ConfigError(BagsBackendError):
    """Required configuration is missing or invalid (raised at startup)."""


class LedgerError(BagsBackendError):
    """Base class for ledger node failures."""


class LedgerRPCError(LedgerError):
    """The node answered with a JSON-RPC error object."""

    def __init__(self, method: str, error: object) -> None:
        self.method = method
        self.error = error
        if isinstance(error, dict):
            detail = f"{error.get('message', error)} (code={error.get('code')})"
        else:
            detail = str(error)
        super().__init__(f"Solana RPC error in {method}: {detail}")


class LedgerUnavailableError(LedgerError):
    """A call whose failure is fatal for the request (e.g. the signature list) failed."""


class UpstreamServiceError(BagsBackendError):
    """An outbound collaborator (Bags API, token metadata) failed or is not configured."""
