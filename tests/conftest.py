"""
Pytest fixtures for Backend Bags tests.

Isolates configuration per test (env + settings cache), provides builders for
jsonParsed getTransaction payloads, an in-memory fake ledger, and a FastAPI
TestClient with the ledger and rate gate overridden. No network access.
"""

from __future__ import annotations

from typing import Any

import pytest

from backend_bags.core.exceptions import LedgerUnavailableError
from backend_bags.ledger.models import SignatureInfo, TransactionRecord

_CONFIG_ENV = (
    "HELIUS_RPC_URL",
    "SOLANA_PUBLIC_RPC_URL",
    "BAGS_API_KEY",
    "BAGS_API_URL",
    "SIGNATURE_LIMIT",
    "FETCH_CONCURRENCY",
    "RPC_TIMEOUT_SEC",
    "RATE_LIMIT_TOTAL",
    "RATE_LIMIT_WINDOW_SEC",
    "CLAIM_LOG_MARKERS",
    "FEE_PROGRAM_IDS",
    "CORS_ORIGINS",
    "API_HOST",
    "API_PORT",
)


@pytest.fixture(autouse=True)
def bags_env(monkeypatch):
    """Known-good environment; settings cache reset before and after each test."""
    for name in _CONFIG_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HELIUS_API_KEY", "test-helius-key")

    from backend_bags.config.settings import get_settings

    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


class TxBuilder:
    """Builders for getSignaturesForAddress items and jsonParsed getTransaction results."""

    @staticmethod
    def token_balance(account_index: int, mint: str, owner: str | None, ui_amount: float | None) -> dict[str, Any]:
        return {
            "accountIndex": account_index,
            "mint": mint,
            "owner": owner,
            "programId": "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA",
            "uiTokenAmount": {
                "amount": "0" if ui_amount is None else str(int(ui_amount * 10**9)),
                "decimals": 9,
                "uiAmount": ui_amount,
                "uiAmountString": "0" if ui_amount is None else repr(ui_amount),
            },
        }

    @staticmethod
    def signature_item(signature: str, slot: int = 100, block_time: int | None = 1_700_000_000) -> dict[str, Any]:
        return {
            "signature": signature,
            "slot": slot,
            "blockTime": block_time,
            "err": None,
            "memo": None,
            "confirmationStatus": "finalized",
        }

    @staticmethod
    def result(
        *,
        account_keys: list[str],
        logs: list[str] | None = None,
        pre_token: list[dict[str, Any]] | None = None,
        post_token: list[dict[str, Any]] | None = None,
        pre_balances: list[int] | None = None,
        post_balances: list[int] | None = None,
        slot: int = 100,
        block_time: int | None = 1_700_000_000,
        parsed_keys: bool = True,
    ) -> dict[str, Any]:
        """A getTransaction(jsonParsed) result; keys as {pubkey,...} objects unless parsed_keys=False."""
        n = len(account_keys)
        if parsed_keys:
            keys: list[Any] = [
                {"pubkey": k, "signer": i == 0, "writable": True, "source": "transaction"}
                for i, k in enumerate(account_keys)
            ]
        else:
            keys = list(account_keys)
        return {
            "slot": slot,
            "blockTime": block_time,
            "transaction": {
                "signatures": ["sig"],
                "message": {"accountKeys": keys, "instructions": []},
            },
            "meta": {
                "err": None,
                "fee": 5000,
                "logMessages": logs or [],
                "preTokenBalances": pre_token or [],
                "postTokenBalances": post_token or [],
                "preBalances": pre_balances if pre_balances is not None else [0] * n,
                "postBalances": post_balances if post_balances is not None else [0] * n,
            },
            "version": 0,
        }

    @classmethod
    def record(cls, signature: str = "sig-1", **kwargs: Any) -> TransactionRecord:
        record = TransactionRecord.from_rpc_result(signature, cls.result(**kwargs))
        assert record is not None
        return record


@pytest.fixture
def tx_builder() -> type[TxBuilder]:
    return TxBuilder


class FakeLedger:
    """In-memory ledger: signatures newest first, records by signature."""

    def __init__(self) -> None:
        self.signatures: list[SignatureInfo] = []
        self.records: dict[str, TransactionRecord] = {}
        self.raw: dict[str, dict[str, Any]] = {}
        self.failing: set[str] = set()
        self.unavailable = False
        self.list_calls = 0
        self.fetched: list[str] = []

    def add(
        self,
        signature: str,
        record: TransactionRecord | None,
        *,
        slot: int = 100,
        block_time: int | None = 1_700_000_000,
    ) -> None:
        self.signatures.append(SignatureInfo(signature=signature, slot=slot, block_time=block_time))
        if record is not None:
            self.records[signature] = record

    def list_recent_signatures(self, address: str, limit: int = 50) -> list[SignatureInfo]:
        self.list_calls += 1
        if self.unavailable:
            raise LedgerUnavailableError("Could not fetch signatures: connection refused")
        return list(self.signatures[:limit])

    def get_transaction(self, signature: str) -> TransactionRecord | None:
        self.fetched.append(signature)
        if signature in self.failing:
            raise RuntimeError(f"fetch failed for {signature}")
        return self.records.get(signature)

    def fetch_transaction_raw(self, signature: str) -> dict[str, Any] | None:
        return self.raw.get(signature)


@pytest.fixture
def fake_ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def rate_gate():
    from backend_bags.api_server.rate_limit import RateGate

    return RateGate(limit=1000)


@pytest.fixture
def client(fake_ledger, rate_gate):
    """FastAPI TestClient with the ledger client and rate gate overridden."""
    from fastapi.testclient import TestClient

    from backend_bags.api_server.server import _bags_client, app, get_ledger_client, get_rate_gate

    _bags_client.cache_clear()
    app.dependency_overrides[get_ledger_client] = lambda: fake_ledger
    app.dependency_overrides[get_rate_gate] = lambda: rate_gate
    yield TestClient(app)
    app.dependency_overrides.clear()
    _bags_client.cache_clear()
