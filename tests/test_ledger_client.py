"""
Pytest tests for LedgerClient against httpx.MockTransport (no network).
"""

from __future__ import annotations

import json
from decimal import Decimal

import httpx
import pytest

from backend_bags.core.exceptions import LedgerRPCError, LedgerUnavailableError
from backend_bags.ledger.client import LedgerClient

RPC_URL = "https://rpc.test/?api-key=secret"
WALLET = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
WSOL_MINT = "So11111111111111111111111111111111111111112"


def _client(handler) -> tuple[LedgerClient, list[dict]]:
    """LedgerClient whose transport calls handler(body) -> httpx.Response; records request bodies."""
    seen: list[dict] = []

    def _transport(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        seen.append(body)
        return handler(body)

    return LedgerClient(RPC_URL, transport=httpx.MockTransport(_transport)), seen


def _ok(body: dict, result) -> httpx.Response:
    return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})


def test_list_recent_signatures_request_and_order(tx_builder):
    items = [
        tx_builder.signature_item("newest", slot=300, block_time=1_700_000_300),
        tx_builder.signature_item("older", slot=200, block_time=None),
    ]
    client, seen = _client(lambda body: _ok(body, items))
    with client:
        sigs = client.list_recent_signatures(WALLET, limit=25)

    assert seen[0]["jsonrpc"] == "2.0"
    assert seen[0]["method"] == "getSignaturesForAddress"
    assert seen[0]["params"] == [WALLET, {"limit": 25}]
    assert [s.signature for s in sigs] == ["newest", "older"]
    assert sigs[0].slot == 300
    assert sigs[0].block_time == 1_700_000_300
    assert sigs[1].block_time is None


@pytest.mark.parametrize("result", [[], None])
def test_empty_signature_list_is_not_an_error(result):
    client, _ = _client(lambda body: _ok(body, result))
    assert client.list_recent_signatures(WALLET) == []


def test_signature_list_rpc_error_raises_unavailable():
    def handler(body):
        return httpx.Response(
            200,
            json={"jsonrpc": "2.0", "id": body["id"], "error": {"code": -32602, "message": "Invalid param"}},
        )

    client, _ = _client(handler)
    with pytest.raises(LedgerUnavailableError, match="Invalid param"):
        client.list_recent_signatures(WALLET)


def test_signature_list_transport_error_raises_unavailable():
    def handler(body):
        raise httpx.ConnectError("connection refused")

    client, _ = _client(handler)
    with pytest.raises(LedgerUnavailableError):
        client.list_recent_signatures(WALLET)


def test_signature_list_http_status_raises_unavailable():
    client, _ = _client(lambda body: httpx.Response(503, text="unavailable"))
    with pytest.raises(LedgerUnavailableError):
        client.list_recent_signatures(WALLET)


def test_get_transaction_params_and_parse(tx_builder):
    result = tx_builder.result(
        account_keys=[WALLET, "Wsol111111111111111111111111111111111111111"],
        logs=["Program log: Instruction: ClaimUser"],
        post_token=[tx_builder.token_balance(1, WSOL_MINT, WALLET, 1.5)],
        pre_balances=[10, 0],
        post_balances=[20, 0],
        slot=777,
        block_time=1_700_000_000,
    )
    client, seen = _client(lambda body: _ok(body, result))
    record = client.get_transaction("abc")

    assert seen[0]["method"] == "getTransaction"
    assert seen[0]["params"] == [
        "abc",
        {"encoding": "jsonParsed", "maxSupportedTransactionVersion": 0, "commitment": "confirmed"},
    ]
    assert record is not None
    assert record.signature == "abc"
    assert record.slot == 777
    assert record.account_keys == (WALLET, "Wsol111111111111111111111111111111111111111")
    assert record.log_messages == ("Program log: Instruction: ClaimUser",)
    assert record.post_token_balances[0].ui_amount == Decimal("1.5")
    assert record.post_balances == (20, 0)


def test_get_transaction_unavailable_cases(tx_builder):
    """RPC error, null result, missing meta and transport failure all yield None."""
    no_meta = tx_builder.result(account_keys=[WALLET])
    no_meta["meta"] = None

    responses = {
        "rpc-error": lambda body: httpx.Response(
            200, json={"jsonrpc": "2.0", "id": body["id"], "error": {"code": -32009, "message": "pruned"}}
        ),
        "null": lambda body: _ok(body, None),
        "no-meta": lambda body: _ok(body, no_meta),
    }

    def handler(body):
        sig = body["params"][0]
        if sig == "timeout":
            raise httpx.ReadTimeout("timed out")
        return responses[sig](body)

    client, _ = _client(handler)
    for sig in ("rpc-error", "null", "no-meta", "timeout"):
        assert client.get_transaction(sig) is None


def test_fetch_transaction_raw_raises_on_rpc_error():
    def handler(body):
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "error": {"code": 1, "message": "bad"}})

    client, _ = _client(handler)
    with pytest.raises(LedgerRPCError):
        client.fetch_transaction_raw("abc")


def test_request_ids_increment():
    client, seen = _client(lambda body: _ok(body, []))
    client.list_recent_signatures(WALLET)
    client.list_recent_signatures(WALLET)
    assert seen[1]["id"] == seen[0]["id"] + 1


def test_empty_rpc_url_rejected():
    with pytest.raises(ValueError):
        LedgerClient("  ")
