from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from tokenledger.runtime.executor import TokenExecutor
from tokenledger.testing.sigtools import account_id, make_tx

ALICE = account_id("alice")
BOB = account_id("bob")


class _FakeExecutor(SimpleNamespace):
    """Minimal executor stub for API lifecycle tests."""


@pytest.fixture
def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    from tokenledger.api import app as api_app

    ex = TokenExecutor(db_path=str(tmp_path / "api.db"), chain_id="tokenledger-test")
    monkeypatch.setattr(api_app, "build_executor", lambda: ex)
    return TestClient(api_app.create_app(boot_runtime=True))


def _mint(client: TestClient) -> dict:
    tx = make_tx("TOKEN_MINT", label="alice", payload={"name": "Tok", "ticker": "TOK", "supply": 100})
    r = client.post("/v1/tx/submit", json=tx)
    assert r.status_code == 200, r.text
    return r.json()


def test_create_app_boot_runtime_false_does_not_attach_executor() -> None:
    from tokenledger.api.app import create_app

    app = create_app(boot_runtime=False)
    assert getattr(app.state, "executor", None) is None

    with TestClient(app) as c:
        assert c.get("/v1/health").json() == {"ok": True, "ready": False}
        r = c.get("/v1/token")
        assert r.status_code == 500
        assert r.json()["error"]["code"] == "not_ready"


def test_create_app_boot_runtime_true_attaches_executor(monkeypatch: pytest.MonkeyPatch) -> None:
    from tokenledger.api import app as api_app

    monkeypatch.setattr(api_app, "build_executor", lambda: _FakeExecutor(chain_id="tokenledger-test"))

    app = api_app.create_app(boot_runtime=True)
    assert app.state.executor.chain_id == "tokenledger-test"


def test_submit_and_read_back(client: TestClient) -> None:
    out = _mint(client)
    assert out["ok"] is True
    assert out["seq"] == 1

    info = client.get("/v1/token").json()
    assert info["name"] == b"Tok".hex()
    assert info["ticker_utf8"] == "TOK"
    assert info["decimals"] == 18
    assert info["total_supply"] == 100
    assert info["minted"] is True
    assert info["holders"] == 1

    tx = make_tx("TOKEN_TRANSFER", label="alice", payload={"to": BOB, "value": 40})
    r = client.post("/v1/tx/submit", json=tx)
    assert r.status_code == 200
    assert r.json()["events"] == [{"event": "Transfer", "from": ALICE, "to": BOB, "value": 40}]

    assert client.get(f"/v1/token/balances/{BOB}").json()["balance"] == 40
    missing = client.get(f"/v1/token/balances/{account_id('nobody')}").json()
    assert missing["exists"] is False
    assert missing["balance"] is None


def test_query_result_is_returned(client: TestClient) -> None:
    _mint(client)
    r = client.post("/v1/tx/submit", json=make_tx("TOKEN_SYMBOL", label="bob"))
    assert r.status_code == 200
    assert r.json()["result"] == b"TOK".hex()


def test_allowance_endpoint(client: TestClient) -> None:
    _mint(client)
    client.post("/v1/tx/submit", json=make_tx("TOKEN_APPROVE", label="alice", payload={"to": BOB, "value": 9}))

    j = client.get(f"/v1/token/allowances/{ALICE}/{BOB}").json()
    assert j["allowance"] == 9
    assert j["exists"] is True
    assert client.get(f"/v1/token/allowances/{BOB}/{ALICE}").json()["exists"] is False


def test_rejections_map_to_http_status(client: TestClient) -> None:
    _mint(client)

    unsigned = make_tx("TOKEN_NAME", label="bob", sign=False)
    r = client.post("/v1/tx/submit", json=unsigned)
    assert r.status_code == 403
    assert r.json()["error"]["code"] == "bad_sig"

    r = client.post("/v1/tx/submit", json=make_tx("TOKEN_BALANCE_OF", label="bob"))
    assert r.status_code == 404
    err = r.json()["error"]
    assert err["code"] == "not_found"
    assert err["message"] == "NoValueStored"
    assert err["details"]["tx_id"]

    r = client.post("/v1/tx/submit", json=make_tx("TOKEN_TRANSFER", label="alice", payload={"to": BOB, "value": 1000}))
    assert r.status_code == 403
    assert r.json()["error"]["message"] == "NotEnoughFunds"

    again = make_tx("TOKEN_MINT", label="alice", payload={"name": "Tok", "ticker": "TOK", "supply": 100}, nonce=1)
    r = client.post("/v1/tx/submit", json=again)
    assert r.status_code == 400
    assert r.json()["error"]["message"] == "AlreadyMinted"

    r = client.post("/v1/tx/submit", json=make_tx("TOKEN_BURN", label="alice"))
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "unknown_tx"


def test_duplicate_submission_is_409(client: TestClient) -> None:
    tx = make_tx("TOKEN_MINT", label="alice", payload={"name": "Tok", "ticker": "TOK", "supply": 100})
    assert client.post("/v1/tx/submit", json=tx).status_code == 200
    r = client.post("/v1/tx/submit", json=tx)
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "duplicate_tx"


def test_malformed_body_is_422(client: TestClient) -> None:
    r = client.post("/v1/tx/submit", json={"tx_type": "TOKEN_NAME", "signer": ALICE, "nonce": "1"})
    assert r.status_code == 422
    r = client.post("/v1/tx/submit", json={"tx_type": "TOKEN_NAME", "signer": ALICE, "extra": 1})
    assert r.status_code == 422


def test_receipts(client: TestClient) -> None:
    out = _mint(client)

    r = client.get(f"/v1/tx/receipt/{out['tx_id']}")
    assert r.status_code == 200
    rec = r.json()["receipt"]
    assert rec["ok"] is True
    assert rec["tx_type"] == "TOKEN_MINT"
    assert rec["signer"] == ALICE

    assert client.get("/v1/tx/receipt/deadbeef").status_code == 404

    listing = client.get("/v1/tx/receipts", params={"signer": ALICE, "limit": "5"}).json()
    assert listing["count"] == 1
    assert listing["items"][0]["tx_id"] == out["tx_id"]


def test_health_reports_identity(client: TestClient) -> None:
    j = client.get("/v1/health").json()
    assert j["ready"] is True
    assert j["chain_id"] == "tokenledger-test"
    assert j["seq"] == 0
    assert j["minted"] is False
    assert "TOKEN_TRANSFER_FROM" in j["supported_tx_types"]
    assert len(j["canon_sha256"]) == 64


def test_metrics_endpoint_is_opt_in(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    assert client.get("/v1/metrics").status_code == 404

    monkeypatch.setenv("TOKENLEDGER_METRICS_ENABLED", "1")
    _mint(client)
    r = client.get("/v1/metrics")
    assert r.status_code == 200
    assert "# TYPE tokenledger_tx_applied_total counter" in r.text
    assert "tokenledger_ledger_seq 1" in r.text


def test_request_id_header(client: TestClient) -> None:
    r = client.get("/v1/health", headers={"x-request-id": "abc123"})
    assert r.headers.get("x-request-id") == "abc123"
