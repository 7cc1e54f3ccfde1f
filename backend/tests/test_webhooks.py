import json

import httpx
import pytest
from fastapi.testclient import TestClient
from web3 import Web3

from wallet_api.api.deps import get_defillama_client, get_signature_verifier
from wallet_api.main import app
from wallet_api.services.defillama import DefiLlamaClient
from wallet_api.services.webhooks import (
    MoralisSignatureVerifier,
    RejectAllVerifier,
    WebhookStore,
    build_verifier,
)

from conftest import WALLET


def test_moralis_signature_matches_keccak_of_body_and_secret():
    body = b'{"confirmed":true}'
    verifier = MoralisSignatureVerifier("secret")
    expected = Web3.keccak(text='{"confirmed":true}secret').hex()

    assert verifier.verify(body, expected)
    assert verifier.verify(body, verifier.expected_signature(body).upper().replace("0X", "0x"))
    assert not verifier.verify(body + b" ", expected)
    assert not verifier.verify(body, "0xdeadbeef")


def test_build_verifier_without_secret_rejects_everything():
    verifier = build_verifier(None)

    assert isinstance(verifier, RejectAllVerifier)
    assert verifier.verify(b"{}", "anything") is False
    assert isinstance(build_verifier("s"), MoralisSignatureVerifier)


def test_webhook_store_returns_newest_recent_push(session_factory, clock):
    store = WebhookStore(session_factory=session_factory, clock=clock.now)

    store.record("0x1", WALLET, [{"name": "old"}], "s1", {})
    clock.advance(10)
    store.record("0x1", WALLET, [{"name": "new"}], "s1", {})

    record = store.latest_recent("0x1", WALLET.lower(), max_age_seconds=300)
    assert record.collections == [{"name": "new"}]
    assert record.address == WALLET.lower()

    assert store.latest_recent("0x89", WALLET, max_age_seconds=300) is None

    clock.advance(301)
    assert store.latest_recent("0x1", WALLET, max_age_seconds=300) is None


@pytest.fixture
def streams_client():
    app.dependency_overrides[get_signature_verifier] = lambda: MoralisSignatureVerifier("secret")
    yield TestClient(app)
    app.dependency_overrides.clear()


def post_stream_event(client, event, secret="secret"):
    body = json.dumps(event).encode()
    return client.post(
        "/api/moralis/streams/webhook",
        content=body,
        headers={"x-signature": MoralisSignatureVerifier(secret).expected_signature(body)},
    )


def test_stream_event_counts_confirmed_activity(streams_client):
    response = post_stream_event(streams_client, {
        "confirmed": True,
        "streamId": "s1",
        "txs": [{"hash": "0x1"}, {"hash": "0x2"}],
        "erc20Transfers": [{}],
        "nftTransfers": [],
    })

    assert response.status_code == 200
    assert response.json()["processed"] == {"transactions": 2, "tokenTransfers": 1, "nftTransfers": 0}


def test_unconfirmed_stream_event_is_acknowledged(streams_client):
    response = post_stream_event(streams_client, {"confirmed": False, "txs": [{}]})

    assert response.json() == {"success": True, "message": "Unconfirmed event received, not processed"}


def test_stream_event_with_bad_signature(streams_client):
    response = post_stream_event(streams_client, {"confirmed": True}, secret="wrong")

    assert response.status_code == 401


def test_defillama_prices_route():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.url.host, request.url.path))
        return httpx.Response(200, json={"coins": {"ethereum:0xabc": {"price": 1.0}}})

    client = DefiLlamaClient(
        base_url="https://api.llama.test",
        coins_url="https://coins.llama.test",
        transport=httpx.MockTransport(handler),
    )
    app.dependency_overrides[get_defillama_client] = lambda: client
    try:
        api = TestClient(app)
        missing = api.get("/api/defillama/prices")
        response = api.get("/api/defillama/prices", params={"coins": "ethereum:0xabc, coingecko:ethereum"})
    finally:
        app.dependency_overrides.clear()

    assert missing.status_code == 400
    assert response.json()["data"]["coins"]["ethereum:0xabc"]["price"] == 1.0
    assert seen == [("coins.llama.test", "/prices/current/ethereum:0xabc,coingecko:ethereum")]


def test_defillama_upstream_failure_maps_to_502():
    client = DefiLlamaClient(
        base_url="https://api.llama.test",
        transport=httpx.MockTransport(lambda request: httpx.Response(500)),
    )
    app.dependency_overrides[get_defillama_client] = lambda: client
    try:
        response = TestClient(app).get("/api/defillama/protocol/aave")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 502
    assert response.json()["error"] == "DefiLlama API error: 500 Internal Server Error"
