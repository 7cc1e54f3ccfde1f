import json

import httpx
import pytest
from fastapi.testclient import TestClient

from wallet_api.api.deps import get_collections_service, get_signature_verifier
from wallet_api.main import app
from wallet_api.services.cache import DURABILITY_SYNC, MemoryCache, TwoTierCache
from wallet_api.services.moralis import MoralisClient
from wallet_api.services.nft import MetadataEnricher, NftCollectionsService
from wallet_api.services.webhooks import MoralisSignatureVerifier, RejectAllVerifier, WebhookStore

from conftest import WALLET, DictPersistentCache, nft_record

PUNKS = "0xb47e3cd837ddf8e4c57f05d70ab865de6e193bbb"
APES = "0xbc4ca0eda7647a8ab7c2061c2e118a18a936f13d"
SECRET = "streams-secret"


async def no_sleep(delay):
    pass


class MoralisStub:
    """MockTransport handler standing in for the Moralis REST API."""

    def __init__(self):
        self.nft_status = 200
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append(path)

        if path.endswith("/metadata"):
            address = path.split("/")[-2]
            return httpx.Response(200, json={
                "token_address": address,
                "name": "CryptoPunks" if address == PUNKS else "",
                "symbol": "PUNK" if address == PUNKS else "",
                "contract_type": "ERC721",
                "synced_at": "2026-01-01T00:00:00.000Z",
            })

        if path.endswith("/nft"):
            if self.nft_status != 200:
                return httpx.Response(self.nft_status, json={"message": "upstream failure"})
            return httpx.Response(200, json={
                "result": [
                    nft_record(PUNKS, "1", name="Punks", symbol="PNK"),
                    nft_record(APES, "7", name="BoredApes", symbol="BAYC"),
                    nft_record(PUNKS, "2", name="Punks", symbol="PNK"),
                ],
                "cursor": "next-page",
            })

        return httpx.Response(404, json={"message": "not found"})

    def count(self, suffix):
        return sum(1 for path in self.requests if path.endswith(suffix))


@pytest.fixture
def moralis_stub():
    return MoralisStub()


@pytest.fixture
def client(moralis_stub, session_factory, clock):
    moralis = MoralisClient(
        api_key="test-key",
        base_url="https://moralis.test/api/v2.2",
        transport=httpx.MockTransport(moralis_stub),
    )
    cache = TwoTierCache(
        MemoryCache(ttl_seconds=300, timer=clock.monotonic),
        DictPersistentCache(clock),
        durability_mode=DURABILITY_SYNC,
    )
    enricher = MetadataEnricher(
        moralis, cache, batch_size=10, batch_delay=0.5, sleep=no_sleep, retry_options={"sleep": no_sleep}
    )
    service = NftCollectionsService(
        moralis,
        enricher,
        WebhookStore(session_factory=session_factory),
        retry_options={"sleep": no_sleep},
    )

    app.dependency_overrides[get_collections_service] = lambda: service
    app.dependency_overrides[get_signature_verifier] = lambda: MoralisSignatureVerifier(SECRET)
    yield TestClient(app)
    app.dependency_overrides.clear()


def signed_post(client, payload, secret=SECRET):
    body = json.dumps(payload).encode()
    signature = MoralisSignatureVerifier(secret).expected_signature(body)
    return client.post(
        "/api/moralis/nft-collections",
        content=body,
        headers={"content-type": "application/json", "x-signature": signature},
    )


def webhook_payload(**overrides):
    payload = {
        "confirmed": True,
        "chainId": "0x1",
        "address": WALLET,
        "streamId": "stream-1",
        "collections": [{"collectionAddress": PUNKS, "name": "Pushed Punks", "count": 3}],
    }
    payload.update(overrides)
    return payload


def test_missing_address_is_rejected(client):
    response = client.get("/api/moralis/nft-collections")

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Missing wallet address parameter"}


def test_collections_from_api_are_grouped_and_enriched(client, moralis_stub):
    response = client.get("/api/moralis/nft-collections", params={"address": WALLET})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["source"] == "api"
    assert body["pagination"] == {"total": 2, "cursor": "next-page"}

    punks, apes = body["collections"]
    assert punks["collectionAddress"] == PUNKS
    assert punks["count"] == 2
    assert punks["name"] == "CryptoPunks"
    assert punks["symbol"] == "PUNK"
    assert punks["tokenType"] == "ERC721"
    # Empty metadata values keep the aggregated names
    assert apes["name"] == "BoredApes"
    assert apes["symbol"] == "BAYC"
    assert moralis_stub.count("/metadata") == 2


def test_metadata_is_cached_between_requests(client, moralis_stub):
    client.get("/api/moralis/nft-collections", params={"address": WALLET})
    client.get("/api/moralis/nft-collections", params={"address": WALLET})

    assert moralis_stub.count("/nft") == 2
    assert moralis_stub.count("/metadata") == 2


def test_recent_webhook_is_served_without_calling_moralis(client, moralis_stub):
    first = client.get("/api/moralis/nft-collections", params={"address": WALLET})
    assert first.json()["source"] == "api"
    requests_before = len(moralis_stub.requests)

    posted = signed_post(client, webhook_payload())
    assert posted.status_code == 200
    assert posted.json() == {"success": True}

    second = client.get("/api/moralis/nft-collections", params={"address": WALLET.lower()})

    body = second.json()
    assert body["source"] == "webhook"
    assert body["collections"] == webhook_payload()["collections"]
    assert body["pagination"] == {"total": 1, "cursor": None}
    assert len(moralis_stub.requests) == requests_before


def test_skip_cache_ignores_webhook_data(client, moralis_stub):
    signed_post(client, webhook_payload())

    response = client.get("/api/moralis/nft-collections", params={"address": WALLET, "skipCache": "true"})

    assert response.json()["source"] == "api"


def test_rate_limit_maps_to_429(client, moralis_stub):
    moralis_stub.nft_status = 429

    response = client.get("/api/moralis/nft-collections", params={"address": WALLET})

    assert response.status_code == 429
    assert response.json() == {
        "success": False,
        "error": "Rate limit exceeded. Please try again later.",
        "isRateLimited": True,
    }
    # First attempt plus three retries
    assert moralis_stub.count("/nft") == 4


def test_other_upstream_errors_map_to_500(client, moralis_stub):
    moralis_stub.nft_status = 500

    response = client.get("/api/moralis/nft-collections", params={"address": WALLET})

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Failed to fetch NFT collections"}
    assert moralis_stub.count("/nft") == 1


def test_webhook_without_signature_is_rejected(client):
    response = client.post("/api/moralis/nft-collections", json=webhook_payload())

    assert response.status_code == 401
    assert response.json()["error"] == "Missing webhook signature"


def test_webhook_with_wrong_signature_is_rejected(client):
    response = signed_post(client, webhook_payload(), secret="someone-else")

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid webhook signature"


def test_reject_all_verifier_refuses_signed_webhooks(client):
    app.dependency_overrides[get_signature_verifier] = lambda: RejectAllVerifier()

    response = signed_post(client, webhook_payload())

    assert response.status_code == 401


@pytest.mark.parametrize("overrides", [
    {"confirmed": False},
    {"chainId": None},
    {"address": None},
    {"chainId": "mainnet"},
    {"collections": "not-a-list"},
])
def test_incomplete_webhook_data_is_rejected(client, overrides):
    response = signed_post(client, webhook_payload(**overrides))

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Invalid webhook data"}


def test_decimal_chain_id_is_stored_as_hex(client):
    signed_post(client, webhook_payload(chainId="1"))

    response = client.get("/api/moralis/nft-collections", params={"address": WALLET, "chain": "0x1"})

    assert response.json()["source"] == "webhook"


def test_recent_webhook_without_collections_is_still_served(client, moralis_stub):
    payload = webhook_payload()
    del payload["collections"]
    assert signed_post(client, payload).status_code == 200

    response = client.get("/api/moralis/nft-collections", params={"address": WALLET})

    body = response.json()
    assert body["source"] == "webhook"
    assert body["collections"] == []
    assert body["pagination"] == {"total": 0, "cursor": None}
    assert moralis_stub.requests == []


def test_null_collections_are_accepted_as_empty(client, moralis_stub):
    posted = signed_post(client, webhook_payload(collections=None))

    assert posted.status_code == 200
    response = client.get("/api/moralis/nft-collections", params={"address": WALLET})
    assert response.json()["source"] == "webhook"
    assert response.json()["collections"] == []
    assert moralis_stub.requests == []


@pytest.mark.parametrize("limit", ["abc", "0", "1e3"])
def test_invalid_limit_is_rejected(client, moralis_stub, limit):
    response = client.get("/api/moralis/nft-collections", params={"address": WALLET, "limit": limit})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Invalid limit parameter"}
    assert moralis_stub.requests == []


def test_numeric_limit_is_accepted(client, moralis_stub):
    response = client.get("/api/moralis/nft-collections", params={"address": WALLET, "limit": "20"})

    assert response.status_code == 200
    assert response.json()["source"] == "api"
