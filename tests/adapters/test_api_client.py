from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING

import httpx
import pytest

from artimport.adapters.api import PublicArtApiClient
from artimport.adapters.http_resilience import ResilientClient
from artimport.config import ImportConfig, MissingConfigurationError, get_api_config
from artimport.domain.errors import ApiError
from artimport.domain.model import CanonicalRecord, Location, NewArtist

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from artimport.config import ResilienceConfig

    Handler = Callable[[httpx.Request], httpx.Response]


def _make_client_factory(handler: Handler) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(  # noqa: SLF001
            base_url="https://api.test", transport=httpx.MockTransport(async_handler)
        )
        return client

    return factory


def _run[T](
    handler: Handler,
    call: Callable[[PublicArtApiClient], Awaitable[T]],
    *,
    admin_token: str | None = None,
) -> T:
    config = ImportConfig(
        api_endpoint="https://api.test", token="import-token", admin_token=admin_token
    )

    async def scenario() -> T:
        async with PublicArtApiClient(
            config=get_api_config(config), client_factory=_make_client_factory(handler)
        ) as api:
            return await call(api)

    return asyncio.run(scenario())


RECORD = CanonicalRecord(
    external_id="osm-node-1",
    location=Location(lat=49.28, lon=-123.12),
    title="Digital Orca",
    source="openstreetmap",
    artists=("Douglas Coupland",),
    tags={"material": "aluminium"},
    photos=("https://images.test/orca.jpg",),
    description="Pixelated whale",
)


def test_nearby_parses_artworks_and_tags() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "data": {
                    "artworks": [
                        {
                            "id": "a1",
                            "lat": 49.2801,
                            "lon": -123.1201,
                            "title": "Orca",
                            "tags": json.dumps({"external_id": "osm-node-1", "nested": {"x": 1}}),
                        }
                    ]
                }
            },
        )

    artworks = _run(handler, lambda api: api.nearby(Location(lat=49.28, lon=-123.12), 50.0))

    assert [artwork.id for artwork in artworks] == ["a1"]
    assert artworks[0].tags == {"external_id": "osm-node-1"}
    request = seen[0]
    assert request.url.path == "/api/artworks/nearby"
    assert request.url.params["radius"] == "50.0"
    assert request.url.params["lat"] == "49.28"


def test_find_by_normalized_name_filters_search_results() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/artists"
        assert request.url.params["search"] == "coupland"
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": {
                    "items": [
                        {"id": "1", "name": "Douglas Coupland"},
                        {"id": "2", "name": "Douglas Coupland Studio"},
                    ]
                },
            },
        )

    artists = _run(handler, lambda api: api.find_by_normalized_name("douglas coupland"))

    assert [artist.id for artist in artists] == ["1"]


def test_find_by_tokens_merges_searches() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        items = {
            "douglas": [{"id": "1", "name": "Douglas Coupland"}],
            "coupland": [
                {"id": "1", "name": "Douglas Coupland"},
                {"id": "3", "name": "Jane Coupland"},
            ],
        }[request.url.params["search"]]
        return httpx.Response(200, json={"data": {"items": items}})

    artists = _run(handler, lambda api: api.find_by_tokens(["douglas", "coupland"]))

    assert [artist.id for artist in artists] == ["1", "3"]


def test_submit_sends_mass_import_body() -> None:
    bodies: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == "/api/mass-import"
        assert request.headers["Authorization"] == "Bearer import-token"
        bodies.append(json.loads(request.content))
        return httpx.Response(
            200, json={"success": True, "data": {"artwork_id": "new-1", "status": "pending"}}
        )

    receipt = _run(handler, lambda api: api.submit(RECORD, artist_ids=["artist-9"]))

    assert receipt.artwork_id == "new-1"
    assert receipt.status == "pending"
    body = bodies[0]
    assert body["user_uuid"] == "import-token"
    artwork = body["artwork"]
    assert isinstance(artwork, dict)
    assert artwork["title"] == "Digital Orca"
    assert artwork["photos"] == [{"url": "https://images.test/orca.jpg"}]
    assert artwork["created_by"] == "Douglas Coupland"
    assert artwork["artist_ids"] == ["artist-9"]
    logbook = body["logbook"]
    assert isinstance(logbook, list)
    labels = {tag["label"]: tag["value"] for tag in logbook[0]["tags"]}
    assert labels == {
        "material": "aluminium",
        "external_id": "osm-node-1",
        "source": "openstreetmap",
    }


def test_server_error_is_transient() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"success": False, "error": "maintenance"})

    with pytest.raises(ApiError) as exc:
        _run(handler, lambda api: api.submit(RECORD))

    assert exc.value.transient
    assert exc.value.status_code == 503
    assert "maintenance" in str(exc.value)


def test_client_error_is_permanent() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"message": "lat is required"})

    with pytest.raises(ApiError) as exc:
        _run(handler, lambda api: api.submit(RECORD))

    assert not exc.value.transient
    assert "lat is required" in str(exc.value)


def test_unsuccessful_envelope_is_rejected() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": False, "message": "duplicate submission"})

    with pytest.raises(ApiError, match="duplicate submission") as exc:
        _run(handler, lambda api: api.submit(RECORD))

    assert not exc.value.transient


def test_network_failure_is_transient() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ApiError) as exc:
        _run(handler, lambda api: api.health())

    assert exc.value.transient


def test_create_artist_posts_source_tags() -> None:
    bodies: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"success": True, "data": {"id": "artist-1", "name": "x"}})

    artist = NewArtist(
        name="Bill Reid",
        source="vancouver-mass-import",
        tags={"country": "Canada"},
        source_data={"external_id": "42", "original_name": "Bill Reid"},
    )

    artist_id = _run(handler, lambda api: api.create_artist(artist))

    assert artist_id == "artist-1"
    assert bodies[0]["name"] == "Bill Reid"
    assert bodies[0]["tags"] == {
        "country": "Canada",
        "source": "vancouver-mass-import",
        "source_external_id": "42",
        "original_name": "Bill Reid",
    }


def test_approve_requires_admin_token() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    with pytest.raises(MissingConfigurationError):
        _run(handler, lambda api: api.approve(["s1"]))


def test_approve_sends_batch_with_admin_token() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "PUT"
        assert request.headers["Authorization"] == "Bearer admin-token"
        body = json.loads(request.content)
        assert body == {
            "submissions": [{"id": "s1", "action": "approve"}, {"id": "s2", "action": "approve"}]
        }
        return httpx.Response(
            200,
            json={
                "success": True,
                "results": {
                    "approved": 1,
                    "rejected": 0,
                    "errors": [{"submission_id": "s2", "error": "already approved"}],
                },
            },
        )

    outcome = _run(handler, lambda api: api.approve(["s1", "s2"]), admin_token="admin-token")

    assert outcome.approved == 1
    assert [error.submission_id for error in outcome.errors] == ["s2"]


def test_fetch_pending_falls_back_to_import_token() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer import-token"
        assert request.url.params["status"] == "pending"
        return httpx.Response(
            200,
            json={
                "data": {
                    "submissions": [
                        {"id": "s1", "tags": '{"source": "osm"}', "user_token": "import-token"}
                    ]
                }
            },
        )

    pending = _run(handler, lambda api: api.fetch_pending(limit=10))

    assert [item.id for item in pending] == ["s1"]
    assert pending[0].tags == '{"source": "osm"}'


def test_health() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/health"
        return httpx.Response(200, json={"status": "healthy", "version": "1.4.0"})

    health = _run(handler, lambda api: api.health())

    assert health.status == "healthy"
    assert health.version == "1.4.0"


def test_client_outside_context_manager_fails() -> None:
    api = PublicArtApiClient(config=get_api_config(ImportConfig()))

    with pytest.raises(RuntimeError, match="async with"):
        asyncio.run(api.health())
