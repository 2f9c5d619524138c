"""Tests for the HTTP layer: routes, envelope and error mapping."""

import pytest
from fastapi.testclient import TestClient

from trackscout.api import create_app, error_from_exception, status_for, success_response
from trackscout.catalog import ArtistComplete, InMemoryCatalog, Playlist
from trackscout.errors import InvalidArgument, MissingParameter, NotFound, UpstreamFailure
from trackscout.search import SimilarityEngine
from trackscout.service import DiscoveryService

pytestmark = pytest.mark.integration


class BrokenCatalog(InMemoryCatalog):
    async def get_track(self, track_id):
        raise UpstreamFailure("connection refused by catalog at 10.0.0.5")


class ExplodingService(DiscoveryService):
    async def similar_tracks(self, *args, **kwargs):
        raise RuntimeError("secret internal detail")


@pytest.fixture
def catalog(toy_catalog):
    return InMemoryCatalog(
        tracks=toy_catalog.tracks,
        artists={"Band": ArtistComplete(name="Band", topTracks=[toy_catalog.tracks["A"]])},
        playlists={"p1": Playlist(id="p1", title="Mix", tracks=[toy_catalog.tracks["C"]])},
    )


@pytest.fixture
def client(toy_store, catalog, isolated_config):
    service = DiscoveryService(SimilarityEngine(toy_store), catalog, config=isolated_config)
    with TestClient(create_app(service=service, config=isolated_config)) as test_client:
        yield test_client


class TestSimilarRoute:
    def test_success_envelope(self, client):
        response = client.get("/api/music/tracks/A/similar", params={"threshold": "0.5", "limit": "10"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["count"] == 1
        result = body["data"]["results"][0]
        assert result["trackId"] == "C"
        assert result["track"]["videoId"] == "vid-c"

    def test_distance_metric(self, client):
        response = client.get("/api/music/tracks/A/similar", params={"metric": "euclidean", "threshold": "2"})
        body = response.json()
        assert [r["trackId"] for r in body["data"]["results"]] == ["C", "B"]

    def test_unknown_track_is_404(self, client):
        response = client.get("/api/music/tracks/nope/similar")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "NOT_FOUND"

    @pytest.mark.parametrize("params", [
        {"metric": "quantum"},
        {"limit": "0"},
        {"limit": "ten"},
        {"threshold": "high"},
        {"limit": "1000"},
    ])
    def test_bad_params_are_400(self, client, params):
        response = client.get("/api/music/tracks/A/similar", params=params)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_ARGUMENT"


class TestVectorSearchRoute:
    def test_success_envelope(self, client):
        response = client.post("/api/music/search/vector", json={"vector": [1.0, 0.0], "threshold": 0.5})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert [r["trackId"] for r in body["data"]["results"]] == ["A", "C"]
        assert body["data"]["results"][1]["track"]["videoId"] == "vid-c"

    def test_string_params_parse_like_query_params(self, client):
        response = client.post(
            "/api/music/search/vector",
            json={"vector": [0, 1], "metric": "manhattan", "threshold": "1.9", "limit": "5"},
        )
        assert [r["trackId"] for r in response.json()["data"]["results"]] == ["B", "C"]

    def test_missing_vector_is_400(self, client):
        response = client.post("/api/music/search/vector", json={"limit": 3})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "MISSING_PARAM"

    @pytest.mark.parametrize("payload", [
        {"vector": [1.0, 0.0, 0.0]},
        {"vector": ["x", "y"]},
        {"vector": [1.0, 0.0], "metric": "quantum"},
        {"vector": [1.0, 0.0], "limit": 2.5},
    ])
    def test_bad_payloads_are_400(self, client, payload):
        response = client.post("/api/music/search/vector", json=payload)

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "INVALID_ARGUMENT"

    def test_unparseable_body_is_400(self, client):
        response = client.post(
            "/api/music/search/vector",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_ARGUMENT"


class TestCatalogRoutes:
    def test_track(self, client):
        response = client.get("/api/music/tracks/A")
        assert response.status_code == 200
        assert response.json()["data"]["title"] == "Alpha"

    def test_track_not_found(self, client):
        assert client.get("/api/music/tracks/B").status_code == 404

    def test_artist_complete(self, client):
        response = client.get("/api/music/artists/complete", params={"artist": "band"})
        body = response.json()
        assert response.status_code == 200
        assert body["data"]["name"] == "Band"
        assert body["data"]["topTracks"][0]["id"] == "A"
        assert body["message"] == "Complete discography for Band"

    def test_artist_missing_param(self, client):
        response = client.get("/api/music/artists/complete")
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "MISSING_PARAM"

    def test_playlist(self, client):
        response = client.get("/api/music/playlists/p1")
        assert response.json()["data"]["trackCount"] == 1

    def test_playlist_not_found(self, client):
        response = client.get("/api/music/playlists/zzz")
        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Playlist not found"


class TestOperationalRoutes:
    def test_health(self, client):
        body = client.get("/health").json()
        assert body["data"]["status"] == "healthy"
        assert body["data"]["embeddings"] == 3

    def test_metrics(self, client):
        client.get("/api/music/tracks/A/similar")
        body = client.get("/api/music/metrics").json()
        assert body["data"]["embeddings"] == 3
        assert body["data"]["cache"]["misses"] >= 1


class TestFaultMapping:
    def test_upstream_failure_is_502_with_generic_message(self, toy_store, isolated_config):
        service = DiscoveryService(SimilarityEngine(toy_store), BrokenCatalog(), config=isolated_config)
        with TestClient(create_app(service=service)) as client:
            response = client.get("/api/music/tracks/A")

        assert response.status_code == 502
        error = response.json()["error"]
        assert error["code"] == "UPSTREAM_FAILURE"
        assert "10.0.0.5" not in error["message"]

    def test_unexpected_error_is_500_with_generic_message(self, toy_store, toy_catalog, isolated_config):
        service = ExplodingService(SimilarityEngine(toy_store), toy_catalog, config=isolated_config)
        with TestClient(create_app(service=service), raise_server_exceptions=False) as client:
            response = client.get("/api/music/tracks/A/similar")

        assert response.status_code == 500
        error = response.json()["error"]
        assert error == {"code": "INTERNAL_ERROR", "message": "Internal server error"}

    def test_misconfigured_default_metric_is_500(self, toy_store, toy_catalog, isolated_config):
        isolated_config.SCOUT_DEFAULT_METRIC = "quantum"
        service = DiscoveryService(SimilarityEngine(toy_store), toy_catalog, config=isolated_config)
        with TestClient(create_app(service=service)) as client:
            response = client.get("/api/music/tracks/A/similar")

        assert response.status_code == 500
        assert response.json()["error"] == {"code": "INTERNAL_ERROR", "message": "Internal server error"}


class TestResponses:
    def test_success_response(self):
        body = success_response({"x": 1}, message="ok")
        assert body["success"] is True
        assert body["data"] == {"x": 1}
        assert body["message"] == "ok"
        assert isinstance(body["timestamp"], int)

    @pytest.mark.parametrize("exc, status", [
        (MissingParameter("x"), 400),
        (InvalidArgument("x"), 400),
        (NotFound("x"), 404),
        (UpstreamFailure("x"), 502),
        (KeyError("x"), 500),
    ])
    def test_status_for(self, exc, status):
        assert status_for(exc) == status

    def test_client_errors_keep_their_message(self):
        body, status = error_from_exception(NotFound("Artist not found"))
        assert status == 404
        assert body["error"] == {"code": "NOT_FOUND", "message": "Artist not found"}
