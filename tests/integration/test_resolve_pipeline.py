"""End-to-end resolution through the real addon app with mocked upstreams.

Cinemeta and the DigiMovie API are mocked with respx; everything in
between (router, use case, ProviderClient, SessionManager, matcher,
extractor, relay rewrite) is the real wiring from composition.py.
"""

from __future__ import annotations

import base64
import json
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from digiscout.infrastructure.config import AppConfig
from digiscout.interfaces.app import create_app, create_gateway_app

pytestmark = pytest.mark.integration

_API = "https://digi.test/api/app/v1"
_META = "https://cinemeta.test"


def _config(**relay: object) -> AppConfig:
    return AppConfig.model_validate(
        {
            "provider": {"base_host": "digi.test"},
            "metadata": {"base_url": _META},
            "relay": relay or {"enabled": False},
        }
    )


def _user_config(user: str = "alice", password: str = "s3cret") -> str:
    raw = json.dumps({"digiUser": user, "digiPass": password}).encode()
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def _mock_login(respx_mock: respx.MockRouter, *tokens: str) -> respx.Route:
    responses = [
        httpx.Response(200, json={"status": True, "auth_token": t}) for t in tokens
    ]
    return respx_mock.post(f"{_API}/login").mock(side_effect=responses)


def _mock_search(respx_mock: respx.MockRouter, items: list[dict]) -> respx.Route:
    return respx_mock.post(f"{_API}/adv_search_movies").respond(
        json={"status": True, "result": {"total_items": len(items), "items": items}}
    )


class TestMovieResolution:
    def test_inception(self, respx_mock: respx.MockRouter) -> None:
        respx_mock.get(f"{_META}/meta/movie/tt1375666.json").respond(
            json={"meta": {"name": "Inception (2010)"}}
        )
        _mock_login(respx_mock, "AT-1")
        search = _mock_search(
            respx_mock,
            [
                {"id": 12, "title_en": "Inception: The Cobol Job", "type": "serie"},
                {"id": 11, "title_en": "Inception", "type": "movie"},
            ],
        )
        detail = respx_mock.get(f"{_API}/get_movie_detail").respond(
            json={
                "status": True,
                "movie_download_urls": [
                    {"file": "https://cdn.digi.test/inc.mkv", "quality": "1080p"},
                ],
            }
        )

        with TestClient(create_app(_config())) as client:
            resp = client.get(
                f"/api/v1/stremio/{_user_config()}/stream/movie/tt1375666.json"
            )

        assert resp.json() == {
            "streams": [
                {"title": "[DigiMovie] 1080p", "url": "https://cdn.digi.test/inc.mkv"}
            ]
        }
        assert json.loads(search.calls.last.request.content)["adv_s"] == "Inception"
        request = detail.calls.last.request
        assert request.url.params["movie_id"] == "11"
        assert request.headers["authorization"] == "AT-1"

    def test_relay_rewrite(self, respx_mock: respx.MockRouter) -> None:
        respx_mock.get(f"{_META}/meta/movie/tt1375666.json").respond(
            json={"meta": {"name": "Inception"}}
        )
        _mock_login(respx_mock, "AT-1")
        _mock_search(respx_mock, [{"id": 11, "title_en": "Inception", "type": "movie"}])
        respx_mock.get(f"{_API}/get_movie_detail").respond(
            json={
                "status": True,
                "movie_download_urls": [{"file": "https://cdn.digi.test/a b.mkv"}],
            }
        )
        config = _config(
            enabled=True,
            public_url="https://relay.test",
            allowed_domains=["cdn.digi.test"],
        )

        with TestClient(create_app(config)) as client:
            resp = client.get(
                f"/api/v1/stremio/{_user_config()}/stream/movie/tt1375666.json"
            )

        url = resp.json()["streams"][0]["url"]
        parts = urlsplit(url)
        assert f"{parts.scheme}://{parts.netloc}{parts.path}" == "https://relay.test/proxy"
        assert parse_qs(parts.query)["url"] == ["https://cdn.digi.test/a b.mkv"]

    def test_expired_token_relogin(self, respx_mock: respx.MockRouter) -> None:
        respx_mock.get(f"{_META}/meta/movie/tt1375666.json").respond(
            json={"meta": {"name": "Inception"}}
        )
        login = _mock_login(respx_mock, "AT-old", "AT-new")
        _mock_search(respx_mock, [{"id": 11, "title_en": "Inception", "type": "movie"}])
        detail = respx_mock.get(f"{_API}/get_movie_detail").mock(
            side_effect=[
                httpx.Response(401),
                httpx.Response(
                    200,
                    json={"status": True, "movie_download_urls": [{"file": "u"}]},
                ),
            ]
        )

        with TestClient(create_app(_config())) as client:
            resp = client.get(
                f"/api/v1/stremio/{_user_config()}/stream/movie/tt1375666.json"
            )

        assert [s["url"] for s in resp.json()["streams"]] == ["u"]
        assert login.call_count == 2
        assert detail.calls.last.request.headers["authorization"] == "AT-new"


class TestSeriesResolution:
    def test_season_episode(self, respx_mock: respx.MockRouter) -> None:
        respx_mock.get(f"{_META}/meta/series/tt0903747.json").respond(
            json={"meta": {"name": "Breaking Bad"}}
        )
        _mock_login(respx_mock, "AT-1")
        _mock_search(
            respx_mock, [{"id": 30, "title_en": "Breaking Bad", "type": "serie"}]
        )
        respx_mock.get(f"{_API}/get_movie_detail").respond(
            json={
                "status": True,
                "serie_download_urls": [
                    {
                        "season_name": "Season : 2",
                        "quality": "720p",
                        "links": [{"movie": f"https://cdn.digi.test/s2e{i}"} for i in (1, 2, 3)],
                    }
                ],
            }
        )

        with TestClient(create_app(_config())) as client:
            resp = client.get(
                f"/api/v1/stremio/{_user_config()}/stream/series/tt0903747:2:3.json"
            )

        assert resp.json() == {
            "streams": [{"title": "[DigiMovie] 720p", "url": "https://cdn.digi.test/s2e3"}]
        }


class TestFailures:
    def test_bad_credentials(self, respx_mock: respx.MockRouter) -> None:
        respx_mock.get(f"{_META}/meta/movie/tt1375666.json").respond(
            json={"meta": {"name": "Inception"}}
        )
        respx_mock.post(f"{_API}/login").respond(json={"status": False})
        search = respx_mock.post(f"{_API}/adv_search_movies")

        with TestClient(create_app(_config())) as client:
            resp = client.get(
                f"/api/v1/stremio/{_user_config()}/stream/movie/tt1375666.json"
            )

        streams = resp.json()["streams"]
        assert len(streams) == 1
        assert streams[0]["url"] == ""
        assert not search.called

    def test_search_outage_returns_empty(self, respx_mock: respx.MockRouter) -> None:
        respx_mock.get(f"{_META}/meta/movie/tt1375666.json").respond(
            json={"meta": {"name": "Inception"}}
        )
        _mock_login(respx_mock, "AT-1")
        respx_mock.post(f"{_API}/adv_search_movies").mock(
            side_effect=httpx.ConnectTimeout("slow")
        )

        with TestClient(create_app(_config())) as client:
            resp = client.get(
                f"/api/v1/stremio/{_user_config()}/stream/movie/tt1375666.json"
            )

        assert resp.json() == {"streams": []}

    def test_validate_endpoint(self, respx_mock: respx.MockRouter) -> None:
        respx_mock.post(f"{_API}/login").respond(json={"status": False})

        with TestClient(create_app(_config())) as client:
            resp = client.post(
                "/api/v1/stremio/validate",
                json={"digiUser": "alice", "digiPass": "wrong"},
            )

        assert resp.json()["success"] is False


class TestGatewayRelay:
    def test_fetches_allowed_content(self, respx_mock: respx.MockRouter) -> None:
        respx_mock.get("https://cdn.digi.test/sub.vtt").respond(
            200, content=b"WEBVTT", headers={"content-type": "text/vtt"}
        )
        config = _config(
            enabled=True,
            public_url="https://relay.test",
            allowed_domains=["cdn.digi.test"],
            max_payload_bytes=16,
        )

        with TestClient(create_gateway_app(config)) as client:
            ok = client.get("/proxy", params={"url": "https://cdn.digi.test/sub.vtt"})
            denied = client.get("/proxy", params={"url": "https://evil.test/x"})

        assert ok.status_code == 200
        assert ok.content == b"WEBVTT"
        assert denied.status_code == 403

    def test_oversized_content(self, respx_mock: respx.MockRouter) -> None:
        respx_mock.get("https://cdn.digi.test/big").respond(200, content=b"x" * 64)
        config = _config(
            enabled=True,
            public_url="https://relay.test",
            allowed_domains=["cdn.digi.test"],
            max_payload_bytes=16,
        )

        with TestClient(create_gateway_app(config)) as client:
            resp = client.get("/proxy", params={"url": "https://cdn.digi.test/big"})

        assert resp.status_code == 413
