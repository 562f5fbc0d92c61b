"""
Tests for the addon HTTP endpoints
"""
import json
from urllib.parse import quote

import requests

CONFIG = {"portalUrl": "http://x.com/c", "mac": "00:1A:79:00:00:01", "deviceType": "MAG250"}


def config_segment(config=None):
    return quote(json.dumps(config or CONFIG), safe="")


class TestManifest:
    """Tests for the manifest endpoints"""

    def test_manifest(self, client):
        response = client.get("/manifest.json")
        assert response.status_code == 200
        data = response.json
        assert data["id"] == "org.stremio.stalker.emulator"
        assert data["idPrefixes"] == ["stalker:"]
        assert {c["id"] for c in data["catalogs"]} == {"live", "vod", "series"}
        assert data["behaviorHints"]["configurationRequired"] is True
        assert [field["key"] for field in data["config"]] == ["portalUrl", "mac", "deviceType", "username", "password"]

    def test_configured_manifest(self, client):
        response = client.get(f"/{config_segment()}/manifest.json")
        assert response.status_code == 200
        assert response.json["behaviorHints"]["configurationRequired"] is False

    def test_cors_header(self, client):
        response = client.get("/manifest.json", headers={"Origin": "https://web.example.com"})
        assert response.headers.get("Access-Control-Allow-Origin") in ("*", "https://web.example.com")


class TestCatalogRoute:
    """Tests for /<config>/catalog/<type>/<id>.json"""

    def test_live_catalog(self, client, fake_portal):
        fake_portal.on("get_all_channels", {"data": [{"id": 7, "name": "Chan7"}]})

        response = client.get(f"/{config_segment()}/catalog/tv/live.json")

        assert response.status_code == 200
        metas = response.json["metas"]
        assert metas[0]["id"] == "stalker:tv:7"
        assert metas[0]["type"] == "tv"
        assert metas[0]["genres"] == ["General"]

    def test_unknown_catalog(self, client, fake_portal):
        response = client.get(f"/{config_segment()}/catalog/movie/live.json")

        assert response.status_code == 200
        assert response.json == {"metas": []}

    def test_listing_failure_degrades_to_empty(self, client, fake_portal):
        fake_portal.on("get_ordered_list", error=requests.exceptions.Timeout("timed out"))

        response = client.get(f"/{config_segment()}/catalog/series/series.json")

        assert response.status_code == 200
        assert response.json == {"metas": []}

    def test_credentials_with_percent_sequences_reach_portal_unchanged(self, client, fake_portal):
        fake_portal.on("get_all_channels", {"data": []})
        config = dict(CONFIG, username="user", password="ab%41cd")

        response = client.get(f"/{config_segment(config)}/catalog/tv/live.json")

        assert response.status_code == 200
        params = fake_portal.calls_for("get_profile")[0]["params"]
        assert params["login"] == "user"
        assert params["password"] == "ab%41cd"

    def test_oversized_device_type_rejected(self, client, fake_portal):
        config = dict(CONFIG, deviceType="M" * 51)

        response = client.get(f"/{config_segment(config)}/catalog/tv/live.json")

        assert response.status_code == 400
        assert "deviceType" in response.json["details"]
        assert fake_portal.calls == []

    def test_invalid_config(self, client, fake_portal):
        response = client.get(f"/{config_segment({'portalUrl': 'http://x.com/c'})}/catalog/tv/live.json")

        assert response.status_code == 400
        assert response.json["success"] is False
        assert "mac" in response.json["details"]
        assert fake_portal.calls == []

    def test_authentication_failure(self, client, fake_portal):
        fake_portal.on("handshake", error=requests.exceptions.ConnectionError("refused"))

        response = client.get(f"/{config_segment()}/catalog/tv/live.json")

        assert response.status_code == 502
        assert response.json["success"] is False
        assert response.json["details"]["step"] == "handshake"


class TestMetaRoute:
    def test_tv_meta(self, client, fake_portal):
        fake_portal.on("get_short_epg", {"epg": [{"start": "10:00", "name": "News"}]})

        response = client.get(f"/{config_segment()}/meta/tv/stalker:tv:7.json")

        assert response.status_code == 200
        assert response.json["meta"]["description"] == "10:00 - News"

    def test_invalid_id(self, client, fake_portal):
        response = client.get(f"/{config_segment()}/meta/movie/tt0133093.json")

        assert response.status_code == 400


class TestStreamRoute:
    def test_tv_stream(self, client, fake_portal):
        fake_portal.on("create_link", {"cmd": "ffmpeg http://host/stream.ts"})

        response = client.get(f"/{config_segment()}/stream/tv/stalker:tv:7.json")

        assert response.status_code == 200
        streams = response.json["streams"]
        assert streams == [
            {
                "url": "http://host/stream.ts",
                "title": "MAG250 Stream",
                "behaviorHints": {"notWebReady": False, "proxyHeaders": {"request": {}}},
            }
        ]

    def test_series_stream_with_query_selection(self, client, fake_portal):
        fake_portal.on("get_seasons", {"data": [{"episodes": [{"cmd": "movie55"}]}, {"episodes": [{"cmd": "movie60"}]}]})
        fake_portal.on("create_link", {"cmd": "http://host/ep.mp4"})

        response = client.get(f"/{config_segment()}/stream/series/stalker:series:12.json?season=2&episode=1")

        assert response.status_code == 200
        assert response.json["streams"][0]["url"] == "http://host/ep.mp4"
        assert fake_portal.calls_for("create_link")[0]["params"]["cmd"] == "movie60"

    def test_stream_failure_returns_empty(self, client, fake_portal):
        fake_portal.on("create_link", {"cmd": None})

        response = client.get(f"/{config_segment()}/stream/tv/stalker:tv:7.json")

        assert response.status_code == 200
        assert response.json == {"streams": []}

    def test_invalid_selection(self, client, fake_portal):
        response = client.get(f"/{config_segment()}/stream/series/stalker:series:12.json?season=0")

        assert response.status_code == 400
