import cloudinary.uploader
import pytest
from fastapi import FastAPI

import main
from database import connect, create_document, paginate
from media import MediaHost, public_id_from_url
from settings import Settings


def test_root_and_database_check(client):
    assert client.get("/").json() == {"message": "Video Sharing Backend is running"}
    info = client.get("/test").json()
    assert info["database_connected"] is True


def test_cors_allows_only_configured_origin(client):
    allowed = client.options(
        "/api/v1/videos/",
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "GET"},
    )
    assert allowed.headers["access-control-allow-origin"] == "http://localhost:5173"
    assert allowed.headers["access-control-allow-credentials"] == "true"

    denied = client.options(
        "/api/v1/videos/",
        headers={"Origin": "http://evil.example", "Access-Control-Request-Method": "GET"},
    )
    assert "access-control-allow-origin" not in denied.headers


def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/api/v1/nothing-here")
    assert resp.status_code == 404
    assert resp.json() == {"statusCode": 404, "message": "Not Found"}


def test_missing_connection_string_is_fatal():
    with pytest.raises(SystemExit) as excinfo:
        connect(Settings(mongodb_uri=None))
    assert excinfo.value.code == 1


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("MONGODB_URI", "mongodb://db:27017")
    monkeypatch.setenv("PORT", "9001")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    settings = Settings.from_env()
    assert settings.mongodb_uri == "mongodb://db:27017"
    assert settings.port == 9001
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize("url,expected", [
    ("http://res.cloudinary.com/demo/video/upload/v1712/abc123.mp4", "abc123"),
    ("http://res.cloudinary.com/demo/image/upload/v1/thumb.jpg", "thumb"),
    ("", None),
    (None, None),
])
def test_public_id_from_url(url, expected):
    assert public_id_from_url(url) == expected


def test_paginate_metadata(db):
    for i in range(25):
        create_document(db, "item", {"n": i})

    page = paginate(db, "item", {}, page=3, limit=10, sort=[("n", 1)])
    assert [d["n"] for d in page["docs"]] == list(range(20, 25))
    assert page["count"] == 5
    assert page["totalDocs"] == 25
    assert page["totalPages"] == 3
    assert page["hasNextPage"] is False
    assert page["prevPage"] == 2

    beyond = paginate(db, "item", {"n": {"$gte": 100}}, page=1, limit=10)
    assert beyond["docs"] == []
    assert beyond["totalPages"] == 0
    assert beyond["hasNextPage"] is False


def test_module_level_app_for_uvicorn():
    assert isinstance(main.app, FastAPI)
    assert main.app.state.db is None
    assert any(route.path == "/api/v1/videos/" for route in main.app.routes)


def test_remote_delete_passes_resource_type(monkeypatch, settings):
    calls = []

    def destroy(public_id, **options):
        calls.append((public_id, options))
        return {"result": "ok"}

    monkeypatch.setattr(cloudinary.uploader, "destroy", destroy)
    host = MediaHost(settings)
    assert host.delete_url("http://res.cloudinary.com/demo/video/upload/v1/clip9.mp4", resource_type="video") is True
    assert host.delete("thumb9") is True
    assert calls == [("clip9", {"resource_type": "video"}), ("thumb9", {"resource_type": "image"})]


def test_remote_delete_not_found_is_reported(monkeypatch, settings, caplog):
    monkeypatch.setattr(cloudinary.uploader, "destroy", lambda public_id, **options: {"result": "not found"})
    host = MediaHost(settings)
    with caplog.at_level("WARNING", logger="media"):
        assert host.delete("gone", resource_type="video") is False
    assert "not found" in caplog.text
