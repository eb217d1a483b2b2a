import asyncio
import itertools
import json
import os

import mongomock
import pytest
from fastapi.testclient import TestClient

from main import create_app
from media import MediaAsset, MediaHost
from settings import Settings

_asset_ids = itertools.count(1)


def _in_event_loop():
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


class FakeMediaHost(MediaHost):
    """Media host that records calls instead of talking to Cloudinary."""

    def __init__(self, settings):
        super().__init__(settings)
        self.uploaded = []
        self.uploaded_on_loop = []
        self.deleted = []
        self.deleted_types = {}
        self.fail_uploads = False
        self.fail_deletes = False

    def upload(self, local_path):
        self.uploaded_on_loop.append(_in_event_loop())
        try:
            if self.fail_uploads:
                return None
            public_id = f"asset{next(_asset_ids)}"
            ext = local_path.rsplit(".", 1)[-1]
            self.uploaded.append(public_id)
            duration = 42.5 if ext == "mp4" else None
            return MediaAsset(
                url=f"http://res.cloudinary.com/demo/upload/v1/{public_id}.{ext}",
                public_id=public_id,
                duration=duration,
            )
        finally:
            os.remove(local_path)

    def delete(self, public_id, resource_type="image"):
        if self.fail_deletes:
            return False
        self.deleted.append(public_id)
        self.deleted_types[public_id] = resource_type
        return True


@pytest.fixture
def settings(tmp_path):
    return Settings(mongodb_uri=None, cors_origin="http://localhost:5173", upload_dir=str(tmp_path / "temp"))


@pytest.fixture
def db():
    return mongomock.MongoClient().db


@pytest.fixture
def media(settings):
    return FakeMediaHost(settings)


@pytest.fixture
def client(settings, db, media):
    app = create_app(settings, db=db, media=media)
    with TestClient(app) as c:
        yield c


class Api:
    """Shortcuts for the requests most tests need as setup."""

    def __init__(self, client):
        self.client = client

    @staticmethod
    def headers(user_id):
        return {"X-User-Id": user_id}

    def register(self, username, email=None, password="secret123", full_name=None):
        resp = self.client.post(
            "/api/v1/users/register",
            data={
                "fullName": full_name or username.title(),
                "email": email or f"{username}@example.com",
                "username": username,
                "password": password,
            },
            files={"avatar": ("avatar.png", b"png-bytes", "image/png")},
        )
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]["id"]

    def publish(self, user_id, title="My video", visibility="public", description="desc", playlist_ids=None):
        data = {"title": title, "description": description, "visibility": visibility}
        if playlist_ids is not None:
            data["playlistIds"] = json.dumps(playlist_ids)
        resp = self.client.post(
            "/api/v1/videos/",
            data=data,
            files={
                "videoFile": ("clip.mp4", b"video-bytes", "video/mp4"),
                "thumbnail": ("thumb.jpg", b"jpg-bytes", "image/jpeg"),
            },
            headers=self.headers(user_id),
        )
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]["id"]

    def playlist(self, user_id, name="Favorites", description="x"):
        resp = self.client.post(
            "/api/v1/playlists/",
            json={"name": name, "description": description},
            headers=self.headers(user_id),
        )
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]["id"]

    def tweet(self, user_id, content="hello"):
        resp = self.client.post("/api/v1/tweets/", json={"content": content}, headers=self.headers(user_id))
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]["id"]

    def comment(self, user_id, video_id, content="nice"):
        resp = self.client.post(f"/api/v1/comments/{video_id}", json={"content": content}, headers=self.headers(user_id))
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]["id"]


@pytest.fixture
def api(client):
    return Api(client)
