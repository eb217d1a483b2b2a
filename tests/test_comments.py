from bson import ObjectId


def test_list_comments_pages_are_reversed(client, api):
    owner = api.register("maker")
    fan = api.register("fan")
    video_id = api.publish(owner)
    for i in range(5):
        api.comment(fan, video_id, content=f"c{i}")

    data = client.get(f"/api/v1/comments/{video_id}", params={"page": "1", "limit": "2"}).json()["data"]
    assert [c["content"] for c in data["videoComments"]] == ["c1", "c0"]
    assert data["totalDocs"] == 5
    assert data["count"] == 2
    assert data["totalPages"] == 3
    assert data["currentPage"] == 1
    assert data["nextPage"] == 2
    assert data["prevPage"] is None
    assert data["hasNextPage"] is True
    assert data["hasPrevPage"] is False
    assert data["pagingCounter"] == 1
    owner_info = data["videoComments"][0]["owner"]
    assert owner_info == {"username": "fan", "full_name": "Fan", "avatar": owner_info["avatar"]}

    last = client.get(f"/api/v1/comments/{video_id}", params={"page": "3", "limit": "2"}).json()["data"]
    assert [c["content"] for c in last["videoComments"]] == ["c4"]
    assert last["hasNextPage"] is False
    assert last["nextPage"] is None
    assert last["prevPage"] == 2
    assert last["pagingCounter"] == 5


def test_comments_on_missing_video(client, api):
    fan = api.register("fan")
    missing = str(ObjectId())
    assert client.get(f"/api/v1/comments/{missing}").status_code == 404
    resp = client.post(f"/api/v1/comments/{missing}", json={"content": "hi"}, headers=api.headers(fan))
    assert resp.status_code == 404


def test_add_comment_requires_content(client, api):
    owner = api.register("maker")
    video_id = api.publish(owner)
    resp = client.post(f"/api/v1/comments/{video_id}", json={"content": "   "}, headers=api.headers(owner))
    assert resp.status_code == 400
    resp = client.post(f"/api/v1/comments/{video_id}", json={}, headers=api.headers(owner))
    assert resp.status_code == 400


def test_update_and_delete_are_owner_gated(client, api, db):
    owner = api.register("maker")
    fan = api.register("fan")
    video_id = api.publish(owner)
    comment_id = api.comment(fan, video_id, content="original")
    cid = ObjectId(comment_id)

    resp = client.patch(f"/api/v1/comments/c/{comment_id}", json={"content": "edited"}, headers=api.headers(owner))
    assert resp.status_code == 403
    assert db["comment"].find_one({"_id": cid})["content"] == "original"
    assert client.delete(f"/api/v1/comments/c/{comment_id}", headers=api.headers(owner)).status_code == 403

    resp = client.patch(f"/api/v1/comments/c/{comment_id}", json={"content": "edited"}, headers=api.headers(fan))
    assert resp.status_code == 200
    assert resp.json()["data"]["content"] == "edited"

    client.post(f"/api/v1/likes/toggle/c/{comment_id}", headers=api.headers(owner))
    assert client.delete(f"/api/v1/comments/c/{comment_id}", headers=api.headers(fan)).status_code == 200
    assert db["comment"].count_documents({"_id": cid}) == 0
    assert db["like"].count_documents({"target_id": cid}) == 0
    assert client.delete(f"/api/v1/comments/c/{comment_id}", headers=api.headers(fan)).status_code == 404
