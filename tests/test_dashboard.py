from bson import ObjectId


def test_channel_stats(client, api, db):
    channel = api.register("creator")
    videos = [api.publish(channel, title=f"v{i}") for i in range(3)]
    for video_id, views in zip(videos, (5, 10, 0)):
        db["video"].update_one({"_id": ObjectId(video_id)}, {"$set": {"views": views}})

    subscribers = [api.register(f"sub{i}") for i in range(2)]
    for sub in subscribers:
        client.post(f"/api/v1/subscriptions/c/{channel}", headers=api.headers(sub))

    likers = subscribers + [api.register("lurker")]
    for liker in likers:
        client.post(f"/api/v1/likes/toggle/v/{videos[0]}", headers=api.headers(liker))
    client.post(f"/api/v1/likes/toggle/v/{videos[1]}", headers=api.headers(likers[0]))

    # likes elsewhere do not count towards this channel
    elsewhere = api.publish(likers[2], title="not ours")
    client.post(f"/api/v1/likes/toggle/v/{elsewhere}", headers=api.headers(likers[0]))

    resp = client.get(f"/api/v1/dashboard/stats/{channel}")
    assert resp.json()["data"] == {
        "totalVideos": 3,
        "totalViews": 15,
        "totalSubscribers": 2,
        "totalLikes": 4,
    }


def test_stats_for_empty_and_missing_channel(client, api):
    channel = api.register("creator")
    data = client.get(f"/api/v1/dashboard/stats/{channel}").json()["data"]
    assert data == {"totalVideos": 0, "totalViews": 0, "totalSubscribers": 0, "totalLikes": 0}
    assert client.get(f"/api/v1/dashboard/stats/{ObjectId()}").status_code == 404


def test_channel_videos_include_unpublished(client, api):
    channel = api.register("creator")
    api.publish(channel, title="public")
    api.publish(channel, title="draft", visibility="private")

    data = client.get(f"/api/v1/dashboard/videos/{channel}", params={"limit": "1"}).json()["data"]
    assert data["totalVideos"] == 2
    assert data["totalPages"] == 2
    assert [v["title"] for v in data["videos"]] == ["draft"]
