import logging

from bson import ObjectId
from fastapi import APIRouter, Depends, HTTPException
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from auth import get_current_user_id
from database import create_document, get_db, get_documents
from schemas import Subscription
from utils import api_response, attach_owners, objid, project, to_str_id, users_by_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/subscriptions", tags=["subscriptions"])

CHANNEL_FIELDS = ("username", "full_name", "avatar")
LATEST_VIDEO_FIELDS = ("title", "thumbnail", "duration", "views", "created_at", "owner")


def require_user(db: Database, user_id: ObjectId, label: str):
    if not db["user"].find_one({"_id": user_id}, {"_id": 1}):
        raise HTTPException(status_code=404, detail=f"{label} not found")


def channel_list(db: Database, user_ids):
    """Users for `user_ids` in the given order, projected to their public channel fields."""
    users = users_by_id(db, user_ids, CHANNEL_FIELDS)
    return [to_str_id(users[uid]) for uid in user_ids if uid in users]


def subscribed_channel_ids(db: Database, subscriber: ObjectId):
    subs = get_documents(db, "subscription", {"subscriber": subscriber}, sort=[("created_at", 1), ("_id", 1)])
    return [s["channel"] for s in subs]


@router.post("/c/{channel_id}")
def toggle_subscription(
    channel_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    channel = objid(channel_id, "channel id")
    if str(channel) == user_id:
        raise HTTPException(status_code=400, detail="Cannot subscribe to yourself")
    require_user(db, channel, "Channel")

    subscriber = ObjectId(user_id)
    existing = db["subscription"].find_one({"subscriber": subscriber, "channel": channel})
    if existing:
        db["subscription"].delete_one({"_id": existing["_id"]})
        message = "Subscription removed"
    else:
        try:
            create_document(db, "subscription", Subscription(subscriber=subscriber, channel=channel).model_dump())
        except DuplicateKeyError:
            # A concurrent request from the same user got there first
            pass
        message = "Subscription added"
    logger.info("User %s toggled subscription to %s: %s", user_id, channel_id, message)

    channels = channel_list(db, subscribed_channel_ids(db, subscriber))
    return api_response(channels, message)


@router.get("/c/{channel_id}")
def get_channel_subscribers(channel_id: str, db: Database = Depends(get_db)):
    channel = objid(channel_id, "channel id")
    require_user(db, channel, "Channel")

    subs = get_documents(db, "subscription", {"channel": channel}, sort=[("created_at", 1), ("_id", 1)])
    subscriber_ids = [s["subscriber"] for s in subs]
    data = {
        "subscribersList": channel_list(db, subscriber_ids),
        "totalSubscribers": len(subscriber_ids),
    }
    return api_response(data, "Channel subscribers fetched")


@router.get("/u/{subscriber_id}")
def get_user_subscriptions(subscriber_id: str, db: Database = Depends(get_db)):
    subscriber = objid(subscriber_id, "subscriber id")
    require_user(db, subscriber, "Subscriber")

    channel_ids = subscribed_channel_ids(db, subscriber)
    data = {
        "subscribedChannelList": channel_list(db, channel_ids),
        "totalSubscribedChannels": len(channel_ids),
    }
    return api_response(data, "User subscriptions fetched")


@router.get("/u/{subscriber_id}/latest")
def get_latest_videos_from_subscriptions(subscriber_id: str, db: Database = Depends(get_db)):
    subscriber = objid(subscriber_id, "subscriber id")
    require_user(db, subscriber, "Subscriber")

    latest = []
    for channel in subscribed_channel_ids(db, subscriber):
        video = db["video"].find_one(
            {"owner": channel, "is_published": True},
            sort=[("created_at", -1), ("_id", -1)],
        )
        if video:
            latest.append(project(video, LATEST_VIDEO_FIELDS))

    latest.sort(key=lambda v: (v["created_at"], v["_id"]), reverse=True)
    attach_owners(db, latest, keep_id=False)
    return api_response([to_str_id(v) for v in latest], "Latest videos from subscribed channels fetched")
