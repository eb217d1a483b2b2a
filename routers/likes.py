import logging

from bson import ObjectId
from fastapi import APIRouter, Depends, HTTPException
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from auth import get_current_user_id
from database import create_document, get_db, get_documents
from schemas import Like
from utils import api_response, attach_owners, objid, project, to_str_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/likes", tags=["likes"])

# Like target kind -> collection holding the target
TARGET_COLLECTIONS = {"video": "video", "comment": "comment", "tweet": "tweet"}

LIKED_VIDEO_FIELDS = ("title", "thumbnail", "duration", "views", "created_at", "owner")


def toggle_like(db: Database, user_id: str, target_kind: str, raw_target_id: str):
    target_id = objid(raw_target_id, f"{target_kind} id")
    if not db[TARGET_COLLECTIONS[target_kind]].find_one({"_id": target_id}, {"_id": 1}):
        raise HTTPException(status_code=404, detail=f"{target_kind} with id {raw_target_id} does not exist")

    key = {"liked_by": ObjectId(user_id), "target_kind": target_kind, "target_id": target_id}
    existing = db["like"].find_one(key)
    if existing:
        db["like"].delete_one({"_id": existing["_id"]})
        logger.info("User %s unliked %s %s", user_id, target_kind, raw_target_id)
        return api_response({}, f"{target_kind} like removed")

    try:
        doc = create_document(db, "like", Like(**key).model_dump())
    except DuplicateKeyError:
        # A concurrent request from the same user got there first
        doc = db["like"].find_one(key)
    logger.info("User %s liked %s %s", user_id, target_kind, raw_target_id)
    return api_response(to_str_id(doc), f"{target_kind} like added")


@router.post("/toggle/v/{video_id}")
def toggle_video_like(video_id: str, user_id: str = Depends(get_current_user_id), db: Database = Depends(get_db)):
    return toggle_like(db, user_id, "video", video_id)


@router.post("/toggle/c/{comment_id}")
def toggle_comment_like(comment_id: str, user_id: str = Depends(get_current_user_id), db: Database = Depends(get_db)):
    return toggle_like(db, user_id, "comment", comment_id)


@router.post("/toggle/t/{tweet_id}")
def toggle_tweet_like(tweet_id: str, user_id: str = Depends(get_current_user_id), db: Database = Depends(get_db)):
    return toggle_like(db, user_id, "tweet", tweet_id)


@router.get("/videos")
def get_liked_videos(user_id: str = Depends(get_current_user_id), db: Database = Depends(get_db)):
    likes = get_documents(
        db,
        "like",
        {"liked_by": ObjectId(user_id), "target_kind": "video"},
        sort=[("created_at", -1), ("_id", -1)],
    )
    ids = [like["target_id"] for like in likes]
    found = {v["_id"]: project(v, LIKED_VIDEO_FIELDS) for v in db["video"].find({"_id": {"$in": ids}})}
    # Most recently liked first
    videos = [found[vid] for vid in ids if vid in found]
    attach_owners(db, videos, fields=("username", "full_name"))
    return api_response([to_str_id(v) for v in videos], "Liked videos fetched successfully")


@router.get("/count/{video_id}")
def get_video_like_count(video_id: str, db: Database = Depends(get_db)):
    vid = objid(video_id, "video id")
    if not db["video"].find_one({"_id": vid}, {"_id": 1}):
        raise HTTPException(status_code=404, detail="Video not found")
    count = db["like"].count_documents({"target_kind": "video", "target_id": vid})
    return api_response({"videoLikes": count}, "Video likes count fetched successfully")
