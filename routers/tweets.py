import logging

from bson import ObjectId
from fastapi import APIRouter, Depends, HTTPException
from pymongo import ReturnDocument
from pymongo.database import Database

from auth import get_current_user_id
from database import create_document, get_db, get_documents
from schemas import ContentRequest, Tweet
from utils import api_response, ensure_owner, objid, to_str_id, utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/tweets", tags=["tweets"])


def get_owned_tweet(db: Database, tweet_id: ObjectId, user_id: str, action: str):
    tweet = db["tweet"].find_one({"_id": tweet_id})
    if not tweet:
        raise HTTPException(status_code=404, detail="Tweet not found")
    ensure_owner(tweet["owner"], user_id, f"You can only {action} your own tweets")
    return tweet


@router.post("/", status_code=201)
def create_tweet(payload: ContentRequest, user_id: str = Depends(get_current_user_id), db: Database = Depends(get_db)):
    if not payload.content.strip():
        raise HTTPException(status_code=400, detail="Content is required")
    doc = create_document(db, "tweet", Tweet(owner=ObjectId(user_id), content=payload.content.strip()).model_dump())
    return api_response(to_str_id(doc), "Tweet created successfully", 201)


@router.get("/user/{user_id}")
def get_user_tweets(user_id: str, db: Database = Depends(get_db)):
    tweets = get_documents(db, "tweet", {"owner": objid(user_id, "user id")}, sort=[("created_at", -1), ("_id", -1)])
    return api_response([to_str_id(t) for t in tweets], "User's tweets retrieved successfully")


@router.patch("/{tweet_id}")
def update_tweet(
    tweet_id: str,
    payload: ContentRequest,
    user_id: str = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    if not payload.content.strip():
        raise HTTPException(status_code=400, detail="Content is required to update the tweet")
    tid = objid(tweet_id, "tweet id")
    get_owned_tweet(db, tid, user_id, "update")
    updated = db["tweet"].find_one_and_update(
        {"_id": tid},
        {"$set": {"content": payload.content.strip(), "updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    return api_response(to_str_id(updated), "Tweet updated successfully")


@router.delete("/{tweet_id}")
def delete_tweet(tweet_id: str, user_id: str = Depends(get_current_user_id), db: Database = Depends(get_db)):
    tid = objid(tweet_id, "tweet id")
    get_owned_tweet(db, tid, user_id, "delete")
    db["tweet"].delete_one({"_id": tid})
    db["like"].delete_many({"target_kind": "tweet", "target_id": tid})
    return api_response({}, "Tweet deleted successfully")
