import logging
from typing import Optional

from bson import ObjectId
from fastapi import APIRouter, Depends, HTTPException
from pymongo import ReturnDocument
from pymongo.database import Database

from auth import get_current_user_id
from database import create_document, get_db, paginate
from schemas import Comment, ContentRequest
from utils import api_response, attach_owners, ensure_owner, objid, parse_positive_int, to_str_id, utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/comments", tags=["comments"])


def get_comment_or_404(db: Database, comment_id: ObjectId):
    comment = db["comment"].find_one({"_id": comment_id})
    if not comment:
        raise HTTPException(status_code=404, detail=f"Comment with id {comment_id} does not exist")
    return comment


def require_video(db: Database, video_id: ObjectId):
    if not db["video"].find_one({"_id": video_id}, {"_id": 1}):
        raise HTTPException(status_code=404, detail=f"Video with id {video_id} does not exist")


@router.get("/{video_id}")
def list_comments(
    video_id: str,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db: Database = Depends(get_db),
):
    vid = objid(video_id, "video id")
    page_num = parse_positive_int(page, 1, "page")
    page_size = parse_positive_int(limit, 10, "limit")
    require_video(db, vid)

    result = paginate(db, "comment", {"video": vid}, page_num, page_size, sort=[("created_at", 1), ("_id", 1)])
    comments = attach_owners(db, result.pop("docs"), keep_id=False)
    # Pages are taken in creation order and each page is served newest first
    result["videoComments"] = [to_str_id(c) for c in reversed(comments)]
    return api_response(result, "Video comments fetched successfully")


@router.post("/{video_id}", status_code=201)
def add_comment(
    video_id: str,
    payload: ContentRequest,
    user_id: str = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    vid = objid(video_id, "video id")
    require_video(db, vid)
    if not payload.content.strip():
        raise HTTPException(status_code=400, detail="Comment is required or empty")

    comment = Comment(video=vid, owner=ObjectId(user_id), content=payload.content.strip())
    doc = create_document(db, "comment", comment.model_dump())
    logger.info("User %s commented %s on video %s", user_id, doc["_id"], video_id)
    return api_response(to_str_id(doc), "Comment added successfully", 201)


@router.patch("/c/{comment_id}")
def update_comment(
    comment_id: str,
    payload: ContentRequest,
    user_id: str = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    cid = objid(comment_id, "comment id")
    comment = get_comment_or_404(db, cid)
    ensure_owner(comment["owner"], user_id, "You are not authorized to update this comment")
    if not payload.content.strip():
        raise HTTPException(status_code=400, detail="Comment body is empty")

    updated = db["comment"].find_one_and_update(
        {"_id": cid},
        {"$set": {"content": payload.content.strip(), "updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    return api_response(to_str_id(updated), "Comment updated successfully")


@router.delete("/c/{comment_id}")
def delete_comment(
    comment_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    cid = objid(comment_id, "comment id")
    comment = get_comment_or_404(db, cid)
    ensure_owner(comment["owner"], user_id, "You are not authorized to delete this comment")

    db["comment"].delete_one({"_id": cid})
    db["like"].delete_many({"target_kind": "comment", "target_id": cid})
    return api_response({}, "Comment deleted successfully")
