import json
import logging
import re
from typing import List, Optional

from bson import ObjectId
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pymongo import ReturnDocument
from pymongo.database import Database

from auth import get_current_user_id, get_optional_user_id
from database import create_document, get_db, paginate
from media import MediaHost, get_media_host
from routers.playlists import attach_video_to_playlists
from schemas import Video
from utils import api_response, attach_owners, ensure_owner, objid, parse_positive_int, to_str_id, utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/videos", tags=["videos"])

SORTABLE_FIELDS = ("created_at", "views", "duration", "title")


def get_video_or_404(db: Database, video_id: ObjectId):
    video = db["video"].find_one({"_id": video_id})
    if not video:
        raise HTTPException(status_code=404, detail=f"Video with id {video_id} not found")
    return video


def parse_playlist_ids(raw: Optional[str]) -> List[ObjectId]:
    if not raw:
        return []
    try:
        ids = json.loads(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail="playlistIds must be a JSON array")
    if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
        raise HTTPException(status_code=400, detail="playlistIds must be a JSON array of ids")
    return [objid(i, "playlist id") for i in ids]


def delete_video_cascade(db: Database, video_id: ObjectId):
    """Remove everything that points at a deleted video."""
    comment_ids = [c["_id"] for c in db["comment"].find({"video": video_id}, {"_id": 1})]
    db["like"].delete_many({"target_kind": "video", "target_id": video_id})
    if comment_ids:
        db["like"].delete_many({"target_kind": "comment", "target_id": {"$in": comment_ids}})
        db["comment"].delete_many({"video": video_id})
    db["playlist"].update_many({"videos": video_id}, {"$pull": {"videos": video_id}})
    db["user"].update_many({"watch_history": video_id}, {"$pull": {"watch_history": video_id}})


# -------------------- Listing & Search --------------------
@router.get("/")
def list_videos(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    query: Optional[str] = None,
    sortBy: str = "created_at",
    sortType: str = "-1",
    userId: Optional[str] = None,
    db: Database = Depends(get_db),
):
    page_num = parse_positive_int(page, 1, "page")
    page_size = parse_positive_int(limit, 10, "limit")
    if sortBy not in SORTABLE_FIELDS:
        raise HTTPException(status_code=400, detail=f"sortBy must be one of {', '.join(SORTABLE_FIELDS)}")
    if sortType not in ("1", "-1"):
        raise HTTPException(status_code=400, detail="sortType must be 1 or -1")
    direction = int(sortType)

    match = {"is_published": True}
    if query:
        regex = {"$regex": re.escape(query), "$options": "i"}
        match["$or"] = [{"title": regex}, {"description": regex}]
    if userId:
        match["owner"] = objid(userId, "user id")

    result = paginate(db, "video", match, page_num, page_size, sort=[(sortBy, direction), ("_id", direction)])
    videos = attach_owners(db, result["docs"])
    return api_response(
        {
            "videos": [to_str_id(v) for v in videos],
            "currentPage": result["currentPage"],
            "totalPages": result["totalPages"],
            "totalVideos": result["totalDocs"],
        },
        "Videos fetched successfully",
    )


# -------------------- Publish --------------------
@router.post("/", status_code=201)
async def publish_video(
    title: str = Form(...),
    description: Optional[str] = Form(None),
    visibility: Optional[str] = Form(None),
    playlistIds: Optional[str] = Form(None),
    videoFile: Optional[UploadFile] = File(None),
    thumbnail: Optional[UploadFile] = File(None),
    user_id: str = Depends(get_current_user_id),
    db: Database = Depends(get_db),
    media: MediaHost = Depends(get_media_host),
):
    if not title.strip():
        raise HTTPException(status_code=400, detail="Title cannot be empty")
    if videoFile is None or thumbnail is None:
        raise HTTPException(status_code=400, detail="Please select a video and a thumbnail image to upload")
    playlist_ids = parse_playlist_ids(playlistIds)

    video_asset = await media.upload_file(videoFile)
    if video_asset is None:
        raise HTTPException(status_code=500, detail="Something went wrong while uploading video")
    thumb_asset = await media.upload_file(thumbnail)
    if thumb_asset is None:
        media.delete(video_asset.public_id, resource_type="video")
        raise HTTPException(status_code=500, detail="Something went wrong while uploading thumbnail")

    video = Video(
        owner=ObjectId(user_id),
        title=title.strip(),
        description=description,
        video_file=video_asset.url,
        thumbnail=thumb_asset.url,
        duration=video_asset.duration or 0,
        is_published=visibility == "public",
    )
    doc = create_document(db, "video", video.model_dump())
    logger.info("User %s published video %s", user_id, doc["_id"])

    attach_video_to_playlists(db, doc["_id"], playlist_ids, user_id)
    return api_response(to_str_id(doc), "Video published successfully", 201)


# -------------------- Fetch --------------------
@router.get("/{video_id}")
def get_video(
    video_id: str,
    viewer_id: Optional[str] = Depends(get_optional_user_id),
    db: Database = Depends(get_db),
):
    vid = objid(video_id, "video id")
    video = db["video"].find_one_and_update(
        {"_id": vid},
        {"$inc": {"views": 1}},
        return_document=ReturnDocument.AFTER,
    )
    if not video:
        raise HTTPException(status_code=404, detail=f"Video with id {video_id} not found")

    if viewer_id:
        # Watch history is kept oldest first; re-watching moves the video to the end
        viewer = ObjectId(viewer_id)
        db["user"].update_one({"_id": viewer}, {"$pull": {"watch_history": vid}})
        db["user"].update_one({"_id": viewer}, {"$push": {"watch_history": vid}})

    attach_owners(db, [video])
    return api_response(to_str_id(video), f"Video with id {video_id} fetched successfully")


# -------------------- Update --------------------
@router.patch("/{video_id}")
async def update_video(
    video_id: str,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    visibility: Optional[str] = Form(None),
    playlistIds: Optional[str] = Form(None),
    thumbnail: Optional[UploadFile] = File(None),
    user_id: str = Depends(get_current_user_id),
    db: Database = Depends(get_db),
    media: MediaHost = Depends(get_media_host),
):
    vid = objid(video_id, "video id")
    video = get_video_or_404(db, vid)
    ensure_owner(video["owner"], user_id)
    playlist_ids = parse_playlist_ids(playlistIds)

    updates = {}
    if title is not None:
        if not title.strip():
            raise HTTPException(status_code=400, detail="Title cannot be empty")
        updates["title"] = title.strip()
    if description is not None:
        updates["description"] = description
    if visibility is not None:
        updates["is_published"] = visibility == "public"
    if thumbnail is not None:
        thumb_asset = await media.upload_file(thumbnail)
        if thumb_asset is None:
            raise HTTPException(status_code=500, detail="Something went wrong while uploading thumbnail")
        media.delete_url(video.get("thumbnail"))
        updates["thumbnail"] = thumb_asset.url

    attach_video_to_playlists(db, vid, playlist_ids, user_id)

    if updates:
        updates["updated_at"] = utcnow()
        video = db["video"].find_one_and_update(
            {"_id": vid},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        if not video:
            raise HTTPException(status_code=404, detail=f"Video with id {video_id} not found")
    return api_response(to_str_id(video), "Video details updated successfully")


# -------------------- Delete --------------------
@router.delete("/{video_id}")
def delete_video(
    video_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Database = Depends(get_db),
    media: MediaHost = Depends(get_media_host),
):
    vid = objid(video_id, "video id")
    video = get_video_or_404(db, vid)
    ensure_owner(video["owner"], user_id)

    media.delete_url(video.get("video_file"), resource_type="video")
    media.delete_url(video.get("thumbnail"))

    if db["video"].delete_one({"_id": vid}).deleted_count == 0:
        raise HTTPException(status_code=404, detail=f"Video with id {video_id} not found")
    delete_video_cascade(db, vid)
    logger.info("User %s deleted video %s", user_id, video_id)
    return api_response({}, "Video deleted successfully")


@router.patch("/toggle/publish/{video_id}")
def toggle_publish_status(
    video_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    vid = objid(video_id, "video id")
    video = get_video_or_404(db, vid)
    ensure_owner(video["owner"], user_id)

    video = db["video"].find_one_and_update(
        {"_id": vid},
        {"$set": {"is_published": not video.get("is_published", False)}},
        return_document=ReturnDocument.AFTER,
    )
    return api_response(to_str_id(video), "Video publish status toggled successfully")
