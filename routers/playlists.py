import logging
from typing import List

from bson import ObjectId
from fastapi import APIRouter, Depends, HTTPException
from pymongo import ReturnDocument
from pymongo.database import Database

from auth import get_current_user_id
from database import create_document, get_db, get_documents
from schemas import Playlist, PlaylistCreate, PlaylistUpdate
from utils import api_response, ensure_owner, is_owner, objid, to_str_id, utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/playlists", tags=["playlists"])


def get_owned_playlist(db: Database, playlist_id: ObjectId, user_id: str):
    playlist = db["playlist"].find_one({"_id": playlist_id})
    if not playlist:
        raise HTTPException(status_code=404, detail="Playlist not found")
    ensure_owner(playlist["owner"], user_id, "Unauthorized access")
    return playlist


def push_video(db: Database, playlist_id: ObjectId, video_id: ObjectId):
    """Append a video unless it is already a member. Returns the updated playlist, or None on duplicates."""
    # Membership test and append happen in one conditional update on the playlist document
    return db["playlist"].find_one_and_update(
        {"_id": playlist_id, "videos": {"$ne": video_id}},
        {"$push": {"videos": video_id}, "$set": {"updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )


def attach_video_to_playlists(db: Database, video_id: ObjectId, playlist_ids: List[ObjectId], user_id: str):
    """Best-effort attach used while publishing or editing a video."""
    for playlist_id in playlist_ids:
        playlist = db["playlist"].find_one({"_id": playlist_id})
        if not playlist or not is_owner(playlist["owner"], user_id):
            logger.warning("Skipping playlist %s for video %s: not found or not owned", playlist_id, video_id)
            continue
        if push_video(db, playlist_id, video_id) is None:
            logger.warning("Video %s already in playlist %s", video_id, playlist_id)


@router.post("/", status_code=201)
def create_playlist(
    payload: PlaylistCreate,
    user_id: str = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    if not payload.name.strip() or not payload.description.strip():
        raise HTTPException(status_code=400, detail="Name and description are required")
    playlist = Playlist(owner=ObjectId(user_id), name=payload.name.strip(), description=payload.description.strip())
    doc = create_document(db, "playlist", playlist.model_dump())
    logger.info("User %s created playlist %s", user_id, doc["_id"])
    return api_response(to_str_id(doc), "Playlist created successfully", 201)


@router.get("/user/{user_id}")
def get_user_playlists(
    user_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    owner = objid(user_id, "user id")
    ensure_owner(owner, current_user_id, "Unauthorized access")
    playlists = get_documents(db, "playlist", {"owner": owner}, sort=[("created_at", -1), ("_id", -1)])
    message = "User's playlists retrieved successfully" if playlists else "No playlists found for this user"
    return api_response([to_str_id(p) for p in playlists], message)


@router.get("/{playlist_id}")
def get_playlist(
    playlist_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    playlist = get_owned_playlist(db, objid(playlist_id, "playlist id"), user_id)
    ids = playlist.get("videos", [])
    found = {v["_id"]: v for v in db["video"].find({"_id": {"$in": ids}})}
    playlist["videos"] = [to_str_id(found[vid]) for vid in ids if vid in found]
    return api_response(to_str_id(playlist), "Playlist fetched successfully")


@router.patch("/add/{video_id}/{playlist_id}")
def add_video_to_playlist(
    video_id: str,
    playlist_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    vid = objid(video_id, "video id")
    pid = objid(playlist_id, "playlist id")
    playlist = get_owned_playlist(db, pid, user_id)

    video = db["video"].find_one({"_id": vid})
    if not video:
        raise HTTPException(status_code=404, detail="Video not found")
    if not video.get("is_published"):
        raise HTTPException(status_code=400, detail="Video is not published")
    if vid in playlist.get("videos", []):
        raise HTTPException(status_code=400, detail="Video already exists in this playlist")

    updated = push_video(db, pid, vid)
    if updated is None:
        raise HTTPException(status_code=400, detail="Video already exists in this playlist")
    return api_response(to_str_id(updated), "Video added to playlist")


@router.patch("/remove/{video_id}/{playlist_id}")
def remove_video_from_playlist(
    video_id: str,
    playlist_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    vid = objid(video_id, "video id")
    pid = objid(playlist_id, "playlist id")
    playlist = get_owned_playlist(db, pid, user_id)
    if vid not in playlist.get("videos", []):
        raise HTTPException(status_code=404, detail="Video not found in playlist")

    updated = db["playlist"].find_one_and_update(
        {"_id": pid},
        {"$pull": {"videos": vid}, "$set": {"updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    return api_response(to_str_id(updated), "Video removed from playlist")


@router.patch("/{playlist_id}")
def update_playlist(
    playlist_id: str,
    payload: PlaylistUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    pid = objid(playlist_id, "playlist id")
    get_owned_playlist(db, pid, user_id)

    updates = {k: v.strip() for k, v in payload.model_dump(exclude_none=True).items() if v.strip()}
    if not updates:
        raise HTTPException(status_code=400, detail="At least one field (name or description) is required")
    updates["updated_at"] = utcnow()
    updated = db["playlist"].find_one_and_update({"_id": pid}, {"$set": updates}, return_document=ReturnDocument.AFTER)
    return api_response(to_str_id(updated), "Playlist updated successfully")


@router.delete("/{playlist_id}")
def delete_playlist(
    playlist_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    pid = objid(playlist_id, "playlist id")
    get_owned_playlist(db, pid, user_id)
    db["playlist"].delete_one({"_id": pid})
    logger.info("User %s deleted playlist %s", user_id, playlist_id)
    return api_response({}, "Playlist deleted successfully")
