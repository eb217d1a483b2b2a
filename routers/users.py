import logging
from typing import Optional

from bson import ObjectId
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import EmailStr
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from auth import get_current_user_id, get_optional_user_id, hash_password, verify_password
from database import create_document, get_db
from media import MediaHost, get_media_host
from schemas import LoginRequest, User
from utils import api_response, attach_owners, to_str_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/users", tags=["users"])

PRIVATE_FIELDS = ("password_hash", "watch_history")


def public_user(doc):
    d = {k: v for k, v in doc.items() if k not in PRIVATE_FIELDS}
    return to_str_id(d)


@router.post("/register", status_code=201)
async def register(
    fullName: str = Form(...),
    email: EmailStr = Form(...),
    username: str = Form(...),
    password: str = Form(...),
    avatar: Optional[UploadFile] = File(None),
    coverImage: Optional[UploadFile] = File(None),
    db: Database = Depends(get_db),
    media: MediaHost = Depends(get_media_host),
):
    if any(not field.strip() for field in (fullName, email, username, password)):
        raise HTTPException(status_code=400, detail="All fields are required")

    username = username.strip().lower()
    # Uniqueness checks
    if db["user"].find_one({"$or": [{"username": username}, {"email": email}]}):
        raise HTTPException(status_code=409, detail="User with this email or username already exists")

    if avatar is None:
        raise HTTPException(status_code=400, detail="Avatar file is required")
    avatar_asset = await media.upload_file(avatar)
    if avatar_asset is None:
        raise HTTPException(status_code=500, detail="Avatar file failed to upload")
    cover_asset = await media.upload_file(coverImage)
    if coverImage is not None and cover_asset is None:
        raise HTTPException(status_code=500, detail="Cover image failed to upload")

    user = User(
        username=username,
        email=email,
        full_name=fullName.strip(),
        password_hash=hash_password(password),
        avatar=avatar_asset.url,
        cover_image=cover_asset.url if cover_asset else None,
    )
    try:
        doc = create_document(db, "user", user.model_dump())
    except DuplicateKeyError:
        raise HTTPException(status_code=409, detail="User with this email or username already exists")
    logger.info("Registered user %s", doc["_id"])
    return api_response(public_user(doc), "User registered successfully", 201)


@router.post("/login")
def login(payload: LoginRequest, db: Database = Depends(get_db)):
    query = {"email": payload.email} if payload.email else {"username": payload.username.strip().lower()}
    user = db["user"].find_one(query)
    if not user or not verify_password(payload.password, user.get("password_hash", "")):
        raise HTTPException(status_code=400, detail="Invalid credentials")
    # No token is issued; clients send the returned id back as X-User-Id
    return api_response(public_user(user), "User logged in successfully")


@router.get("/me")
def current_user(user_id: str = Depends(get_current_user_id), db: Database = Depends(get_db)):
    user = db["user"].find_one({"_id": ObjectId(user_id)})
    return api_response(public_user(user), "Current user fetched successfully")


@router.get("/c/{username}")
def channel_profile(
    username: str,
    viewer_id: Optional[str] = Depends(get_optional_user_id),
    db: Database = Depends(get_db),
):
    user = db["user"].find_one({"username": username.strip().lower()})
    if not user:
        raise HTTPException(status_code=404, detail="Channel does not exist")

    profile = public_user(user)
    profile["subscribersCount"] = db["subscription"].count_documents({"channel": user["_id"]})
    profile["channelsSubscribedToCount"] = db["subscription"].count_documents({"subscriber": user["_id"]})
    profile["isSubscribed"] = bool(viewer_id) and db["subscription"].find_one(
        {"channel": user["_id"], "subscriber": ObjectId(viewer_id)}
    ) is not None
    return api_response(profile, "Channel profile fetched successfully")


@router.get("/history")
def watch_history(user_id: str = Depends(get_current_user_id), db: Database = Depends(get_db)):
    user = db["user"].find_one({"_id": ObjectId(user_id)}, {"watch_history": 1})
    history = user.get("watch_history") or []
    if not history:
        return api_response([], "No videos in watch history")

    found = {v["_id"]: v for v in db["video"].find({"_id": {"$in": history}})}
    # Stored oldest first; ids whose video is gone are skipped
    videos = [found[vid] for vid in reversed(history) if vid in found]
    attach_owners(db, videos)
    return api_response([to_str_id(v) for v in videos], "Watch history fetched successfully")
