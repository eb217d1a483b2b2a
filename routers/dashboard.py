from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pymongo.database import Database

from database import get_db, paginate
from utils import api_response, objid, parse_positive_int, to_str_id

router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"])


def get_channel_or_404(db: Database, channel_id: str):
    channel = objid(channel_id, "channel id")
    if not db["user"].find_one({"_id": channel}, {"_id": 1}):
        raise HTTPException(status_code=404, detail="Channel not found")
    return channel


@router.get("/stats/{channel_id}")
def get_channel_stats(channel_id: str, db: Database = Depends(get_db)):
    channel = get_channel_or_404(db, channel_id)

    video_ids = [v["_id"] for v in db["video"].find({"owner": channel}, {"_id": 1})]
    views = list(db["video"].aggregate([
        {"$match": {"owner": channel}},
        {"$group": {"_id": None, "totalViews": {"$sum": "$views"}}},
    ]))
    stats = {
        "totalVideos": len(video_ids),
        "totalViews": views[0]["totalViews"] if views else 0,
        "totalSubscribers": db["subscription"].count_documents({"channel": channel}),
        "totalLikes": db["like"].count_documents({"target_kind": "video", "target_id": {"$in": video_ids}}),
    }
    return api_response(stats, "Channel stats fetched successfully")


@router.get("/videos/{channel_id}")
def get_channel_videos(
    channel_id: str,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db: Database = Depends(get_db),
):
    channel = get_channel_or_404(db, channel_id)
    page_num = parse_positive_int(page, 1, "page")
    page_size = parse_positive_int(limit, 10, "limit")

    result = paginate(db, "video", {"owner": channel}, page_num, page_size, sort=[("created_at", -1), ("_id", -1)])
    return api_response(
        {
            "videos": [to_str_id(v) for v in result["docs"]],
            "currentPage": result["currentPage"],
            "totalPages": result["totalPages"],
            "totalVideos": result["totalDocs"],
        },
        "Videos fetched successfully",
    )
