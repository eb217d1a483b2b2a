"""
MongoDB access helpers

The client is created once per process by `connect` and kept on
`app.state.db`; handlers receive it through the `get_db` dependency.
"""

import logging
import math
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import Request
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from settings import Settings

logger = logging.getLogger(__name__)


def connect(settings: Settings) -> MongoClient:
    """Open the store connection or terminate the process."""
    if not settings.mongodb_uri:
        logger.critical("MONGODB_URI environment variable is not defined")
        sys.exit(1)
    try:
        client = MongoClient(settings.mongodb_uri)
        client.admin.command("ping")
    except PyMongoError as exc:
        logger.critical("MongoDB connection failed: %s", exc)
        sys.exit(1)
    logger.info("MongoDB connected, database %s", settings.database_name)
    return client


def ensure_indexes(db: Database) -> None:
    # Store-level guards for uniqueness the handlers check before writing
    db["user"].create_index([("username", ASCENDING)], unique=True)
    db["user"].create_index([("email", ASCENDING)], unique=True)
    db["like"].create_index(
        [("liked_by", ASCENDING), ("target_kind", ASCENDING), ("target_id", ASCENDING)],
        unique=True,
    )
    db["subscription"].create_index(
        [("subscriber", ASCENDING), ("channel", ASCENDING)],
        unique=True,
    )
    db["video"].create_index([("owner", ASCENDING), ("created_at", ASCENDING)])
    db["comment"].create_index([("video", ASCENDING)])
    logger.info("Indexes ensured")


def get_db(request: Request) -> Database:
    return request.app.state.db


def create_document(db: Database, collection_name: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """Insert a document stamped with created/updated times and return it with its _id."""
    now = datetime.now(timezone.utc)
    doc = {**data, "created_at": now, "updated_at": now}
    doc["_id"] = db[collection_name].insert_one(doc).inserted_id
    return doc


def get_documents(
    db: Database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    sort: Optional[List[tuple]] = None,
    skip: int = 0,
    limit: int = 0,
) -> List[Dict[str, Any]]:
    cursor = db[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if skip:
        cursor = cursor.skip(skip)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def paginate(
    db: Database,
    collection_name: str,
    filter_dict: Dict[str, Any],
    page: int,
    limit: int,
    sort: Optional[List[tuple]] = None,
) -> Dict[str, Any]:
    """
    Fetch one page of a filtered collection together with its paging metadata.

    The metadata mirrors the aggregate-paginate shape clients already know:
    totalDocs, totalPages, currentPage, nextPage, prevPage, hasNextPage,
    hasPrevPage and pagingCounter (1-based index of the first doc on the page).
    """
    total = db[collection_name].count_documents(filter_dict)
    docs = get_documents(db, collection_name, filter_dict, sort=sort, skip=(page - 1) * limit, limit=limit)
    total_pages = math.ceil(total / limit)
    return {
        "docs": docs,
        "totalDocs": total,
        "count": len(docs),
        "totalPages": total_pages,
        "currentPage": page,
        "nextPage": page + 1 if page < total_pages else None,
        "prevPage": page - 1 if page > 1 else None,
        "hasNextPage": page < total_pages,
        "hasPrevPage": page > 1,
        "pagingCounter": (page - 1) * limit + 1,
    }
