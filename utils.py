from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from fastapi import HTTPException
from pymongo.database import Database


# -------------------- Serialization --------------------

def _plain(value):
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def to_str_id(doc):
    if not doc:
        return doc
    d = {**doc}
    if d.get("_id"):
        d["id"] = str(d.pop("_id"))
    # ObjectIds and datetimes anywhere in the document become strings
    return {k: _plain(v) for k, v in d.items()}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def api_response(data: Any, message: str, status_code: int = 200) -> Dict[str, Any]:
    return {"statusCode": status_code, "data": data, "message": message}


# -------------------- Validation --------------------

def objid(id_str: str, label: str = "id") -> ObjectId:
    if not ObjectId.is_valid(id_str):
        raise HTTPException(status_code=400, detail=f"Invalid {label}")
    return ObjectId(id_str)


def parse_positive_int(raw: Optional[str], default: int, name: str) -> int:
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"{name} must be an integer")
    if value < 1:
        raise HTTPException(status_code=400, detail=f"{name} must be at least 1")
    return value


def is_owner(owner_id, user_id) -> bool:
    return str(owner_id) == str(user_id)


def ensure_owner(owner_id, user_id, detail: str = "You do not have permission to perform this action on this resource"):
    if not is_owner(owner_id, user_id):
        raise HTTPException(status_code=403, detail=detail)


# -------------------- Joins --------------------

OWNER_FIELDS = ("username", "full_name", "avatar")


def users_by_id(db: Database, ids: Iterable[ObjectId], fields: Iterable[str] = OWNER_FIELDS) -> Dict[ObjectId, Dict[str, Any]]:
    """Look up users for a set of ids, projected to `fields` (plus _id)."""
    projection = {f: 1 for f in fields}
    unique_ids = list({i for i in ids if i is not None})
    if not unique_ids:
        return {}
    return {u["_id"]: u for u in db["user"].find({"_id": {"$in": unique_ids}}, projection)}


def attach_owners(db: Database, docs: List[Dict[str, Any]], fields: Iterable[str] = OWNER_FIELDS, keep_id: bool = True) -> List[Dict[str, Any]]:
    """Replace each doc's `owner` id with the owner's projected profile."""
    owners = users_by_id(db, (d.get("owner") for d in docs), fields)
    for d in docs:
        owner = owners.get(d.get("owner"))
        if owner is not None and not keep_id:
            owner = {k: v for k, v in owner.items() if k != "_id"}
        d["owner"] = owner
    return docs


def project(doc: Dict[str, Any], fields: Iterable[str]) -> Dict[str, Any]:
    return {f: doc.get(f) for f in ("_id", *fields) if f in doc}
