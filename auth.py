from typing import Optional

from bson import ObjectId
from fastapi import Cookie, Depends, Header, HTTPException
from passlib.context import CryptContext
from pymongo.database import Database

from database import get_db

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def _resolve_user_id(db: Database, raw: Optional[str]) -> Optional[str]:
    if not raw:
        return None
    if not ObjectId.is_valid(raw) or not db["user"].find_one({"_id": ObjectId(raw)}, {"_id": 1}):
        raise HTTPException(status_code=401, detail="Invalid user id")
    return str(ObjectId(raw))


# Acting identity comes from the X-User-Id header, or the userId cookie set by the frontend
def get_current_user_id(
    x_user_id: Optional[str] = Header(default=None, convert_underscores=False, alias="X-User-Id"),
    user_id_cookie: Optional[str] = Cookie(default=None, alias="userId"),
    db: Database = Depends(get_db),
) -> str:
    user_id = _resolve_user_id(db, x_user_id or user_id_cookie)
    if not user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return user_id


def get_optional_user_id(
    x_user_id: Optional[str] = Header(default=None, convert_underscores=False, alias="X-User-Id"),
    user_id_cookie: Optional[str] = Cookie(default=None, alias="userId"),
    db: Database = Depends(get_db),
) -> Optional[str]:
    return _resolve_user_id(db, x_user_id or user_id_cookie)
