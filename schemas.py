"""
Database Schemas for the video sharing backend

Each Pydantic model maps to a MongoDB collection. The collection name is the lowercase of the class name.

Collections:
- User -> user
- Video -> video
- Comment -> comment
- Like -> like
- Subscription -> subscription
- Playlist -> playlist
- Tweet -> tweet

References between documents are stored as ObjectIds.
"""

from typing import List, Literal, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator


class Document(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)


class User(Document):
    username: str = Field(..., min_length=1, description="Lower-cased, unique")
    email: EmailStr
    full_name: str
    password_hash: str = Field(..., description="Bcrypt hash")
    avatar: str
    cover_image: Optional[str] = None
    watch_history: List[ObjectId] = Field(default_factory=list, description="Oldest first")


class Video(Document):
    owner: ObjectId
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    video_file: str = Field(..., description="Hosted asset URL")
    thumbnail: str = Field(..., description="Hosted asset URL")
    duration: float = 0
    views: int = Field(0, ge=0)
    is_published: bool = True


class Comment(Document):
    video: ObjectId
    owner: ObjectId
    content: str = Field(..., min_length=1)


TargetKind = Literal["video", "comment", "tweet"]


class Like(Document):
    """One like by one user on exactly one target, tagged with the target's kind."""
    liked_by: ObjectId
    target_kind: TargetKind
    target_id: ObjectId


class Subscription(Document):
    subscriber: ObjectId = Field(..., description="The user who subscribes")
    channel: ObjectId = Field(..., description="The user id of the channel being subscribed to")


class Playlist(Document):
    owner: ObjectId
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    videos: List[ObjectId] = Field(default_factory=list)


class Tweet(Document):
    owner: ObjectId
    content: str = Field(..., min_length=1)


# -------------------- Request bodies --------------------

class LoginRequest(BaseModel):
    email: Optional[EmailStr] = None
    username: Optional[str] = None
    password: str

    @model_validator(mode="after")
    def _needs_identifier(self):
        if not self.email and not self.username:
            raise ValueError("username or email is required")
        return self


class ContentRequest(BaseModel):
    content: str = Field(..., min_length=1)


class PlaylistCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)


class PlaylistUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
