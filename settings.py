"""
Runtime configuration

Everything is read from the environment once at startup. A local `.env`
file is loaded first so development setups don't need exported variables.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


@dataclass
class Settings:
    mongodb_uri: Optional[str] = None
    database_name: str = "videotube"
    cors_origin: Optional[str] = None
    port: int = 8000
    cloudinary_cloud_name: Optional[str] = None
    cloudinary_api_key: Optional[str] = None
    cloudinary_api_secret: Optional[str] = None
    upload_dir: str = os.path.join(".", "public", "temp")
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            mongodb_uri=os.getenv("MONGODB_URI"),
            database_name=os.getenv("DATABASE_NAME", "videotube"),
            cors_origin=os.getenv("CORS_ORIGIN"),
            port=int(os.getenv("PORT", 8000)),
            cloudinary_cloud_name=os.getenv("CLOUDINARY_CLOUD_NAME"),
            cloudinary_api_key=os.getenv("CLOUDINARY_API_KEY"),
            cloudinary_api_secret=os.getenv("CLOUDINARY_API_SECRET"),
            upload_dir=os.getenv("UPLOAD_DIR", os.path.join(".", "public", "temp")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
