import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from database import connect, ensure_indexes
from media import MediaHost
from routers import all_routers
from settings import Settings

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"statusCode": status_code, "message": message})


def validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path", "form"))
    return f"{field}: {first.get('msg')}" if field else first.get("msg", "Invalid request")


@asynccontextmanager
async def lifespan(app: FastAPI):
    client = None
    if app.state.db is None:
        settings: Settings = app.state.settings
        client = connect(settings)
        app.state.db = client[settings.database_name]
    ensure_indexes(app.state.db)
    yield
    if client is not None:
        client.close()


def create_app(settings: Optional[Settings] = None, db: Optional[Database] = None, media: Optional[MediaHost] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="VideoTube API", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = db
    app.state.media = media or MediaHost(settings)

    if not settings.cors_origin:
        logger.warning("CORS_ORIGIN environment variable is not set")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin] if settings.cors_origin else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------- Error envelopes --------------------
    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return error_response(400, validation_message(exc))

    @app.exception_handler(PyMongoError)
    async def database_error_handler(request: Request, exc: PyMongoError):
        logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
        return error_response(500, "Database operation failed")

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(500, "Internal server error")

    # -------------------- Basic Routes --------------------
    @app.get("/")
    def read_root():
        return {"message": "Video Sharing Backend is running"}

    @app.get("/test")
    def test_database():
        info = {
            "backend": "running",
            "database_connected": False,
            "collections": []
        }
        try:
            if app.state.db is not None:
                info["collections"] = app.state.db.list_collection_names()
                info["database_connected"] = True
        except PyMongoError as e:
            info["error"] = str(e)
        return info

    for router in all_routers:
        app.include_router(router)
    return app


# Served with `uvicorn main:app`; the store connects when the app starts up
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
