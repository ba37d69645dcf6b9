import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import init_schoolhub
from .config import settings
from .database import engine
from .responses import failure
from .routes import routers


logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(message)s",
    handlers=[logging.StreamHandler()],
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        logger.info("Initializing database...")
        init_schoolhub()
        logger.info("Database initialized.")
    except Exception as e:
        logger.error(f"Startup DB error: {e}")
    yield
    logger.info("Shutting down...")


app = FastAPI(title="SchoolHub API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_origin_regex=settings.cors_origin_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _field_name(loc) -> str:
    parts = [str(part) for part in loc if part not in ("body", "query", "path", "header", "cookie")]
    return ".".join(parts) or "body"


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content=failure(str(exc.detail)), headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    missing = [_field_name(err["loc"]) for err in errors if err.get("type") == "missing"]
    if missing:
        return JSONResponse(status_code=400, content=failure(f"Missing required fields: {', '.join(missing)}"))
    invalid = list(dict.fromkeys(_field_name(err["loc"]) for err in errors))
    first = errors[0].get("msg") if errors else None
    return JSONResponse(
        status_code=400,
        content=failure(f"Invalid value for field(s): {', '.join(invalid)}", first),
    )


@app.exception_handler(IntegrityError)
async def integrity_exception_handler(request: Request, exc: IntegrityError):
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(status_code=409, content=failure("Record conflicts with existing data"))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=failure("Internal server error", str(exc)))


for router in routers:
    app.include_router(router)


@app.get("/health")
def health_check():
    """Report that the API is up and whether the database answers."""
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        db_status = f"error: {str(e)}"

    return {
        "status": "healthy",
        "message": "SchoolHub API is running",
        "environment": "production" if settings.is_production else "development",
        "database": db_status,
        "timestamp": datetime.now().isoformat(),
    }
