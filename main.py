import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

import reviews
import tours
import users
from config import settings
from database import close_client, ensure_indexes, get_db
from errors import register_exception_handlers
from logging_config import setup_logging

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_indexes()
    logger.info("%s started (%s)", settings.APP_NAME, settings.ENVIRONMENT)
    yield
    close_client()


app = FastAPI(title=settings.APP_NAME, version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    request.state.request_time = time.time()
    response = await call_next(request)
    if settings.is_development:
        elapsed_ms = (time.time() - request.state.request_time) * 1000
        logger.info(
            "%s %s %d %.1f ms",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
    return response


register_exception_handlers(app)

app.include_router(tours.router, prefix="/api/v1/tours", tags=["tours"])
app.include_router(users.router, prefix="/api/v1/users", tags=["users"])
app.include_router(reviews.router, prefix="/api/v1/reviews", tags=["reviews"])


@app.get("/")
def read_root():
    return {"service": settings.APP_NAME, "version": app.version, "status": "active"}


@app.get("/health")
def health_check():
    """Check that the database is reachable and list a few collections."""
    response = {
        "backend": "running",
        "database": "not available",
        "database_name": settings.DATABASE_NAME,
        "collections": [],
    }
    try:
        collections = get_db().list_collection_names()
        response["collections"] = collections[:10]
        response["database"] = "connected"
    except Exception as e:
        logger.warning("Database health check failed: %s", e)
        response["database"] = f"error: {str(e)[:50]}"
    return response


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", settings.PORT))
    uvicorn.run(app, host=settings.HOST, port=port)
