"""
FastAPI main application for the Library Management API.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import books, borrow
from api.dependencies import get_db_manager
from api.error_handlers import register_exception_handlers
from api.models import APIResponse, HealthStatus, respond
from library.database import MongoDBManager
from library.errors import StorageConnectionError
from utilities.config import config
from utilities.logger import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug,
    )
    logger.info("Starting Library Management API", environment=config.environment, port=config.port)

    manager = get_db_manager()
    if config.is_production():
        # Connections are made lazily by the first request
        logger.info("Production mode, deferring database connection")
    else:
        await manager.connect()

    yield

    logger.info("Shutting down Library Management API")
    await manager.disconnect()


app = FastAPI(
    title=config.api_title,
    description="""
    REST API for a small library: book records and borrow transactions.

    ## Features

    * **Books**: create, list (genre filter, sort, limit), fetch, update and delete
    * **Borrowing**: take copies off the shelf without ever overdrawing them
    * **Summary**: total borrowed quantity per book
    """,
    version=config.api_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=config.cors_allow_credentials,
    allow_methods=config.cors_allow_methods,
    allow_headers=config.cors_allow_headers,
)

register_exception_handlers(app)

app.include_router(books.router, prefix=config.api_prefix)
app.include_router(borrow.router, prefix=config.api_prefix)


@app.get("/", response_model=APIResponse, tags=["Health"])
async def root():
    return respond("Library Management API is running", {"status": "OK"})


@app.get(f"{config.api_prefix}/health", response_model=APIResponse, tags=["Health"])
async def health_check(manager: MongoDBManager = Depends(get_db_manager)):
    """Liveness plus storage connection status; always answers 200."""
    now = datetime.now(timezone.utc)
    try:
        await manager.ensure_connected()
    except StorageConnectionError as e:
        health = HealthStatus(
            status="ERROR",
            db_connection="Failed",
            version=config.api_version,
            time=now,
            error=str(e.detail),
        )
        return respond("Database connection failed", health.model_dump(by_alias=True, mode="json"))

    info = await manager.health_check()
    health = HealthStatus(
        status="OK",
        db_connection="Connected" if info.get("status") == "connected" else "Not Connected",
        version=config.api_version,
        time=now,
        books_count=info.get("books_count"),
        borrows_count=info.get("borrows_count"),
        error=info.get("error"),
    )
    return respond("Library Management API is running", health.model_dump(by_alias=True, mode="json"))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=config.host,
        port=config.port,
        reload=True,
        log_level="info"
    )
