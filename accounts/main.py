"""FastAPI module wiring for the account service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from psycopg_pool import ConnectionPool
import redis

from .config import Settings, get_settings
from .domain.errors import NotFoundError, StorageError, ValidationError
from .domain.service import AccountService
from .events.bus import ThreadedEventBus
from .events.redis_bus import RedisEventBus
from .repository import AccountStore
from .storage import DocumentCollection

logger = logging.getLogger(__name__)

settings = get_settings()
logging.getLogger("accounts").setLevel(settings.log_level)


def _build_event_bus(config: Settings) -> ThreadedEventBus | RedisEventBus:
    """Instantiate the configured event bus backend, preferring Redis when available."""
    if config.event_bus_backend == "redis" and config.redis_url:
        try:
            client = redis.from_url(config.redis_url)
            # fail fast at startup rather than dropping every event later
            client.ping()
            logger.info("event bus configured for redis channel %s", config.event_channel)
            return RedisEventBus(client, channel=config.event_channel)
        except redis.RedisError as exc:
            logger.warning("redis event bus unavailable, falling back to in-memory: %s", exc)

    logger.info("event bus using in-memory backend")
    return ThreadedEventBus()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialise shared resources (Postgres pool, event bus, services) for the app lifecycle."""
    pool = ConnectionPool(settings.database_url, open=False)
    pool.open()
    collection = DocumentCollection(pool, settings.accounts_collection)
    collection.ensure_schema()
    events = _build_event_bus(settings)
    app.state.pool = pool
    app.state.event_bus = events
    app.state.account_service = AccountService(
        AccountStore(collection, events, work_factor=settings.password_work_factor)
    )
    try:
        yield
    finally:
        if isinstance(events, ThreadedEventBus):
            events.shutdown()
        pool.close()


def get_account_service(request: Request) -> AccountService:
    """Resolve the `AccountService` stored on the FastAPI application state."""
    service: AccountService = request.app.state.account_service
    return service


def register_exception_handlers(app: FastAPI) -> None:
    """Map account errors raised inside routes to HTTP responses."""

    async def not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    async def invalid(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": str(exc)})

    async def unavailable(request: Request, exc: StorageError) -> JSONResponse:
        logger.error("storage failure serving %s: %s", request.url.path, exc.__cause__ or exc)
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": "storage unavailable"})

    app.add_exception_handler(NotFoundError, not_found)
    app.add_exception_handler(ValidationError, invalid)
    app.add_exception_handler(StorageError, unavailable)


app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)
register_exception_handlers(app)


@app.get("/healthz", tags=["health"])
def healthz() -> dict[str, str]:
    """Return a minimal readiness indicator used by orchestration systems."""
    return {"status": "ok"}


@app.get("/metrics")
def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
