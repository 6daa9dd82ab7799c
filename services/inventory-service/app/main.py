"""FastAPI application wiring for the inventory service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis
import uvicorn
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from .api.errors import register_exception_handlers
from .api.proxy import router as proxy_router
from .api.routes import router as inventory_router
from .api.session import router as session_router
from .config import Settings, get_settings
from .domain.service import InventoryService
from .logging_config import setup_logging
from .repository import AccountStore
from .security.gateway import AdminGateway
from .security.login_throttle import SlidingWindowLoginThrottle
from .security.redis_login_throttle import RedisLoginThrottle
from .upstream import UpstreamProxy

logger = logging.getLogger(__name__)

settings = get_settings()
setup_logging(settings.log_level)


def build_login_throttle(config: Settings) -> SlidingWindowLoginThrottle | RedisLoginThrottle:
    """Instantiate the configured throttle backend, preferring Redis when reachable."""
    if config.login_throttle_backend == "redis" and config.redis_url:
        try:
            client = redis.from_url(config.redis_url)
            client.ping()
            logger.info("login throttle configured for redis backend at %s", config.redis_url)
            return RedisLoginThrottle(
                client,
                max_failures=config.login_max_failures,
                window_seconds=config.login_window_seconds,
            )
        except redis.RedisError as exc:
            logger.warning("redis login throttle unavailable, falling back to in-memory: %s", exc)

    logger.info("login throttle using in-memory backend")
    return SlidingWindowLoginThrottle(
        max_failures=config.login_max_failures,
        window_seconds=config.login_window_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialise the store, gateway and upstream client for the app lifecycle."""
    store = AccountStore(settings.accounts_file)
    app.state.settings = settings
    app.state.inventory_service = InventoryService(store)
    app.state.gateway = AdminGateway(settings, throttle=build_login_throttle(settings))
    app.state.upstream_proxy = UpstreamProxy(settings)
    logger.info(
        "inventory service started (store=%s, upstream=%s, env=%s)",
        store.path,
        settings.upstream_base_url,
        settings.environment,
    )
    if settings.admin_password == "admin123":
        logger.warning("ADMIN_PASSWORD is not set, using the development default")
    try:
        yield
    finally:
        await app.state.upstream_proxy.aclose()


app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=600,
)

register_exception_handlers(app)
app.include_router(inventory_router)
app.include_router(session_router)
app.include_router(proxy_router)


@app.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def run() -> None:
    """Serve the application with uvicorn using the configured host and port."""
    uvicorn.run(app, host=settings.http_host, port=settings.http_port, log_config=None)


if __name__ == "__main__":
    run()
