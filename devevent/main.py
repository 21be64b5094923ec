import logging

logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
)
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from devevent.config import get_settings
from devevent.controllers.bookings import router as bookings_router
from devevent.controllers.events import router as events_router
from devevent.controllers.health import router as health_router
from devevent.errors import register_exception_handlers
from devevent.lifespan import cleanup_resources, setup_resources
from devevent.middleware import HTTPLogMiddleware


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    resources = await setup_resources()
    try:
        yield
    finally:
        await cleanup_resources(resources)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="DevEvent API", version="1.0.0", lifespan=lifespan)
    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.http.origins,
        allow_origin_regex=settings.http.cors_origins_regex or None,
        allow_credentials=settings.http.allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.http.request_debug:
        logging.getLogger("devevent.http").setLevel(logging.DEBUG)
        app.add_middleware(HTTPLogMiddleware)

    app.include_router(health_router)
    app.include_router(events_router, prefix="/api")
    app.include_router(bookings_router, prefix="/api")

    if settings.http.enable_metrics:
        Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

    return app


app = create_app()
