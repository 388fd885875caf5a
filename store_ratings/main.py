import logging
from contextlib import asynccontextmanager

from prometheus_client import CollectorRegistry
from prometheus_fastapi_instrumentator import Instrumentator

from fastapi import FastAPI, Request
from fastapi.routing import APIRoute
from fastapi.middleware.cors import CORSMiddleware

from store_ratings.settings import Settings, settings as default_settings, app_logger
from store_ratings.api.root import root_router
from store_ratings.api.v1.router import api_v1_router
from store_ratings.services.db.engine import AsyncDbEngine, db_engine_check
from store_ratings.services.users import UserService


logger = logging.getLogger(__name__)


def custom_generate_unique_id(route: APIRoute):
    return f"{route.tags[0]}-{route.name}"


def create_app(
    settings: Settings | None = None,
    db_engine: AsyncDbEngine | None = None,
) -> FastAPI:
    settings = settings or default_settings
    db_engine = db_engine or AsyncDbEngine()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await db_engine_check(db_engine)
        await db_engine.create_tables()
        async with db_engine.create_session() as session:
            await UserService(session).ensure_admin(settings)
        logger.info("Database initialized")
        yield
        await db_engine.dispose()

    app = FastAPI(
        root_path=settings.ROOT_PATH or "",
        title=settings.APP_TITLE,
        version=settings.APP_VERSION,
        contact={
            "name": settings.APP_CONTACT_NAME,
            "email": str(settings.APP_CONTACT_EMAIL),
        },
        generate_unique_id_function=custom_generate_unique_id,
        openapi_url=settings.APP_OPENAPI_URL,
        docs_url=settings.APP_DOCS_URL,
        redoc_url=settings.APP_REDOC_URL,
        lifespan=lifespan,
        swagger_ui_oauth2_redirect_url=(
            settings.APP_DOCS_URL + "/oauth2-redirect" if settings.APP_DOCS_URL else None
        ),
    )
    app.state.settings = settings
    app.state.db_engine = db_engine

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        status = response.status_code
        app_logger.info(
            f"{request.method} {request.url.path}",
            extra={"status_code": status}
        )
        return response

    Instrumentator(
        should_ignore_untemplated=True,
        excluded_handlers=["/metrics"],
        registry=CollectorRegistry(),
    ).instrument(app).expose(
        app,
        endpoint="/metrics",
        include_in_schema=False,
        tags=["root"],
    )

    if settings.BACKEND_CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[str(origin).rstrip("/") for origin in settings.BACKEND_CORS_ORIGINS],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(api_v1_router)
    app.include_router(root_router)

    return app


app = create_app()
