"""
Main FastAPI application for The Actual Informer.
"""
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from informer.api.routes import clear_services, router, set_services
from informer.config import Settings, get_settings
from informer.core.logging import configure_logging
from informer.errors import InformerError
from informer.jobs import build_scheduler
from informer.models.database import Database
from informer.services.ingestion import IngestionPipeline
from informer.services.news.client import NewsDataClient
from informer.services.news.rate_limiter import RateLimiter
from informer.services.processing import ArticleProcessor
from informer.services.transformation import ImageGenerator, SpeechSynthesizer, TextRewriter
from informer.storage.articles import ArticleStore

logger = structlog.get_logger(__name__)


def build_services(settings: Settings, database: Database) -> dict:
    """Wire the store, provider client, pipeline and processor together."""
    rate_limiter = RateLimiter(settings.news.min_request_interval_seconds)
    client = NewsDataClient(settings.news, rate_limiter)
    store = ArticleStore(database)

    pipeline = IngestionPipeline(
        client,
        store,
        category_delay=settings.news.category_delay_seconds,
        max_page_size_per_category=settings.news.max_page_size_per_category,
    )
    processor = ArticleProcessor(
        store,
        TextRewriter(settings),
        ImageGenerator(settings),
        SpeechSynthesizer(settings),
        settings,
    )
    return {
        "rate_limiter": rate_limiter,
        "client": client,
        "store": store,
        "pipeline": pipeline,
        "processor": processor,
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - handles startup and shutdown."""
    settings: Settings = app.state.settings

    logger.info("Initializing database", url=settings.database_url)
    database = Database(settings.database_url, echo=settings.debug)
    await database.create_tables()
    Path(settings.media_dir).mkdir(parents=True, exist_ok=True)

    services = build_services(settings, database)
    if not services["client"].has_api_key():
        logger.warning("NEWS_API_KEY is not set; provider fetches will fail")

    scheduler = None
    if settings.scheduler_enabled:
        scheduler = build_scheduler(settings, services["pipeline"], services["processor"])
        scheduler.start()
        logger.info(
            "Scheduler started",
            daily_job_time=f"{settings.daily_job_hour:02d}:{settings.daily_job_minute:02d} UTC",
            auto_process_minutes=settings.auto_process_interval_minutes,
        )

    set_services(database=database, scheduler=scheduler, **services)

    yield

    logger.info("Shutting down")
    if scheduler is not None:
        scheduler.shutdown(wait=False)
    clear_services()
    await database.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level, json_output=settings.environment != "development")

    app = FastAPI(
        title=settings.app_name,
        description="Daily news, rewritten through a political lens of your choosing.",
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(InformerError)
    async def informer_error_handler(request: Request, exc: InformerError):
        if exc.status_code >= 500:
            logger.error("Request failed", path=request.url.path, error=exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.message},
        )

    app.include_router(router, prefix="/api/v1")

    # Created on startup
    app.mount(
        settings.media_url_path,
        StaticFiles(directory=settings.media_dir, check_dir=False),
        name="media",
    )

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": "actual-informer",
            "version": settings.app_version,
        }

    @app.get("/")
    async def root():
        """Root endpoint with API info."""
        return {
            "name": f"{settings.app_name} API",
            "version": settings.app_version,
            "docs": "/docs",
            "endpoints": {
                "articles": "/api/v1/articles",
                "fetch": "/api/v1/articles/fetch",
                "fetch_all": "/api/v1/articles/fetch-all",
                "transform": "/api/v1/articles/{id}/transform",
                "speech": "/api/v1/articles/{id}/speech",
                "status": "/api/v1/admin/status",
            },
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "informer.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
