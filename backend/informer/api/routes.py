"""
FastAPI routes for The Actual Informer API.
"""
from typing import Annotated, Any, Optional

import structlog
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse

from informer.config import Settings
from informer.core.categories import parse_category
from informer.errors import ConfigurationError, ValidationError
from informer.jobs import scheduler_status
from informer.models.domain import (
    ArticleListResponse,
    ArticleResponse,
    CategoryFilter,
    ExplanationResponse,
    IngestionResult,
    PoliticalBias,
    RewritePreviewResponse,
)
from informer.services.ingestion import IngestionPipeline
from informer.services.processing import ArticleProcessor
from informer.storage.articles import ArticleStore

logger = structlog.get_logger(__name__)
router = APIRouter()

# Set by the application lifespan
_services: dict[str, Any] = {}


def set_services(**services: Any) -> None:
    _services.update(services)


def clear_services() -> None:
    _services.clear()


def _service(name: str) -> Any:
    service = _services.get(name)
    if service is None:
        raise ConfigurationError(f"Service '{name}' is not initialized")
    return service


def get_store() -> ArticleStore:
    return _service("store")


def get_pipeline() -> IngestionPipeline:
    return _service("pipeline")


def get_processor() -> ArticleProcessor:
    return _service("processor")


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def get_runtime_status() -> dict:
    """Rate limiter and scheduler snapshot."""
    rate_limiter = _services.get("rate_limiter")
    return {
        "rate_limiter": rate_limiter.get_status() if rate_limiter else None,
        "scheduler": scheduler_status(_services.get("scheduler")),
    }


StoreDep = Annotated[ArticleStore, Depends(get_store)]
PipelineDep = Annotated[IngestionPipeline, Depends(get_pipeline)]
ProcessorDep = Annotated[ArticleProcessor, Depends(get_processor)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]


def parse_category_filter(category: Optional[str]) -> CategoryFilter:
    """``None`` or ``all`` selects every category."""
    if category is None or category.strip().lower() in ("", "all"):
        return CategoryFilter.all()

    resolved = parse_category(category)
    if resolved is None:
        raise ValidationError(f"Unknown category: {category}")
    return CategoryFilter.named(resolved)


def _ingestion_response(result: IngestionResult) -> ArticleListResponse:
    if result.from_cache:
        message = "Returning articles already fetched today"
    elif result.success:
        message = f"Fetched {result.fetched} articles, {result.stored} stored"
    else:
        message = "News provider unavailable, returning stored articles"

    return ArticleListResponse(
        success=result.success,
        message=message,
        count=len(result.articles),
        data=result.articles,
        ingestion_status=result.status,
        from_cache=result.from_cache,
        reason=result.reason,
    )


# ============================================================================
# Article Routes
# ============================================================================


@router.get("/articles", response_model=ArticleListResponse)
async def list_articles(
    store: StoreDep,
    settings: SettingsDep,
    category: Optional[str] = None,
    limit: Optional[int] = Query(default=None, ge=1),
):
    """Newest stored articles, optionally for one category."""
    limit = min(limit or settings.default_page_size, settings.max_page_size)
    articles = await store.find_by_category(parse_category_filter(category), limit=limit)
    return ArticleListResponse(count=len(articles), data=articles)


@router.get("/articles/all", response_model=ArticleListResponse)
async def list_all_articles(store: StoreDep, category: Optional[str] = None):
    """Every stored article, without a limit."""
    articles = await store.find_by_category(parse_category_filter(category), limit=None)
    return ArticleListResponse(count=len(articles), data=articles)


@router.post("/articles/fetch", response_model=ArticleListResponse)
async def fetch_articles(
    pipeline: PipelineDep,
    settings: SettingsDep,
    category: str = "top",
    page_size: Optional[int] = Query(default=None, ge=1, le=50),
):
    """
    Fetch the latest articles for a category from the news provider.

    Served from the store when the category was already fetched today.
    """
    result = await pipeline.fetch_category(category, page_size or settings.default_page_size)
    return _ingestion_response(result)


@router.post("/articles/fetch-all", response_model=ArticleListResponse)
async def fetch_all_articles(
    pipeline: PipelineDep,
    settings: SettingsDep,
    page_size: Optional[int] = Query(default=None, ge=1, le=50),
):
    result = await pipeline.fetch_all_categories(page_size or settings.default_page_size)
    return _ingestion_response(result)


@router.post("/articles/process-pending")
async def process_pending_articles(
    processor: ProcessorDep,
    bias: PoliticalBias = PoliticalBias.NEUTRAL,
    limit: int = Query(default=5, ge=1, le=50),
):
    processed = await processor.process_pending(bias, limit=limit)
    return {
        "success": True,
        "message": f"Processed {processed} articles",
        "count": processed,
    }


@router.get("/articles/{article_id}", response_model=ArticleResponse)
async def get_article(article_id: str, store: StoreDep):
    article = await store.find_by_id(article_id)
    return ArticleResponse(data=article)


@router.delete("/articles/{article_id}")
async def delete_article(article_id: str, store: StoreDep):
    await store.delete_by_id(article_id)
    return {"success": True, "message": "Article deleted successfully"}


@router.post("/articles/{article_id}/transform", response_model=ArticleResponse)
async def transform_article(
    article_id: str,
    processor: ProcessorDep,
    bias: str = Query(...),
    force: bool = False,
    image: Optional[bool] = None,
    audio: Optional[bool] = None,
):
    """
    Rewrite an article with a political bias.

    Repeating the call with the same bias returns the stored rewrite unless
    ``force`` is set.
    """
    article = await processor.rewrite(
        article_id,
        bias,
        force=force,
        generate_image=image,
        generate_audio=audio,
    )
    return ArticleResponse(message=f"Article transformed to {article.political_bias.value} bias", data=article)


@router.post("/articles/{article_id}/explanation", response_model=ExplanationResponse)
async def explain_article(article_id: str, processor: ProcessorDep):
    article = await processor.explain(article_id)
    return ExplanationResponse(
        article_id=article.id,
        title=article.title,
        explanation=article.explanation or "",
    )


@router.post("/articles/{article_id}/rewrite-extreme-left", response_model=RewritePreviewResponse)
async def rewrite_extreme_left(article_id: str, processor: ProcessorDep):
    content = await processor.preview_rewrite(article_id, PoliticalBias.LEFT)
    return RewritePreviewResponse(article_id=article_id, bias=PoliticalBias.LEFT, rewritten_content=content)


@router.post("/articles/{article_id}/rewrite-extreme-right", response_model=RewritePreviewResponse)
async def rewrite_extreme_right(article_id: str, processor: ProcessorDep):
    content = await processor.preview_rewrite(article_id, PoliticalBias.RIGHT)
    return RewritePreviewResponse(article_id=article_id, bias=PoliticalBias.RIGHT, rewritten_content=content)


@router.get("/articles/{article_id}/speech")
async def article_speech(article_id: str, processor: ProcessorDep):
    """Stream the article read aloud as mp3."""
    chunks = await processor.speech_stream(article_id)
    return StreamingResponse(chunks, media_type="audio/mpeg")


# ============================================================================
# Admin Routes
# ============================================================================


@router.post("/admin/cleanup")
async def cleanup_articles(
    store: StoreDep,
    settings: SettingsDep,
    keep: Optional[int] = Query(default=None, ge=0),
):
    """Delete everything but the most recently published articles."""
    keep_count = settings.daily_keep_count if keep is None else keep
    deleted = await store.prune(keep_count)
    return {
        "success": True,
        "message": f"Deleted {deleted} articles, kept the {keep_count} most recent",
        "deleted": deleted,
        "remaining": await store.count(),
    }


@router.get("/admin/status")
async def admin_status(
    store: StoreDep,
    runtime: Annotated[dict, Depends(get_runtime_status)],
):
    return {
        "success": True,
        "articles": {
            "total": await store.count(),
            "by_status": await store.status_counts(),
        },
        **runtime,
    }
