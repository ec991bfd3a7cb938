"""
Scheduled jobs.

- Daily fetch of every category followed by store cleanup
- Optional interval job that transforms one pending article per tick
"""
from typing import Optional

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from informer.config import Settings
from informer.services.ingestion import IngestionPipeline
from informer.services.processing import ArticleProcessor

logger = structlog.get_logger(__name__)

DAILY_JOB_ID = "daily_ingestion"
AUTO_PROCESS_JOB_ID = "auto_process"


async def run_daily_ingestion(pipeline: IngestionPipeline, settings: Settings) -> Optional[dict]:
    """Fetch all categories and prune. Errors are logged, never raised."""
    try:
        stats = await pipeline.daily_fetch_and_clean(
            keep_count=settings.daily_keep_count,
            page_size=settings.default_page_size,
            retention_days=settings.retention_days,
        )
    except Exception as e:
        logger.error("Daily ingestion failed", error=str(e), exc_info=True)
        return None

    logger.info("Daily ingestion completed", stats=stats)
    return stats


async def run_auto_process(processor: ArticleProcessor, bias: str) -> int:
    """Transform the newest pending article, if any."""
    try:
        processed = await processor.process_pending(bias, limit=1)
    except Exception as e:
        logger.error("Auto-processing failed", error=str(e), exc_info=True)
        return 0

    if processed:
        logger.info("Auto-processed article", bias=bias)
    return processed


def build_scheduler(
    settings: Settings,
    pipeline: IngestionPipeline,
    processor: ArticleProcessor,
) -> AsyncIOScheduler:
    """Create the scheduler with the configured jobs. The caller starts it."""
    scheduler = AsyncIOScheduler(timezone="UTC")

    scheduler.add_job(
        run_daily_ingestion,
        CronTrigger(hour=settings.daily_job_hour, minute=settings.daily_job_minute, timezone="UTC"),
        args=[pipeline, settings],
        id=DAILY_JOB_ID,
        name="Daily News Ingestion",
        replace_existing=True,
    )

    if settings.auto_process_interval_minutes:
        scheduler.add_job(
            run_auto_process,
            IntervalTrigger(minutes=settings.auto_process_interval_minutes),
            args=[processor, settings.auto_process_bias],
            id=AUTO_PROCESS_JOB_ID,
            name="Auto-process Pending Articles",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

    return scheduler


def scheduler_status(scheduler: Optional[AsyncIOScheduler]) -> dict:
    if scheduler is None:
        return {"running": False, "jobs": []}

    jobs = []
    for job in scheduler.get_jobs():
        # Jobs added before start() have no next_run_time yet
        next_run = getattr(job, "next_run_time", None)
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run": next_run.isoformat() if next_run else None,
        })

    return {"running": scheduler.running, "jobs": jobs}
