"""Background jobs run by the application scheduler."""
from informer.jobs.daily_ingestion import (
    build_scheduler,
    run_auto_process,
    run_daily_ingestion,
    scheduler_status,
)

__all__ = [
    "build_scheduler",
    "run_auto_process",
    "run_daily_ingestion",
    "scheduler_status",
]
