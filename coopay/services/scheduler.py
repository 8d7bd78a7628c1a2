"""Background scheduler for season rollover."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from coopay.core.config import settings
from coopay.db.base import SessionLocal
from coopay.services.season import rollover_seasons

logger = logging.getLogger(__name__)

scheduler: AsyncIOScheduler | None = None


def run_season_rollover() -> None:
    """Activate the current season everywhere and auto-apply its fees."""
    db = SessionLocal()
    try:
        activations = rollover_seasons(db)
        if activations:
            logger.info(f"Scheduler activated {len(activations)} season(s)")
    except Exception:
        db.rollback()
        logger.exception("Error in season rollover")
    finally:
        db.close()


def start_scheduler() -> None:
    """Create and start the background scheduler."""
    global scheduler
    interval = settings.SCHEDULER_INTERVAL_MINUTES

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        run_season_rollover,
        trigger=IntervalTrigger(minutes=interval),
        id="run_season_rollover",
        name="Season rollover & seasonal fee auto-apply",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(f"Background scheduler started with interval={interval} minutes")


def stop_scheduler() -> None:
    """Shut down the background scheduler gracefully."""
    global scheduler
    if scheduler and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Background scheduler stopped")
        scheduler = None


def get_scheduler_status() -> dict:
    """Return current scheduler state."""
    if not scheduler or not scheduler.running:
        return {"running": False, "interval_minutes": None, "jobs": []}

    jobs = []
    for job in scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
        })
    return {
        "running": True,
        "interval_minutes": settings.SCHEDULER_INTERVAL_MINUTES,
        "jobs": jobs,
    }
