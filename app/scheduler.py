"""
Background Scheduler
====================
Runs one recurring job:

  refresh_all_schedules — at startup, then every SCHEDULE_REFRESH_MINUTES
      • calls warm_schedule on one connector per resort
      • the schedule cache only refetches once its 12 h lifetime is up,
        so most runs are cache hits and cost nothing

Live wait times are not polled: they are fetched per request.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
import logging
from datetime import datetime, timezone

from app.config import SCHEDULE_REFRESH_MINUTES
from app.parks import PARKS

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler(timezone="UTC")


def start_scheduler():
    scheduler.add_job(
        refresh_all_schedules,
        trigger=IntervalTrigger(minutes=SCHEDULE_REFRESH_MINUTES),
        id="refresh_schedules",
        name=f"Refresh resort schedules (every {SCHEDULE_REFRESH_MINUTES} min)",
        replace_existing=True,
        next_run_time=datetime.now(timezone.utc),  # run immediately on startup
    )
    scheduler.start()
    logger.info(f"Scheduler started, schedules: every {SCHEDULE_REFRESH_MINUTES} min")


def stop_scheduler():
    scheduler.shutdown(wait=False)
    logger.info("Scheduler stopped.")


# ──────────────────────────────────────────────
# Job: schedules
# ──────────────────────────────────────────────

async def refresh_all_schedules(parks=None):
    parks = PARKS if parks is None else parks
    logger.info("─── refresh_all_schedules started ───")

    # parks of one resort share a schedule cache entry
    seen = set()
    for park_id, connector in parks.items():
        resort = connector.config.venue_id
        if resort in seen:
            continue
        seen.add(resort)
        try:
            await connector.warm_schedule()
        except Exception as e:
            logger.error(f"[{park_id}] Schedule refresh failed: {e}", exc_info=True)
    logger.info("─── refresh_all_schedules done ───")
