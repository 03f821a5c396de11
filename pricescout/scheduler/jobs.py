"""
pricescout/scheduler/jobs.py

APScheduler-based scheduler for periodic scraping of configured sites.

Schedule (UTC)
--------------
  daily_site_scrape: SCRAPER_SCHEDULE_HOUR_UTC:00 every day (default 02:00)

Lifecycle
---------
Call ``build_scheduler()`` once to get a configured ``BackgroundScheduler``.
Start it on app boot; shut it down gracefully on app shutdown. The
scheduler is wired into FastAPI via the ``lifespan`` context in main.py.
"""

from __future__ import annotations

import asyncio
import logging
import threading

from apscheduler.schedulers.background import BackgroundScheduler

from pricescout.env import get_int_env
from pricescout.services.scrape_job_service import ScrapeJobService, get_scrape_job_service

logger = logging.getLogger(__name__)

_run_lock = threading.Lock()


def run_daily_site_scrape(service: ScrapeJobService | None = None) -> bool:
    """
    Scrape every enabled configured site once.

    Returns False without doing anything when a previous run is still in
    progress.
    """
    if not _run_lock.acquire(blocking=False):
        logger.warning("Scheduler: daily_site_scrape still running, skipping this trigger")
        return False

    try:
        logger.info("Scheduler: daily_site_scrape starting")
        job_service = service or get_scrape_job_service()
        try:
            summaries = asyncio.run(job_service.run_configured_sites())
        except (ValueError, FileNotFoundError) as exc:
            logger.warning("Scheduler: daily_site_scrape skipped: %s", exc)
            return True

        for summary in summaries:
            logger.info(
                "Scheduler: daily_site_scrape competitor=%r status=%s items=%d snapshots=%d",
                summary.competitor,
                summary.status,
                summary.result.total_items,
                summary.snapshots_recorded,
            )
        logger.info("Scheduler: daily_site_scrape complete")
        return True
    finally:
        _run_lock.release()


def build_scheduler() -> BackgroundScheduler:
    """
    Build and register all periodic jobs.

    Returns a configured but *not yet started* ``BackgroundScheduler``.
    """
    scheduler = BackgroundScheduler(timezone="UTC")
    hour = min(23, max(0, get_int_env("SCRAPER_SCHEDULE_HOUR_UTC", 2)))

    scheduler.add_job(
        run_daily_site_scrape,
        trigger="cron",
        hour=hour,
        minute=0,
        id="daily_site_scrape",
        name="Daily competitor site scrape",
        replace_existing=True,
        misfire_grace_time=3600,
        max_instances=1,
    )
    return scheduler
