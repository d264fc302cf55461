"""
Scheduled syncs

Runs the same sync as ``python -m tvepg_sync`` on the configured cron
schedule while the API service is up, and keeps the result of the last
scheduled run.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from tvepg_sync.config import CustomSettings, settings
from tvepg_sync.services.sync_service import SyncPipeline, run_sync


logger = logging.getLogger(__name__)

JOB_ID = "tvepg_sync"


class SyncScheduler:
    """Cron-driven sync runner for the API service."""

    def __init__(
        self,
        config: CustomSettings | None = None,
        pipeline_factory: Callable[[CustomSettings], SyncPipeline] = SyncPipeline,
    ) -> None:
        self.config = config or settings
        self._pipeline_factory = pipeline_factory
        self._scheduler: AsyncIOScheduler | None = None
        self.last_result: dict | None = None

    @property
    def running(self) -> bool:
        return bool(self._scheduler and self._scheduler.running)

    async def run_scheduled_sync(self) -> dict:
        """Job body: one full sync, then a report of what it produced."""
        result = await run_sync(self._pipeline_factory(self.config), trigger="scheduled")
        self.last_result = result

        if "error" in result:
            logger.error("Scheduled sync failed, previous artifacts kept: %s", result["error"])
        elif result.get("status") == "skipped":
            logger.info("Scheduled sync skipped: %s", result["message"])
        else:
            logger.info(
                "Scheduled sync wrote %s streams and %s channels / %s programmes in %.1fs",
                result["streams_written"],
                result["guide_channels"],
                result["guide_programmes"],
                result["duration_seconds"],
            )
            skipped = result["guide_channels_skipped"]
            if skipped:
                logger.warning(
                    "Scheduled sync left out %s guide channel(s): %s",
                    len(skipped),
                    ", ".join(skipped),
                )

        next_time = self.next_run_time()
        if next_time:
            logger.info("Next scheduled sync: %s", next_time.isoformat())
        return result

    def start(self) -> bool:
        """
        Register the cron job and start the scheduler.

        Returns:
            False when scheduling is disabled in the settings
        """
        if not self.config.scheduler_enabled:
            logger.info("Scheduler disabled, syncs run only via POST /sync or the CLI")
            return False

        if self.running:
            logger.warning("Scheduler already running")
            return True

        self._scheduler = AsyncIOScheduler(timezone=self.config.guide_timezone)
        self._scheduler.add_job(
            self.run_scheduled_sync,
            trigger=CronTrigger.from_crontab(self.config.sync_cron, timezone=self.config.guide_timezone),
            id=JOB_ID,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=self.config.sync_misfire_grace_sec,
        )
        self._scheduler.start()

        next_time = self.next_run_time()
        logger.info(
            "Scheduler started (%s %s). Next sync: %s",
            self.config.sync_cron,
            self.config.guide_timezone,
            next_time.isoformat() if next_time else "unknown",
        )
        return True

    def shutdown(self) -> None:
        if self.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")
        self._scheduler = None

    def next_run_time(self) -> datetime | None:
        if not self._scheduler:
            return None
        job = self._scheduler.get_job(JOB_ID)
        return job.next_run_time if job else None


sync_scheduler = SyncScheduler()
