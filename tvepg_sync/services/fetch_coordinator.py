"""
Sync Coordination

Serializes syncs started from the API and from the scheduler and remembers
the outcome of the most recent one for the health endpoint.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, Literal


logger = logging.getLogger(__name__)

SyncTrigger = Literal["manual", "scheduled"]


@dataclass(slots=True)
class SyncRecord:
    """Outcome of one finished sync."""
    trigger: SyncTrigger
    started_at: datetime
    completed_at: datetime
    status: Literal["success", "failed"]
    error: str | None = None
    skipped_channels: int = 0

    def to_dict(self) -> dict:
        return {
            "trigger": self.trigger,
            "status": self.status,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat(),
            "skipped_channels": self.skipped_channels,
            "error": self.error,
        }


class SyncCoordinator:
    """
    Runs at most one sync at a time.

    A request arriving while a sync is in progress is answered with a
    "skipped" result naming the trigger of the running sync; it is not queued.
    """

    def __init__(self) -> None:
        self._sync_lock = asyncio.Lock()
        self.running_trigger: SyncTrigger | None = None
        self.last_record: SyncRecord | None = None

    async def execute(
        self,
        sync_func: Callable[[], Awaitable[dict]],
        *,
        trigger: SyncTrigger = "manual",
    ) -> dict:
        """
        Run sync_func unless another sync holds the lock.

        Returns:
            The sync result dictionary, or a skip response
        """
        if self._sync_lock.locked():
            logger.warning(
                "%s sync requested while a %s sync is running, skipping",
                trigger.capitalize(),
                self.running_trigger,
            )
            return {
                "status": "skipped",
                "message": f"A {self.running_trigger} sync is already in progress",
            }

        async with self._sync_lock:
            self.running_trigger = trigger
            started_at = datetime.now(timezone.utc)
            try:
                result = await sync_func()
            finally:
                self.running_trigger = None

        self.last_record = SyncRecord(
            trigger=trigger,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc),
            status="failed" if "error" in result else "success",
            error=result.get("error"),
            skipped_channels=len(result.get("guide_channels_skipped", [])),
        )
        return result

    def is_running(self) -> bool:
        return self._sync_lock.locked()


_coordinator: SyncCoordinator | None = None


def get_sync_coordinator() -> SyncCoordinator:
    """Get or create the process-wide coordinator."""
    global _coordinator
    if _coordinator is None:
        _coordinator = SyncCoordinator()
    return _coordinator


def reset_sync_coordinator() -> None:
    """Drop the process-wide coordinator (tests only)."""
    global _coordinator
    _coordinator = None
