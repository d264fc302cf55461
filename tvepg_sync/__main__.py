"""
One-shot sync for cron or CI

Runs a single playlist import and guide scrape, then exits. The exit status
is non-zero when a primary source was unreachable.
"""
import asyncio
import logging
import sys

from tvepg_sync.config import settings, setup_logging
from tvepg_sync.services.sync_service import SyncError, SyncPipeline


logger = logging.getLogger("tvepg_sync")


def main() -> int:
    setup_logging()
    settings.log_summary()

    try:
        summary = asyncio.run(SyncPipeline().run())
    except SyncError as exc:
        logger.error(f"Sync failed: {exc}")
        return 1

    result = summary.to_dict()
    logger.info(
        f"Done - {result['streams_written']} streams -> {result['playlist_path']}, "
        f"{result['guide_channels']} channels / {result['guide_programmes']} programmes -> {result['guide_path']}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
