"""
Structured logging helpers for consistent log formatting.
"""
import logging
from collections.abc import Sequence
from datetime import datetime, timezone


def log_section_start(logger: logging.Logger, section_name: str) -> None:
    """
    Log the start of a processing section.

    Args:
        logger: Logger instance
        section_name: Name of the section being started
    """
    logger.info(f"Starting: {section_name}")


def log_section_end(logger: logging.Logger, section_name: str) -> None:
    """
    Log the end of a processing section.

    Args:
        logger: Logger instance
        section_name: Name of the section being ended
    """
    logger.info(f"Completed: {section_name}")


def log_sync_start(logger: logging.Logger) -> None:
    """Log sync run start."""
    logger.info(f"Sync started at {datetime.now(timezone.utc).isoformat()}")


def log_sync_end(logger: logging.Logger) -> None:
    """Log sync run end."""
    logger.info(f"Sync completed at {datetime.now(timezone.utc).isoformat()}")


def log_playlist_summary(
    logger: logging.Logger,
    streams: int,
    table_matches: int,
    derived: int
) -> None:
    """
    Log stream import summary.

    Args:
        logger: Logger instance
        streams: Number of streams in the source playlist
        table_matches: Identifiers resolved through the mapping table
        derived: Identifiers resolved through slug derivation
    """
    logger.info(
        f"Playlist summary - Streams: {streams}, mapped: {table_matches}, derived: {derived}"
    )


def log_guide_summary(
    logger: logging.Logger,
    channels_count: int,
    programmes_count: int,
    skipped: Sequence[str]
) -> None:
    """
    Log guide scrape summary.

    Args:
        logger: Logger instance
        channels_count: Channels written to the guide
        programmes_count: Programmes written to the guide
        skipped: Slugs whose channel page could not be fetched
    """
    logger.info(
        f"Guide summary - Channels: {channels_count}, Programmes: {programmes_count}, "
        f"Skipped: {len(skipped)}"
    )
    if skipped:
        logger.info(f"Skipped channels: {', '.join(skipped)}")
