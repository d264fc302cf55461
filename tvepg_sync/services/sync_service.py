"""
Sync Service

Runs one complete sync: imports the stream playlist, scrapes the guide and
writes both artifacts. Downloads live in a run-scoped temporary directory
that is removed when the run ends, successful or not.
"""
from __future__ import annotations

import logging
import tempfile
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path

import httpx

from tvepg_sync.config import CustomSettings, settings as default_settings
from tvepg_sync.services.fetch_coordinator import SyncTrigger, get_sync_coordinator
from tvepg_sync.services.fetch_types import GuideDocument
from tvepg_sync.services.guide_scraper import GuideScraper
from tvepg_sync.services.identifier_mapper import IdentifierMapper
from tvepg_sync.services.playlist_importer import parse_stream_entries, rewrite_playlist
from tvepg_sync.services.xmltv_writer_service import build_xmltv_document
from tvepg_sync.utils.file_operations import download_file, read_text_file, write_text_file
from tvepg_sync.utils.logging_helpers import (
    log_guide_summary,
    log_playlist_summary,
    log_section_end,
    log_section_start,
    log_sync_end,
    log_sync_start,
)
from tvepg_sync.utils.timezone import today_in


logger = logging.getLogger(__name__)


class SyncError(RuntimeError):
    """Raised when a primary source (stream playlist or guide index) is unreachable."""


@dataclass(slots=True)
class PlaylistResult:
    text: str
    streams_fetched: int
    streams_written: int
    table_matches: int
    derived_slugs: int


@dataclass(slots=True)
class SyncSummary:
    started_at: datetime
    completed_at: datetime | None = None
    playlist: PlaylistResult | None = None
    guide: GuideDocument = field(default_factory=GuideDocument)
    playlist_path: Path | None = None
    guide_path: Path | None = None

    @property
    def duration_seconds(self) -> float:
        if self.completed_at is None:
            return 0.0
        return max(0.0, (self.completed_at - self.started_at).total_seconds())

    def to_dict(self) -> dict:
        return {
            "status": "success",
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "streams_fetched": self.playlist.streams_fetched if self.playlist else 0,
            "streams_written": self.playlist.streams_written if self.playlist else 0,
            "streams_table_mapped": self.playlist.table_matches if self.playlist else 0,
            "streams_derived": self.playlist.derived_slugs if self.playlist else 0,
            "guide_channels": len(self.guide.channels),
            "guide_programmes": len(self.guide.programmes),
            "guide_channels_skipped": list(self.guide.skipped_slugs),
            "playlist_path": str(self.playlist_path) if self.playlist_path else None,
            "guide_path": str(self.guide_path) if self.guide_path else None,
        }


class SyncPipeline:
    """Coordinates playlist import, guide scrape and artifact output for one run."""

    def __init__(
        self,
        config: CustomSettings | None = None,
        *,
        mapper: IdentifierMapper | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        today: date | None = None,
    ) -> None:
        self.config = config or default_settings
        self.mapper = mapper or IdentifierMapper.from_settings(self.config.id_map_path)
        self._transport = transport
        self._today = today

    async def run(self) -> SyncSummary:
        """
        Execute the sync.

        Raises:
            SyncError: If the stream playlist or the guide index can't be fetched.
                Nothing is written in that case.
        """
        summary = SyncSummary(started_at=datetime.now(timezone.utc))

        with tempfile.TemporaryDirectory(prefix="tvepg_sync_") as tmp:
            work_dir = Path(tmp)
            async with httpx.AsyncClient(
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                summary.playlist = await self._import_playlist(client, work_dir)
                summary.guide = await self._scrape_guide(client, work_dir)

        # Both artifacts are fully rendered before either file is touched
        guide_xml = build_xmltv_document(
            summary.guide,
            source_name=self.config.guide_source_name,
            generator_name=self.config.guide_generator_name,
            title_lang=self.config.guide_title_lang,
        )
        summary.playlist_path = await write_text_file(
            Path(self.config.playlist_output_path),
            summary.playlist.text,
        )
        summary.guide_path = await write_text_file(
            Path(self.config.guide_output_path),
            guide_xml,
        )

        summary.completed_at = datetime.now(timezone.utc)
        return summary

    async def _import_playlist(self, client: httpx.AsyncClient, work_dir: Path) -> PlaylistResult:
        log_section_start(logger, "stream playlist import")
        try:
            source_file = await download_file(
                client,
                self.config.stream_source_url,
                work_dir / "streams.m3u",
                timeout=self.config.index_fetch_timeout_sec,
                max_retries=self.config.fetch_max_retries,
            )
        except httpx.HTTPError as exc:
            logger.error("Failed to fetch stream playlist %s: %s", self.config.stream_source_url, exc)
            raise SyncError(f"Stream playlist unavailable: {exc}") from exc

        source_text = await read_text_file(source_file)
        source_entries = parse_stream_entries(source_text)
        cleaned = rewrite_playlist(source_text, self.mapper)

        origins = Counter(
            self.mapper.resolve(entry.raw_identifier)[1]
            for entry in source_entries
            if entry.raw_identifier
        )
        result = PlaylistResult(
            text=cleaned,
            streams_fetched=len(source_entries),
            streams_written=len(parse_stream_entries(cleaned)),
            table_matches=origins["table"],
            derived_slugs=origins["derived"],
        )
        log_playlist_summary(logger, result.streams_fetched, result.table_matches, result.derived_slugs)
        log_section_end(logger, "stream playlist import")
        return result

    async def _scrape_guide(self, client: httpx.AsyncClient, work_dir: Path) -> GuideDocument:
        log_section_start(logger, "guide scrape")
        scraper = GuideScraper(
            index_url=self.config.guide_index_url,
            channel_path=self.config.guide_channel_path,
            work_dir=work_dir,
            today=self._today or today_in(self.config.guide_timezone),
            utc_offset=self.config.guide_utc_offset,
            index_timeout=self.config.index_fetch_timeout_sec,
            channel_timeout=self.config.channel_fetch_timeout_sec,
            courtesy_delay=self.config.courtesy_delay_sec,
            max_retries=self.config.fetch_max_retries,
        )
        try:
            guide = await scraper.run(client)
        except httpx.HTTPError as exc:
            logger.error("Failed to fetch guide index %s: %s", self.config.guide_index_url, exc)
            raise SyncError(f"Guide index unavailable: {exc}") from exc

        log_guide_summary(logger, len(guide.channels), len(guide.programmes), guide.skipped_slugs)
        log_section_end(logger, "guide scrape")
        return guide


async def run_sync(
    pipeline: SyncPipeline | None = None,
    *,
    trigger: SyncTrigger = "manual",
) -> dict:
    """
    Entry point for the API and the scheduler.

    Returns:
        Summary dictionary, a skip message if a sync is already running, or
        {"error": ...} if the sync failed.
    """
    async def _sync() -> dict:
        log_sync_start(logger)
        try:
            summary = await (pipeline or SyncPipeline()).run()
        except SyncError as exc:
            logger.error("Sync aborted: %s", exc)
            return {"error": str(exc)}
        except Exception as exc:  # Keep API and scheduler alive
            logger.error("Unexpected error during sync: %s", exc, exc_info=True)
            return {"error": str(exc)}
        log_sync_end(logger)
        return summary.to_dict()

    return await get_sync_coordinator().execute(_sync, trigger=trigger)
