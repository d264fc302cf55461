"""
Shared dataclasses used across the playlist import and guide scraping pipeline.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


@dataclass(slots=True)
class StreamEntry:
    """One #EXTINF record of a playlist together with its stream URL."""
    raw_identifier: str | None
    display_attributes: dict[str, str] = field(default_factory=dict)
    display_name: str = ""
    stream_url: str | None = None


@dataclass(slots=True)
class GuideChannel:
    """Channel definition emitted into the XMLTV document."""
    slug: str
    display_name: str


@dataclass(slots=True)
class ProgrammeEntry:
    """Single scheduled programme for a guide channel."""
    channel_slug: str
    start_timestamp: str
    title: str


@dataclass(slots=True)
class ChannelOutcome:
    """Result of scraping one channel detail page."""
    slug: str
    status: Literal["success", "failed"]
    channel: GuideChannel | None = None
    programmes: list[ProgrammeEntry] = field(default_factory=list)
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == "success"


@dataclass(slots=True)
class GuideDocument:
    """Channels and programmes collected during one scrape run."""
    channels: list[GuideChannel] = field(default_factory=list)
    programmes: list[ProgrammeEntry] = field(default_factory=list)
    skipped_slugs: list[str] = field(default_factory=list)


__all__ = [
    "StreamEntry",
    "GuideChannel",
    "ProgrammeEntry",
    "ChannelOutcome",
    "GuideDocument",
]
