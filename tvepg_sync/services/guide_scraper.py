"""
Guide Scraper

Discovers channel pages on the tvepg.eu country index, scrapes each channel's
display name and schedule links, and collects them into a GuideDocument.
Channels are fetched one after another with a courtesy delay in between.
"""
from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable
from datetime import date
from pathlib import Path
from urllib.parse import urljoin, urlsplit

import httpx
import lxml.html
from lxml import etree  # type: ignore

from tvepg_sync.services.fetch_types import (
    ChannelOutcome,
    GuideChannel,
    GuideDocument,
    ProgrammeEntry,
)
from tvepg_sync.utils.file_operations import download_file, read_text_file
from tvepg_sync.utils.timezone import format_xmltv_timestamp, resolve_day_code


logger = logging.getLogger(__name__)

SLUG_PATTERN = r"[a-z0-9][a-z0-9-]*"

# Applied in order to the <title> text (already cut at the first "|")
TITLE_TRIMS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r" - .*$"), ""),
    (re.compile(r"^TVEpg\.eu – "), ""),
    (re.compile(r"TV Programm "), ""),
    (re.compile(r" heute$"), ""),
)

_HTML_PARSER = lxml.html.HTMLParser(encoding="utf-8")

HtmlInput = str | bytes | etree._Element


def parse_html(html: HtmlInput) -> etree._Element | None:
    """Parse an HTML page; returns None for empty or unparseable input."""
    if isinstance(html, etree._Element):
        return html
    data = html.encode("utf-8") if isinstance(html, str) else html
    if not data.strip():
        return None
    try:
        return lxml.html.document_fromstring(data, parser=_HTML_PARSER)
    except (etree.ParserError, etree.XMLSyntaxError) as exc:
        logger.debug(f"HTML parsing failed: {exc}")
        return None


def _link_paths(document: etree._Element):
    for anchor in document.iter("a"):
        href = anchor.get("href")
        if href:
            yield anchor, urlsplit(href.strip()).path


def discover_channel_slugs(index_html: HtmlInput, channel_path: str) -> list[str]:
    """
    Extract channel slugs from the index page

    Args:
        index_html: Country index page
        channel_path: Path prefix of channel pages, e.g. '/de/switzerland/c/'

    Returns:
        Unique slugs in lexicographic order
    """
    document = parse_html(index_html)
    if document is None:
        return []

    slug_re = re.compile(re.escape(channel_path) + f"({SLUG_PATTERN})")
    slugs = set()
    for _, path in _link_paths(document):
        match = slug_re.match(path)
        if match:
            slugs.add(match.group(1))
    return sorted(slugs)


def extract_display_name(channel_html: HtmlInput, slug: str) -> str:
    """Channel name from the page title, falling back to the slug"""
    document = parse_html(channel_html)
    if document is None:
        return slug

    raw_title = document.findtext(".//title") or ""
    name = " ".join(raw_title.split("|", 1)[0].split())
    for pattern, replacement in TITLE_TRIMS:
        name = pattern.sub(replacement, name, count=1)
    name = name.strip()

    return name or slug


def extract_programmes(
    channel_html: HtmlInput,
    slug: str,
    channel_path: str,
    today: date,
    utc_offset: str,
) -> list[ProgrammeEntry]:
    """
    Extract schedule entries from a channel page

    Schedule links look like '<channel_path><slug>/DDHHMM/...' with a title
    attribute of the form '<time> <programme title>'. DD is a relative day
    code, HHMM the local start time.

    Returns:
        Programme entries in page order
    """
    document = parse_html(channel_html)
    if document is None:
        return []

    link_re = re.compile(re.escape(f"{channel_path}{slug}/") + r"([0-9]{2})([0-9]{4})/")
    programmes: list[ProgrammeEntry] = []

    for anchor, path in _link_paths(document):
        match = link_re.match(path)
        if not match:
            continue

        title_attr = anchor.get("title")
        if title_attr is None:
            continue

        parts = title_attr.split(" ", 1)
        title = (parts[1] if len(parts) > 1 else parts[0]).strip()
        if not title:
            logger.debug(f"Skipping schedule link without title on {slug}: {path}")
            continue

        day_code, time_code = match.groups()
        programmes.append(ProgrammeEntry(
            channel_slug=slug,
            start_timestamp=format_xmltv_timestamp(
                resolve_day_code(day_code, today),
                time_code,
                utc_offset,
            ),
            title=title,
        ))

    return programmes


class GuideScraper:
    """Sequential scraper for one guide run."""

    def __init__(
        self,
        *,
        index_url: str,
        channel_path: str,
        work_dir: Path,
        today: date,
        utc_offset: str,
        index_timeout: float = 30.0,
        channel_timeout: float = 15.0,
        courtesy_delay: float = 0.3,
        max_retries: int = 1,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.index_url = index_url
        self.channel_path = channel_path
        self.work_dir = work_dir
        self.today = today
        self.utc_offset = utc_offset
        self.index_timeout = index_timeout
        self.channel_timeout = channel_timeout
        self.courtesy_delay = courtesy_delay
        self.max_retries = max_retries
        self._sleep = sleep

    def channel_url(self, slug: str) -> str:
        return urljoin(self.index_url, f"{self.channel_path}{slug}")

    async def discover(self, client: httpx.AsyncClient) -> list[str]:
        """
        Fetch the index page and return the channel slugs it links to

        Raises:
            httpx.HTTPError: If the index page can't be fetched
        """
        index_file = await download_file(
            client,
            self.index_url,
            self.work_dir / "index.html",
            timeout=self.index_timeout,
            max_retries=self.max_retries,
        )
        slugs = discover_channel_slugs(await read_text_file(index_file), self.channel_path)
        logger.info(f"Discovered {len(slugs)} EPG channels on {self.index_url}")
        return slugs

    async def scrape_channel(self, client: httpx.AsyncClient, slug: str) -> ChannelOutcome:
        """Fetch and extract one channel; transport errors yield a failed outcome"""
        try:
            channel_file = await download_file(
                client,
                self.channel_url(slug),
                self.work_dir / f"channel_{slug}.html",
                timeout=self.channel_timeout,
                max_retries=self.max_retries,
            )
        except httpx.HTTPError as exc:
            return ChannelOutcome(
                slug=slug,
                status="failed",
                error=f"{type(exc).__name__}: {exc}",
            )

        document = parse_html(await read_text_file(channel_file))
        if document is None:
            logger.debug(f"Channel page for {slug} is empty")
            return ChannelOutcome(
                slug=slug,
                status="success",
                channel=GuideChannel(slug=slug, display_name=slug),
            )

        return ChannelOutcome(
            slug=slug,
            status="success",
            channel=GuideChannel(slug=slug, display_name=extract_display_name(document, slug)),
            programmes=extract_programmes(
                document,
                slug,
                self.channel_path,
                self.today,
                self.utc_offset,
            ),
        )

    async def run(self, client: httpx.AsyncClient) -> GuideDocument:
        """
        Scrape every discovered channel

        Raises:
            httpx.HTTPError: If the index page can't be fetched
        """
        slugs = await self.discover(client)
        guide = GuideDocument()

        for position, slug in enumerate(slugs, start=1):
            if position > 1 and self.courtesy_delay > 0:
                await self._sleep(self.courtesy_delay)

            outcome = await self.scrape_channel(client, slug)
            if not outcome.succeeded:
                logger.warning(f"[Channel {position}/{len(slugs)}] Skipping {slug}: {outcome.error}")
                guide.skipped_slugs.append(slug)
                continue

            logger.debug(
                f"[Channel {position}/{len(slugs)}] {slug}: "
                f"'{outcome.channel.display_name}', {len(outcome.programmes)} programmes"
            )
            guide.channels.append(outcome.channel)
            guide.programmes.extend(outcome.programmes)

        return guide
