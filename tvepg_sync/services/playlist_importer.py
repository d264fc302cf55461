"""
Stream List Importer

Rewrites an M3U playlist so every tvg-id matches a guide channel slug.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from tvepg_sync.services.fetch_types import StreamEntry
from tvepg_sync.services.identifier_mapper import IdentifierMapper


logger = logging.getLogger(__name__)

PLAYLIST_HEADER = "#EXTM3U"
METADATA_PREFIX = "#EXTINF:"

_TVG_ID_RE = re.compile(r'tvg-id="([^"]*)"')
_ATTRIBUTE_RE = re.compile(r'([A-Za-z0-9_-]+)="([^"]*)"')
_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


def rewrite_playlist(playlist_text: str, mapper: IdentifierMapper) -> str:
    """
    Rewrite tvg-id attributes of a playlist to guide slugs.

    The source header is replaced by a single "#EXTM3U" line. Metadata lines
    without a tvg-id pass through unchanged; all other lines pass through
    with normalized line endings.

    Args:
        playlist_text: Raw M3U text as downloaded
        mapper: Identifier mapper used for every tvg-id

    Returns:
        Cleaned playlist text, newline terminated
    """
    output = [PLAYLIST_HEADER]
    rewritten = 0

    for line in split_lines(playlist_text):
        if line.startswith(PLAYLIST_HEADER):
            continue

        if line.startswith(METADATA_PREFIX):
            new_line = rewrite_metadata_line(line, mapper)
            if new_line != line:
                rewritten += 1
            line = new_line

        output.append(line)

    logger.debug("Rewrote tvg-id on %s metadata line(s)", rewritten)
    return "\n".join(output) + "\n"


def rewrite_metadata_line(line: str, mapper: IdentifierMapper) -> str:
    """Replace the first tvg-id value of an #EXTINF line; leave the rest untouched."""
    match = _TVG_ID_RE.search(line)
    if match is None or not match.group(1):
        logger.debug("No tvg-id on metadata line, passing through: %s", line)
        return line

    slug = mapper.map(match.group(1))
    if not slug:
        return line
    return f'{line[:match.start()]}tvg-id="{slug}"{line[match.end():]}'


def parse_stream_entries(playlist_text: str) -> list[StreamEntry]:
    """
    Parse #EXTINF/URL pairs into stream entries.

    A metadata line followed by another metadata line (or by end of input)
    yields an entry without stream URL.
    """
    entries: list[StreamEntry] = []
    current: StreamEntry | None = None

    for line in _content_lines(playlist_text):
        if line.startswith(METADATA_PREFIX):
            if current is not None:
                entries.append(current)
            current = _parse_metadata_line(line)
        elif line.startswith("#"):
            continue
        elif current is not None:
            current.stream_url = line
            entries.append(current)
            current = None

    if current is not None:
        entries.append(current)

    return entries


def _parse_metadata_line(line: str) -> StreamEntry:
    # Attributes end at the first comma outside a quoted value; the rest is the display name
    attributes: dict[str, str] = {}
    attributes_end = 0
    for match in _ATTRIBUTE_RE.finditer(line):
        if "," in line[attributes_end:match.start()]:
            break
        attributes[match.group(1)] = match.group(2)
        attributes_end = match.end()

    comma = line.find(",", attributes_end)
    display_name = line[comma + 1:] if comma != -1 else ""

    return StreamEntry(
        raw_identifier=attributes.get("tvg-id") or None,
        display_attributes=attributes,
        display_name=display_name.strip(),
    )


def split_lines(playlist_text: str) -> list[str]:
    """
    Split on \\n, \\r\\n and \\r only.

    str.splitlines() would also break on characters such as U+2028 or \\x0c
    that can legitimately appear inside a display name.
    """
    lines = _LINE_BREAK_RE.split(playlist_text)
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def _content_lines(playlist_text: str) -> Iterable[str]:
    for line in split_lines(playlist_text):
        line = line.strip()
        if line:
            yield line
