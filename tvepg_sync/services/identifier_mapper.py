"""
Identifier Mapper

Converts iptv-org stream identifiers (e.g. "SRF1.ch@SD") into the channel
slugs used by tvepg.eu (e.g. "srf-1"). Known mismatches are corrected by a
static table; everything else goes through a deterministic slug derivation.
"""
from __future__ import annotations

import logging
import re
import unicodedata
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Literal


logger = logging.getLogger(__name__)

QUALIFIER_DELIMITER = "@"

DEFAULT_ID_MAP: Mapping[str, str] = MappingProxyType({
    "3sat.de": "3sat",
    "BlueSport1.ch": "blue-sport-1",
    "BlueSport2.ch": "blue-sport-2",
    "BlueZoomD.ch": "blue-zoom-d",
    "BlueZoomF.ch": "blue-zoom-f",
    "Canal9.ch": "canal-9",
    "CanalAlphaJura.ch": "canal-alpha-jura",
    "CanalAlphaNeuchatel.ch": "canal-alpha-neuchatel",
    "Carac1.ch": "carac-1",
    "Carac2.ch": "carac-2",
    "Carac3.ch": "carac-3",
    "Carac4.ch": "carac-4",
    "Carac5.ch": "carac-5",
    "ComedyCentral.de": "comedy-central",
    "Couleur3.ch": "couleur-3",
    "DisneyChannel.de": "disney-channel-d",
    "DritaTV.ch": "drita-tv",
    "Kanal9.ch": "kanal-9",
    "LaTele.ch": "la-tele",
    "LemanBleu.ch": "leman-bleu-television",
    "Meteonews.ch": "meteonews",
    "MoreThanSportsTV.de": "more-than-sports-tv",
    "MTV.fr": "mtv",
    "ntv.de": "n-tv",
    "NRTV.ch": "nrtv",
    "RhoneTV.ch": "rhone-tv",
    "RSILa1.ch": "rsi-la-1",
    "RSILa2.ch": "rsi-la-2",
    "RTS1.ch": "rts-un",
    "RTS2.ch": "rts-deux",
    "SRF1.ch": "srf-1",
    "SRFinfo.ch": "srf-info",
    "SRFzwei.ch": "srf-zwei",
    "StarTV.ch": "star-tv",
    "Tele1.ch": "tele-1",
    "TeleM1.ch": "tele-m1",
    "TeleBarn.ch": "tele-barn",
    "TeleBielingue.ch": "tele-bielingue",
    "TeleTicino.ch": "tele-ticino",
    "TeleZuri.ch": "tele-zuri",
    "TV24.ch": "tv24",
    "TVRheintal.ch": "tv-rheintal",
    "TVM3.ch": "tvm3",
    "TVO.ch": "tvo",
    "RTLCrime.de": "rtl-crime",
    "LCI.fr": "la-chaine-info",
    "NDRFernsehenInternational.de": "ndr",
    "Nickelodeon.de": "nickelodeon",
    "SportdigitalFUSSBALL.de": "sport1",
})

_COUNTRY_SUFFIX_RE = re.compile(r"\.(?:ch|de|fr|it|uk|us|es|lu|at)$")
_LOWER_UPPER_RE = re.compile(r"([a-z])([A-Z])")
_ACRONYM_WORD_RE = re.compile(r"([A-Z])([A-Z][a-z])")
_LETTER_DIGIT_RE = re.compile(r"([A-Za-z])([0-9])")
_DIGIT_UPPER_RE = re.compile(r"([0-9])([A-Z])")
_INVALID_SLUG_CHARS_RE = re.compile(r"[^a-z0-9-]+")
_REPEATED_SEPARATOR_RE = re.compile(r"-{2,}")

MappingSource = Literal["table", "derived"]


def base_identifier(source_id: str) -> str:
    """Drop the quality/variant qualifier ("SRF1.ch@SD" -> "SRF1.ch")."""
    return source_id.split(QUALIFIER_DELIMITER, 1)[0]


def derive_slug(base_id: str) -> str:
    """
    Derive a tvepg.eu style slug from a base identifier.

    Args:
        base_id: Identifier without qualifier, e.g. "RTLCrime.de"

    Camel case is split both at lowercase->uppercase and where an acronym
    runs into a capitalized word ("RTLCrime" -> "RTL-Crime"). The second rule
    also splits tokens like "SRFinfo" into "sr-finfo" rather than "srfinfo";
    such channels belong in the mapping table.

    Returns:
        Lowercase kebab-case slug, e.g. "rtl-crime". Never raises; unusable
        input produces an empty or odd-looking but deterministic slug.
    """
    slug = _COUNTRY_SUFFIX_RE.sub("", base_id)
    slug = _LOWER_UPPER_RE.sub(r"\1-\2", slug)
    slug = _ACRONYM_WORD_RE.sub(r"\1-\2", slug)
    slug = _LETTER_DIGIT_RE.sub(r"\1-\2", slug)
    slug = _DIGIT_UPPER_RE.sub(r"\1-\2", slug)
    slug = slug.lower()

    slug = unicodedata.normalize("NFKD", slug).encode("ascii", "ignore").decode("ascii")
    slug = _INVALID_SLUG_CHARS_RE.sub("-", slug)
    slug = _REPEATED_SEPARATOR_RE.sub("-", slug)
    return slug.strip("-")


def load_id_map_file(path: Path | str) -> dict[str, str]:
    """
    Read a tab separated "source<TAB>slug" mapping file.

    Blank lines and lines starting with "#" are ignored. Lines without a tab
    are logged and skipped.

    Raises:
        OSError: If the file can't be read
    """
    path = Path(path)
    entries: dict[str, str] = {}
    with path.open(encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, start=1):
            line = line.rstrip("\r\n")
            if not line.strip() or line.startswith("#"):
                continue
            source, sep, slug = line.partition("\t")
            if not sep or not source or not slug.strip():
                logger.warning("Ignoring malformed mapping line %s in %s: %r", line_number, path, line)
                continue
            entries[source] = slug.strip()
    logger.info("Loaded %s identifier mappings from %s", len(entries), path)
    return entries


class IdentifierMapper:
    """Maps stream identifiers to guide slugs using an immutable lookup table."""

    def __init__(self, table: Mapping[str, str] | None = None) -> None:
        self._table = MappingProxyType(dict(DEFAULT_ID_MAP if table is None else table))

    @classmethod
    def from_settings(cls, id_map_path: str | None) -> "IdentifierMapper":
        """Build the mapper from the built-in table plus an optional override file."""
        table = dict(DEFAULT_ID_MAP)
        if id_map_path:
            table.update(load_id_map_file(id_map_path))
        return cls(table)

    @property
    def table(self) -> Mapping[str, str]:
        return self._table

    def resolve(self, source_id: str) -> tuple[str, MappingSource]:
        """Return the slug for source_id and whether it came from the table."""
        base_id = base_identifier(source_id)
        mapped = self._table.get(base_id)
        if mapped is not None:
            return mapped, "table"
        return derive_slug(base_id), "derived"

    def map(self, source_id: str) -> str:
        slug, _ = self.resolve(source_id)
        return slug
