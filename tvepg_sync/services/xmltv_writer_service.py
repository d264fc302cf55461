import logging
import re

from lxml import etree # type: ignore

from tvepg_sync.services.fetch_types import GuideChannel, GuideDocument, ProgrammeEntry

logger = logging.getLogger(__name__)

XMLTV_DOCTYPE = '<!DOCTYPE tv SYSTEM "xmltv.dtd">'

# Anything outside the XML 1.0 Char production; lxml refuses to serialize it
_XML_INVALID_CHARS_RE = re.compile(r"[^\x09\x0a\x0d\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


def build_xmltv_document(
    guide: GuideDocument,
    source_name: str,
    generator_name: str,
    title_lang: str = "de",
) -> bytes:
    """
    Serialize scraped channels and programmes as an XMLTV document

    Args:
        guide: Scrape result
        source_name: Value of the root source-info-name attribute
        generator_name: Value of the root generator-info-name attribute
        title_lang: lang attribute for programme titles

    Returns:
        UTF-8 encoded XMLTV document. Text is escaped by lxml:
        '&', '<' and '>' everywhere, '"' additionally inside attributes.
    """
    root = etree.Element("tv", {
        "source-info-name": source_name,
        "generator-info-name": generator_name,
    })

    for channel in guide.channels:
        root.append(_build_channel(channel))

    for programme in guide.programmes:
        root.append(_build_programme(programme, title_lang))

    logger.debug(f"XMLTV document built: {len(guide.channels)} channels, {len(guide.programmes)} programmes")

    return etree.tostring(
        root,
        xml_declaration=True,
        encoding="UTF-8",
        pretty_print=True,
        doctype=XMLTV_DOCTYPE,
    )


def _build_channel(channel: GuideChannel) -> etree._Element:
    """Build <channel id><display-name/></channel>"""
    element = etree.Element("channel", {"id": _xml_safe(channel.slug)})
    display_name = etree.SubElement(element, "display-name")
    display_name.text = _xml_safe(channel.display_name)
    return element


def _build_programme(programme: ProgrammeEntry, title_lang: str) -> etree._Element:
    """Build <programme start channel><title lang/></programme>"""
    element = etree.Element("programme", {
        "start": programme.start_timestamp,
        "channel": _xml_safe(programme.channel_slug),
    })
    title = etree.SubElement(element, "title", {"lang": title_lang})
    title.text = _xml_safe(programme.title)
    return element


def _xml_safe(text: str) -> str:
    return _XML_INVALID_CHARS_RE.sub("", text)
