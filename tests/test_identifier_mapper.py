import re
import tempfile
import unittest
from pathlib import Path
import sys

TESTS_DIR = Path(__file__).resolve().parent
PROJECT_DIR = TESTS_DIR.parent
if str(PROJECT_DIR) not in sys.path:
    sys.path.insert(0, str(PROJECT_DIR))

from tvepg_sync.services.identifier_mapper import (
    DEFAULT_ID_MAP,
    IdentifierMapper,
    base_identifier,
    derive_slug,
    load_id_map_file,
)

SLUG_RE = re.compile(r"^[a-z0-9-]*$")


class BaseIdentifierTests(unittest.TestCase):
    def test_strips_quality_qualifier(self):
        self.assertEqual(base_identifier("SRF1.ch@SD"), "SRF1.ch")
        self.assertEqual(base_identifier("SRF1.ch@HD@extra"), "SRF1.ch")

    def test_identifier_without_qualifier_is_unchanged(self):
        self.assertEqual(base_identifier("SRF1.ch"), "SRF1.ch")


class TableLookupTests(unittest.TestCase):
    def setUp(self):
        self.mapper = IdentifierMapper()

    def test_known_identifier_uses_table(self):
        self.assertEqual(self.mapper.map("SRF1.ch@SD"), "srf-1")

    def test_table_value_independent_of_qualifier(self):
        for source, slug in DEFAULT_ID_MAP.items():
            for suffix in ("", "@SD", "@HD", "@Plus"):
                self.assertEqual(self.mapper.map(source + suffix), slug)

    def test_lookup_is_case_sensitive(self):
        self.assertEqual(self.mapper.map("RTS1.ch@HD"), "rts-un")
        self.assertEqual(self.mapper.map("rts1.ch@HD"), "rts-1")

    def test_resolve_reports_origin(self):
        self.assertEqual(self.mapper.resolve("LCI.fr@SD"), ("la-chaine-info", "table"))
        self.assertEqual(self.mapper.resolve("ProSieben.de@HD"), ("pro-sieben", "derived"))

    def test_table_is_read_only(self):
        with self.assertRaises(TypeError):
            self.mapper.table["SRF1.ch"] = "other"  # type: ignore[index]


class DeriveSlugTests(unittest.TestCase):
    def test_camel_case_with_country_suffix(self):
        self.assertEqual(derive_slug("RTLCrime.de"), "rtl-crime")

    def test_unmapped_identifier_goes_through_derivation(self):
        mapper = IdentifierMapper(table={})
        self.assertEqual(mapper.map("RTLCrime.de@HD"), "rtl-crime")

    def test_letter_digit_boundaries(self):
        self.assertEqual(derive_slug("SRF1.ch"), "srf-1")
        self.assertEqual(derive_slug("Kanal9HD"), "kanal-9-hd")

    def test_only_known_country_suffixes_are_removed(self):
        self.assertEqual(derive_slug("TVP1.pl"), "tvp-1-pl")
        self.assertEqual(derive_slug("Rai1.it"), "rai-1")

    def test_accents_are_folded(self):
        self.assertEqual(derive_slug("TeleZüri.ch"), "tele-zuri")

    def test_output_charset_and_determinism(self):
        samples = [
            "RTLCrime.de", "ntv.de", "France24English.fr", "Al Jazeera!", "A__B..C",
            "", "@", "x.ch.ch", "ÉtéTV.fr", "123ABC", "TV5MondeEurope.fr",
        ]
        for sample in samples:
            slug = derive_slug(sample)
            self.assertEqual(slug, derive_slug(sample))
            self.assertRegex(slug, SLUG_RE)
            self.assertEqual(slug, slug.lower())
            self.assertFalse(slug.startswith("-") or slug.endswith("-"), slug)

    def test_acronym_rule_splits_mixed_case_tokens(self):
        # Diverges from a plain lowercase->uppercase split; table entries cover such channels
        self.assertEqual(derive_slug("SRFinfo.de"), "sr-finfo")
        self.assertEqual(derive_slug("NDRFernsehen.de"), "ndr-fernsehen")
        self.assertEqual(IdentifierMapper().map("SRFinfo.ch@HD"), "srf-info")

    def test_garbage_input_never_raises(self):
        self.assertEqual(derive_slug("@@@"), "")
        self.assertEqual(IdentifierMapper(table={}).map("@HD"), "")


class MappingFileTests(unittest.TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.path = Path(tmp.name) / "id_map.tsv"
        self.path.write_text(
            "# custom entries\n"
            "RTS1.ch\trts-1-custom\n"
            "\n"
            "NewChannel.ch\tnew-channel\r\n"
            "missing-tab-line\n",
            encoding="utf-8",
        )

    def test_load_skips_comments_and_malformed_lines(self):
        entries = load_id_map_file(self.path)
        self.assertEqual(entries, {"RTS1.ch": "rts-1-custom", "NewChannel.ch": "new-channel"})

    def test_file_entries_override_builtin_table(self):
        mapper = IdentifierMapper.from_settings(str(self.path))
        self.assertEqual(mapper.map("RTS1.ch@HD"), "rts-1-custom")
        self.assertEqual(mapper.map("NewChannel.ch@SD"), "new-channel")
        self.assertEqual(mapper.map("SRF1.ch@SD"), "srf-1")

    def test_without_file_builtin_table_is_used(self):
        mapper = IdentifierMapper.from_settings(None)
        self.assertEqual(dict(mapper.table), dict(DEFAULT_ID_MAP))


if __name__ == "__main__":
    unittest.main()
