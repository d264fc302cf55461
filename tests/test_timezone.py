import unittest
from datetime import date
from pathlib import Path
import sys

TESTS_DIR = Path(__file__).resolve().parent
PROJECT_DIR = TESTS_DIR.parent
if str(PROJECT_DIR) not in sys.path:
    sys.path.insert(0, str(PROJECT_DIR))

from tvepg_sync.utils.timezone import (
    DateFormatError,
    format_xmltv_timestamp,
    resolve_day_code,
    today_in,
    validate_timezone_name,
    validate_utc_offset,
)

TODAY = date(2024, 6, 1)


class DayCodeTests(unittest.TestCase):
    def test_known_day_codes(self):
        self.assertEqual(resolve_day_code("07", TODAY), date(2024, 5, 31))
        self.assertEqual(resolve_day_code("08", TODAY), TODAY)
        self.assertEqual(resolve_day_code("09", TODAY), date(2024, 6, 2))
        self.assertEqual(resolve_day_code("10", TODAY), date(2024, 6, 3))

    def test_unknown_day_code_defaults_to_today(self):
        # Known approximation carried over from the guide's link format
        for code in ("00", "06", "11", "99"):
            self.assertEqual(resolve_day_code(code, TODAY), TODAY)

    def test_month_and_year_rollover(self):
        self.assertEqual(resolve_day_code("07", date(2024, 1, 1)), date(2023, 12, 31))
        self.assertEqual(resolve_day_code("10", date(2024, 2, 28)), date(2024, 3, 1))


class TimestampTests(unittest.TestCase):
    def test_format(self):
        self.assertEqual(format_xmltv_timestamp(TODAY, "1430", "+0100"), "20240601143000 +0100")
        self.assertEqual(
            format_xmltv_timestamp(resolve_day_code("08", TODAY), "1430", "+0100"),
            "20240601143000 +0100",
        )


class ValidationTests(unittest.TestCase):
    def test_utc_offset(self):
        self.assertEqual(validate_utc_offset("+0100"), "+0100")
        self.assertEqual(validate_utc_offset("-0530"), "-0530")
        for bad in ("0100", "+1", "+2400", "+01:00", "UTC"):
            with self.assertRaises(DateFormatError):
                validate_utc_offset(bad)

    def test_timezone_name(self):
        self.assertEqual(validate_timezone_name("Europe/Zurich"), "Europe/Zurich")
        with self.assertRaises(DateFormatError):
            validate_timezone_name("Mars/Olympus_Mons")

    def test_today_in(self):
        self.assertIsInstance(today_in("Europe/Zurich"), date)


if __name__ == "__main__":
    unittest.main()
