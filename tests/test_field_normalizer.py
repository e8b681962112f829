import math
import random
import unittest
from datetime import datetime, timedelta, timezone as dt_timezone

import pandas as pd

from trade_journal.config import DATE_FORMATS
from trade_journal.field_normalizer import clean_number, parse_datetime, infer_side


class TestCleanNumber(unittest.TestCase):

    def test_strips_currency_and_separators(self):
        self.assertEqual(clean_number('$1,234.50'), 1234.5)
        self.assertEqual(clean_number('-12.5 USD'), -12.5)
        self.assertEqual(clean_number(' 0.01 lots'), 0.01)

    def test_numbers_pass_through(self):
        self.assertEqual(clean_number(42), 42.0)
        self.assertEqual(clean_number(1.25), 1.25)

    def test_leading_numeric_part_only(self):
        # Mirrors a lenient float parse: trailing garbage after the number is ignored
        self.assertEqual(clean_number('1.2.3'), 1.2)

    def test_unparseable_is_nan(self):
        for value in ['abc', '', '-', None, True]:
            self.assertTrue(math.isnan(clean_number(value)), msg=repr(value))


class TestParseDatetime(unittest.TestCase):

    def test_spreadsheet_serial_date(self):
        """CASE: 44927 is 2023-01-01 in the 1899-12-30 epoch."""
        self.assertEqual(parse_datetime(44927), pd.Timestamp('2023-01-01 00:00:00', tz='UTC'))
        self.assertEqual(parse_datetime(44927.5), pd.Timestamp('2023-01-01 12:00:00', tz='UTC'))

    def test_explicit_formats(self):
        expected = pd.Timestamp('2023-01-05 14:30:15', tz='UTC')
        cases = [
            '2023.01.05 14:30:15',
            '05.01.2023 14:30:15',
            '01/05/2023 14:30:15',
            '2023-01-05 14:30:15',
            '2023-01-05T14:30:15',
        ]
        for text in cases:
            self.assertEqual(parse_datetime(text), expected, msg=text)

        self.assertEqual(parse_datetime('2023.01.05 14:30'), pd.Timestamp('2023-01-05 14:30', tz='UTC'))
        self.assertEqual(parse_datetime('2023-01-05'), pd.Timestamp('2023-01-05', tz='UTC'))
        self.assertEqual(
            parse_datetime('2023-01-05T14:30:15.250Z'),
            pd.Timestamp('2023-01-05 14:30:15.250', tz='UTC')
        )

    def test_day_first_dotted_format(self):
        """CASE: dd.MM.yyyy is tried before MM/dd/yyyy, so 03.04 is 3 April."""
        self.assertEqual(parse_datetime('03.04.2023 09:00'), pd.Timestamp('2023-04-03 09:00', tz='UTC'))

    def test_source_timezone(self):
        parsed = parse_datetime('2023-01-05 14:30:00', timezone='Europe/Berlin')
        self.assertEqual(parsed, pd.Timestamp('2023-01-05 13:30:00', tz='UTC'))

    def test_zulu_format_ignores_source_timezone(self):
        parsed = parse_datetime('2023-01-05T14:30:00.000Z', timezone='Europe/Berlin')
        self.assertEqual(parsed, pd.Timestamp('2023-01-05 14:30:00', tz='UTC'))

    def test_free_form_fallback(self):
        self.assertEqual(parse_datetime('5 Jan 2023 14:30'), pd.Timestamp('2023-01-05 14:30', tz='UTC'))
        self.assertEqual(
            parse_datetime('2023-01-05T14:30:00+02:00'),
            pd.Timestamp('2023-01-05 12:30', tz='UTC')
        )

    def test_datetime_cells(self):
        self.assertEqual(parse_datetime(datetime(2023, 1, 5, 8, 0)), pd.Timestamp('2023-01-05 08:00', tz='UTC'))

    def test_unparseable_is_none(self):
        for value in [None, '', '   ', 0, float('nan'), 'EURUSD']:
            self.assertIsNone(parse_datetime(value), msg=repr(value))

    def test_round_trip_through_every_format(self):
        """
        CASE: Random instants rendered through each supported format parse
        back to the same instant, truncated to the precision of the format.
        """
        rng = random.Random(42)
        origin = datetime(2000, 1, 1, tzinfo=dt_timezone.utc)
        span_ms = 30 * 365 * 24 * 3600 * 1000

        for _ in range(200):
            instant = origin + timedelta(milliseconds=rng.randrange(span_ms))

            for fmt in DATE_FORMATS:
                if '%f' in fmt:
                    text = instant.strftime('%Y-%m-%dT%H:%M:%S.') + f"{instant.microsecond // 1000:03d}Z"
                    expected = instant
                elif '%S' in fmt:
                    text = instant.strftime(fmt)
                    expected = instant.replace(microsecond=0)
                elif '%M' in fmt:
                    text = instant.strftime(fmt)
                    expected = instant.replace(second=0, microsecond=0)
                else:
                    text = instant.strftime(fmt)
                    expected = instant.replace(hour=0, minute=0, second=0, microsecond=0)

                self.assertEqual(parse_datetime(text), pd.Timestamp(expected), msg=f"{fmt}: {text}")


class TestInferSide(unittest.TestCase):

    def test_lenient(self):
        self.assertEqual(infer_side('buy'), 'Buy')
        self.assertEqual(infer_side('Buy Limit'), 'Buy')
        self.assertEqual(infer_side('SELL'), 'Sell')
        self.assertEqual(infer_side('balance'), 'Sell')
        self.assertEqual(infer_side(None), 'Sell')

    def test_strict_rejects_unknown(self):
        self.assertEqual(infer_side('buy stop', strict=True), 'Buy')
        self.assertEqual(infer_side('Sell', strict=True), 'Sell')
        self.assertIsNone(infer_side('balance', strict=True))
        self.assertIsNone(infer_side('', strict=True))


if __name__ == '__main__':
    unittest.main()
