import unittest

import pandas as pd

from trade_journal.errors import NoValidTradesError
from trade_journal.trade_assembler import assemble_trades, derive_pl, extract_row, normalize_row

HEADER = ['Time', 'Symbol', 'Type', 'Volume', 'Price', 'Price', 'S / L', 'Commission']
HEADER_MAP = {'date': 0, 'symbol': 1, 'side': 2, 'size': 3, 'entry': 4, 'exit': 5, 'sl': 6, 'commission': 7}


def _raw(**overrides):
    row = {
        'date': '2023.01.05 10:00:00',
        'symbol': 'EURUSD',
        'side': 'buy',
        'size': '2',
        'entry': '100',
        'exit': '110',
    }
    row.update(overrides)
    return row


class TestNormalizeRow(unittest.TestCase):

    def test_derived_pl_by_side(self):
        buy = normalize_row(_raw(side='buy'))
        sell = normalize_row(_raw(side='sell'))
        self.assertEqual(buy.pl, 20.0)
        self.assertEqual(sell.pl, -20.0)
        self.assertEqual(derive_pl('Buy', 100.0, 110.0, 2.0), 20.0)
        self.assertEqual(derive_pl('Sell', 100.0, 110.0, 2.0), -20.0)

    def test_reported_pl_is_kept(self):
        trade = normalize_row(_raw(pl='$1,250.75'))
        self.assertEqual(trade.pl, 1250.75)

    def test_mapped_but_blank_pl_rejects_row(self):
        self.assertIsNone(normalize_row(_raw(pl='')))

    def test_close_time_falls_back_to_open_time(self):
        no_column = normalize_row(_raw())
        self.assertEqual(no_column.date_closed, no_column.date)

        unparseable = normalize_row(_raw(dateClosed='still open'))
        self.assertEqual(unparseable.date_closed, unparseable.date)

        closed = normalize_row(_raw(dateClosed='2023.01.05 16:45:00'))
        self.assertEqual(closed.date_closed, pd.Timestamp('2023-01-05 16:45', tz='UTC'))

    def test_optional_fields(self):
        trade = normalize_row(_raw(commission='', swap='-1.5', sl='95.5', tp=''))
        self.assertEqual(trade.commission, 0.0)
        self.assertEqual(trade.swap, -1.5)
        self.assertEqual(trade.sl, 95.5)
        self.assertIsNone(trade.tp)

        bare = normalize_row(_raw())
        self.assertEqual(bare.commission, 0.0)
        self.assertEqual(bare.swap, 0.0)
        self.assertIsNone(bare.sl)

    def test_rejections(self):
        self.assertIsNone(normalize_row(_raw(date='')))
        self.assertIsNone(normalize_row(_raw(date='pending')))
        self.assertIsNone(normalize_row(_raw(symbol='   ')))
        self.assertIsNone(normalize_row(_raw(size='n/a')))
        self.assertIsNone(normalize_row(_raw(entry=None)))

    def test_strict_sides(self):
        self.assertEqual(normalize_row(_raw(side='balance')).side, 'Sell')
        self.assertIsNone(normalize_row(_raw(side='balance'), strict_sides=True))

    def test_numeric_symbol_is_text(self):
        trade = normalize_row(_raw(symbol=7203))
        self.assertEqual(trade.symbol, '7203')


class TestAssembleTrades(unittest.TestCase):

    def _grid(self, sizes):
        rows = [['Statement'], HEADER]
        for i, size in enumerate(sizes):
            rows.append([f'2023.01.{i + 2:02d} 09:00:00', 'EURUSD', 'buy', size, 1.1, 1.2, '', -0.5])
        return rows

    def test_extract_row_short_row(self):
        raw = extract_row(['2023.01.05 10:00', 'EURUSD'], HEADER_MAP)
        self.assertEqual(raw['symbol'], 'EURUSD')
        self.assertIsNone(raw['exit'])
        self.assertNotIn('pl', raw)

    def test_partial_drop_accounting(self):
        """CASE: 10 rows, 3 with an unparseable size -> 7 trades, 3 dropped."""
        sizes = [1, 'n/a', 2, 3, 'n/a', 4, 5, 6, 'n/a', 7]
        outcome = assemble_trades(self._grid(sizes), 1, HEADER_MAP)

        self.assertEqual(len(outcome.trades), 7)
        self.assertEqual(outcome.dropped_rows, 3)
        self.assertEqual(outcome.total_rows, 10)
        self.assertEqual(outcome.header_row, 1)
        # Source row order is preserved
        self.assertEqual([t.size for t in outcome.trades], [1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0])

    def test_every_row_invalid(self):
        with self.assertRaises(NoValidTradesError) as ctx:
            assemble_trades(self._grid(['n/a'] * 10), 1, HEADER_MAP)
        self.assertEqual(ctx.exception.dropped_rows, 10)
        self.assertEqual(ctx.exception.stage, 'RowExtraction')

    def test_header_without_data(self):
        with self.assertRaises(NoValidTradesError) as ctx:
            assemble_trades([HEADER], 0, HEADER_MAP)
        self.assertEqual(ctx.exception.dropped_rows, 0)

    def test_trades_carry_no_id(self):
        outcome = assemble_trades(self._grid([1, 2]), 1, HEADER_MAP)
        self.assertTrue(all(t.id is None for t in outcome.trades))
        self.assertTrue(all(t.pl > 0 for t in outcome.trades))


if __name__ == '__main__':
    unittest.main()
