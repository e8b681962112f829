import os
import tempfile
import unittest

import matplotlib
matplotlib.use('Agg')

import pandas as pd

from trade_journal.models import NormalizedTrade, trades_to_frame
from trade_journal.trade_analytics import TradeAnalyser


def _trade(date, symbol, pl, sl=None):
    ts = pd.Timestamp(date, tz='UTC')
    return NormalizedTrade(
        date=ts, date_closed=ts, symbol=symbol, side='Buy',
        size=2.0, entry=100.0, exit=100.0 + pl / 2.0, pl=pl, sl=sl
    )


class TestTradeAnalyser(unittest.TestCase):

    def setUp(self):
        """
        CASE: Three trades supplied out of order.
        Mon +100 (risk 10), Tue -50, Sun +200.
        """
        trades = [
            _trade('2024-01-07 09:00', 'EURUSD', 200.0),
            _trade('2024-01-01 09:00', 'EURUSD', 100.0, sl=95.0),
            _trade('2024-01-02 09:00', 'GBPUSD', -50.0),
        ]
        self.analyser = TradeAnalyser(trades_to_frame(trades), 1000)

    def test_equity_curve_is_chronological(self):
        curve = self.analyser.equity_curve()
        self.assertEqual(list(curve.values), [1000.0, 1100.0, 1050.0, 1250.0])
        self.assertEqual(curve.index.name, 'trade_number')

    def test_kpis(self):
        kpis = self.analyser.get_kpis()
        self.assertEqual(kpis['Net_PL'], 250.0)
        self.assertAlmostEqual(kpis['Win_Rate'], 200 / 3)
        self.assertEqual(kpis['Avg_RR'], 3.0)
        self.assertEqual(kpis['Max_Equity'], 1250.0)
        self.assertEqual(kpis['Current_Balance'], 1250.0)
        self.assertEqual(kpis['Total_Trades'], 3)

    def test_r_multiple(self):
        self.assertEqual(list(self.analyser.trades['r_multiple']), [10.0, 0.0, 0.0])
        self.assertEqual(TradeAnalyser.r_multiple({'entry': 100, 'sl': 100, 'size': 1, 'pl': 5}), 0.0)

    def test_pl_by_weekday(self):
        totals = self.analyser.pl_by_weekday()
        self.assertEqual(list(totals.index), ['Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat'])
        self.assertEqual(list(totals.values), [200.0, 100.0, -50.0, 0.0, 0.0, 0.0, 0.0])

    def test_weekday_metrics(self):
        metrics = self.analyser.weekday_metrics()
        self.assertEqual(list(metrics.index), ['MON', 'TUE', 'WED', 'THU', 'FRI'])
        self.assertEqual(metrics.loc['MON', 'Avg_PL'], 100.0)
        self.assertEqual(metrics.loc['MON', 'Win_Rate'], 100.0)
        self.assertEqual(metrics.loc['MON', 'Avg_R'], 10.0)
        self.assertEqual(metrics.loc['TUE', 'Win_Rate'], 0.0)
        self.assertEqual(metrics.loc['WED', 'Avg_PL'], 0.0)

    def test_symbol_performance(self):
        perf = self.analyser.symbol_performance()
        self.assertEqual(list(perf['symbol']), ['EURUSD', 'GBPUSD'])
        self.assertEqual(list(perf['Trades']), [2, 1])
        self.assertEqual(list(perf['Net_PL']), [300.0, -50.0])

        summary = self.analyser.get_summary()
        self.assertEqual(summary['Most_Profitable_Symbol'], 'EURUSD')
        self.assertEqual(summary['Least_Profitable_Symbol'], 'GBPUSD')

    def test_empty_journal(self):
        analyser = TradeAnalyser(trades_to_frame([]), 500)
        self.assertEqual(list(analyser.equity_curve().values), [500.0])
        kpis = analyser.get_kpis()
        self.assertEqual(kpis['Net_PL'], 0.0)
        self.assertEqual(kpis['Current_Balance'], 500.0)
        self.assertTrue(analyser.symbol_performance().empty)
        self.assertEqual(analyser.pl_by_weekday().sum(), 0.0)

    def test_plots_are_saved(self):
        with tempfile.TemporaryDirectory() as tmp:
            equity_path = os.path.join(tmp, 'equity.png')
            weekday_path = os.path.join(tmp, 'weekday.png')
            self.analyser.plot_equity_curve(save_path=equity_path, show=False)
            self.analyser.plot_pl_by_weekday(save_path=weekday_path, show=False)
            self.assertTrue(os.path.exists(equity_path))
            self.assertTrue(os.path.exists(weekday_path))


if __name__ == '__main__':
    unittest.main()
