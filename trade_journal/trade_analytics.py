"""
Trade Analytics Module.

Provides the TradeAnalyser class: reductions over the journal's trade list
(equity curve, win rate, reward/risk, R-multiples, weekday and per-symbol
breakdowns) and the matching visualisations.
"""
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import matplotlib.ticker as mtick
import seaborn as sns

from .config import WEEKDAY_LABELS, TRADING_WEEKDAYS, PLOT_DPI

# Global plot configuration
plt.rcParams.update({
    'font.family': 'sans-serif',
    'font.size': 12,
    'axes.titlesize': 15,
    'axes.titleweight': 'bold',
    'axes.labelsize': 13,
    'legend.fontsize': 12
})


class TradeAnalyser:
    """
    Performance analysis of closed trades.

    All metrics are computed on a copy of the trades sorted chronologically by
    open time, so the equity curve does not depend on the journal's storage
    order.
    """

    def __init__(self, trades_df: pd.DataFrame, initial_balance: float) -> None:
        """
        Args:
            trades_df (pd.DataFrame): Trades as produced by trades_to_frame()
                (columns 'date', 'symbol', 'side', 'size', 'entry', 'pl', 'sl', ...).
            initial_balance (float): Account balance before the first trade.
        """
        self.initial_balance = float(initial_balance)

        df = trades_df.copy()
        if not df.empty:
            df['date'] = pd.to_datetime(df['date'], utc=True)
            df['pl'] = pd.to_numeric(df['pl'], errors='coerce').fillna(0.0)
            df = df.sort_values(by='date', kind='stable').reset_index(drop=True)
            df['r_multiple'] = df.apply(self.r_multiple, axis=1)
        self.trades = df

    # ==========================================
    # INTERNAL CALCULATIONS
    # ==========================================
    @staticmethod
    def r_multiple(trade: Any) -> float:
        """
        Realised P/L in units of initial risk, |entry - stop| * size.

        Returns 0.0 when the trade has no stop-loss or the risk is zero.
        """
        sl = trade.get('sl') if hasattr(trade, 'get') else getattr(trade, 'sl', None)
        if sl is None or pd.isna(sl):
            return 0.0
        risk = abs(float(trade['entry']) - float(sl)) * float(trade['size'])
        if risk <= 0 or not np.isfinite(risk):
            return 0.0
        return float(trade['pl']) / risk

    @staticmethod
    def _avg_rr(pl: pd.Series) -> float:
        """Average win divided by the absolute average loss."""
        wins = pl[pl > 0]
        losses = pl[pl < 0]
        avg_win = wins.mean() if not wins.empty else 0.0
        avg_loss = abs(losses.mean()) if not losses.empty else 0.0
        return float(avg_win / avg_loss) if avg_loss > 0 else 0.0

    def equity_curve(self) -> pd.Series:
        """
        Running balance after each trade.

        Index 0 is the initial balance; index n is the balance after the n-th
        trade in chronological order.
        """
        steps = [self.initial_balance]
        if not self.trades.empty:
            steps += list(self.initial_balance + self.trades['pl'].cumsum())
        curve = pd.Series(steps, dtype=float, name='equity')
        curve.index.name = 'trade_number'
        return curve

    def get_kpis(self) -> Dict[str, float]:
        """Headline numbers of the dashboard."""
        curve = self.equity_curve()
        total = len(self.trades)

        if total == 0:
            return {
                'Net_PL': 0.0,
                'Win_Rate': 0.0,
                'Avg_RR': 0.0,
                'Max_Equity': self.initial_balance,
                'Current_Balance': self.initial_balance,
                'Total_Trades': 0
            }

        pl = self.trades['pl']
        return {
            'Net_PL': float(pl.sum()),
            'Win_Rate': float((pl > 0).sum() / total * 100),
            'Avg_RR': self._avg_rr(pl),
            'Max_Equity': float(curve.max()),
            'Current_Balance': float(curve.iloc[-1]),
            'Total_Trades': total
        }

    def pl_by_weekday(self) -> pd.Series:
        """Net P/L per UTC weekday of the open time, Sun..Sat."""
        totals = pd.Series(0.0, index=WEEKDAY_LABELS, name='pl')
        if self.trades.empty:
            return totals

        # pandas counts Monday as 0; the labels start on Sunday
        day_idx = (self.trades['date'].dt.dayofweek + 1) % 7
        grouped = self.trades['pl'].groupby(day_idx).sum()
        for idx, value in grouped.items():
            totals.iloc[int(idx)] = value
        return totals

    def weekday_metrics(self) -> pd.DataFrame:
        """
        Monday to Friday breakdown: average P/L, win rate, average reward/risk
        and average R-multiple. Weekend trades are left out.
        """
        columns = ['Avg_PL', 'Win_Rate', 'Avg_RR', 'Avg_R']
        result = pd.DataFrame(0.0, index=TRADING_WEEKDAYS, columns=columns)
        if self.trades.empty:
            return result

        day_names = self.trades['date'].dt.day_name().str[:3].str.upper()
        for day, group in self.trades.groupby(day_names):
            if day not in result.index:
                continue
            pl = group['pl']
            result.loc[day] = [
                pl.mean(),
                (pl > 0).sum() / len(pl) * 100,
                self._avg_rr(pl),
                group['r_multiple'].mean()
            ]
        return result

    def symbol_performance(self) -> pd.DataFrame:
        """Per-symbol trade count, wins, net P/L, win rate and reward/risk, best first."""
        columns = ['symbol', 'Trades', 'Wins', 'Net_PL', 'Win_Rate', 'Avg_RR']
        if self.trades.empty:
            return pd.DataFrame(columns=columns)

        rows = []
        for symbol, group in self.trades.groupby('symbol', sort=False):
            pl = group['pl']
            wins = int((pl > 0).sum())
            rows.append({
                'symbol': symbol,
                'Trades': len(group),
                'Wins': wins,
                'Net_PL': float(pl.sum()),
                'Win_Rate': wins / len(group) * 100,
                'Avg_RR': self._avg_rr(pl)
            })

        df = pd.DataFrame(rows, columns=columns)
        return df.sort_values(by='Net_PL', ascending=False, kind='stable').reset_index(drop=True)

    def get_summary(self) -> Dict[str, Any]:
        """Compact summary used by the console report."""
        kpis = self.get_kpis()
        perf = self.symbol_performance()
        return {
            'Net_PL': kpis['Net_PL'],
            'Win_Rate': kpis['Win_Rate'],
            'Avg_RR': kpis['Avg_RR'],
            'Total_Trades': kpis['Total_Trades'],
            'Most_Profitable_Symbol': perf['symbol'].iloc[0] if not perf.empty else None,
            'Least_Profitable_Symbol': perf['symbol'].iloc[-1] if not perf.empty else None
        }

    # ==========================================
    # VISUALISATION METHODS
    # ==========================================
    def plot_equity_curve(self, save_path: Optional[str] = None, show: bool = True) -> None:
        """Plots account balance against trade number."""
        curve = self.equity_curve()

        fig, ax = plt.subplots(figsize=(12, 6))
        ax.plot(curve.index, curve.values, color='tab:blue', linewidth=2, label='Equity')
        ax.axhline(self.initial_balance, color='gray', linestyle='--', linewidth=1, label='Initial Balance')
        ax.fill_between(curve.index, curve.values, self.initial_balance,
                        where=curve.values >= self.initial_balance, color='green', alpha=0.1)
        ax.fill_between(curve.index, curve.values, self.initial_balance,
                        where=curve.values < self.initial_balance, color='red', alpha=0.1)

        ax.set_xlabel('Trade Number')
        ax.set_ylabel('Equity')
        ax.yaxis.set_major_formatter(mtick.StrMethodFormatter('{x:,.0f}'))
        ax.legend(loc='upper left', framealpha=1.0, facecolor='white')
        ax.grid(True, alpha=0.3)
        plt.tight_layout()

        self._finish(fig, save_path, show)

    def plot_pl_by_weekday(self, save_path: Optional[str] = None, show: bool = True) -> None:
        """Bar chart of net P/L per weekday, green for profit, red for loss."""
        totals = self.pl_by_weekday()
        colors = ['seagreen' if v >= 0 else 'indianred' for v in totals.values]

        fig, ax = plt.subplots(figsize=(10, 5))
        sns.barplot(x=totals.index, y=totals.values, hue=totals.index, palette=colors, legend=False, ax=ax)
        ax.axhline(0, color='black', linewidth=0.8)

        ax.set_xlabel('')
        ax.set_ylabel('Net P/L')
        ax.yaxis.set_major_formatter(mtick.StrMethodFormatter('{x:,.0f}'))
        ax.grid(True, axis='y', alpha=0.3)
        plt.tight_layout()

        self._finish(fig, save_path, show)

    def _finish(self, fig: Any, save_path: Optional[str], show: bool) -> None:
        if save_path:
            print(f" [>] Saving plot to {save_path}")
            fig.savefig(save_path, dpi=PLOT_DPI, bbox_inches='tight')
        if show:
            plt.show()
        plt.close(fig)
