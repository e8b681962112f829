"""
Trade Journal.

Owns the persisted trade collection and the initial account balance, plus
the in-memory batch of pending trades that an import produced and a user has
not yet confirmed. Confirming merges the batch into the stored collection,
skipping trades that are already present.
"""
import dataclasses
import math
import uuid
from typing import List, Optional

import pandas as pd

from .config import TRADES_KEY, BALANCE_KEY, DEFAULT_INITIAL_BALANCE
from .errors import TradeNotFoundError
from .models import NormalizedTrade, trades_to_frame
from .storage import KeyValueStore


def generate_trade_id() -> str:
    return f"trade_{uuid.uuid4().hex[:12]}"


class TradeJournal:
    """
    Persistent trade collection backed by a KeyValueStore.

    Trades are stored newest-import-first as plain records (ISO timestamps),
    under the 'trades-data' key; the starting balance under 'initial-balance'.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store
        self.pending: List[NormalizedTrade] = []

        records = store.get(TRADES_KEY, []) or []
        self.trades: List[NormalizedTrade] = [NormalizedTrade.from_record(r) for r in records]
        self.initial_balance: float = float(store.get(BALANCE_KEY, DEFAULT_INITIAL_BALANCE))

    # ==========================================
    # PENDING IMPORTS
    # ==========================================
    def set_pending(self, trades: List[NormalizedTrade]) -> None:
        """Stages an import batch for review, giving every trade a fresh id."""
        self.pending = [
            dataclasses.replace(t, id=generate_trade_id(), date_closed=t.date_closed or t.date)
            for t in trades
        ]

    def clear_pending(self) -> None:
        self.pending = []

    def confirm_import(self, initial_balance: float) -> int:
        """
        Merges the pending batch into the journal.

        Pending trades whose (date, symbol, side, entry, exit, size) exactly
        match a stored trade are discarded. New trades are placed ahead of
        the existing ones.

        Args:
            initial_balance (float): Starting account balance for the equity
                curve; must be a positive number.

        Returns:
            int: Number of trades added.

        Raises:
            ValueError: If the balance is not a positive finite number.
        """
        try:
            balance = float(initial_balance)
        except (TypeError, ValueError):
            raise ValueError('Please enter a valid positive number for the initial balance.')
        if not math.isfinite(balance) or balance <= 0:
            raise ValueError('Please enter a valid positive number for the initial balance.')

        self.set_initial_balance(balance)

        existing_keys = {t.dedup_key() for t in self.trades}
        new_trades = [t for t in self.pending if t.dedup_key() not in existing_keys]

        if new_trades:
            self._save(new_trades + self.trades)

        self.clear_pending()
        return len(new_trades)

    # ==========================================
    # STORED TRADES
    # ==========================================
    def add_trade(self, trade: NormalizedTrade) -> NormalizedTrade:
        """Adds a single manually entered trade at the top of the journal."""
        new_trade = dataclasses.replace(trade, id=generate_trade_id())
        self._save([new_trade] + self.trades)
        return new_trade

    def update_trade(self, trade_id: str, **changes) -> NormalizedTrade:
        """
        Applies field changes to a stored trade.

        Raises:
            TradeNotFoundError: If no trade carries the id.
        """
        for idx, trade in enumerate(self.trades):
            if trade.id == trade_id:
                updated = dataclasses.replace(trade, **changes)
                trades = list(self.trades)
                trades[idx] = updated
                self._save(trades)
                return updated
        raise TradeNotFoundError(trade_id)

    def get_trade(self, trade_id: str) -> Optional[NormalizedTrade]:
        return next((t for t in self.trades if t.id == trade_id), None)

    def set_initial_balance(self, balance: float) -> None:
        self.initial_balance = float(balance)
        self.store.set(BALANCE_KEY, self.initial_balance)

    def reset_all(self) -> None:
        """Wipes stored trades and restores the default balance."""
        self._save([])
        self.set_initial_balance(DEFAULT_INITIAL_BALANCE)
        self.clear_pending()

    def to_frame(self) -> pd.DataFrame:
        return trades_to_frame(self.trades)

    def _save(self, trades: List[NormalizedTrade]) -> None:
        # Trades loaded from older stores may predate id assignment
        self.trades = [t if t.id else dataclasses.replace(t, id=generate_trade_id()) for t in trades]
        self.store.set(TRADES_KEY, [t.to_record() for t in self.trades])
