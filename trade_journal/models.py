"""
Trade Journal Data Model.

Defines the records exchanged between the import pipeline, the journal store
and the analytics layer:
- RawGrid / RawTradeRow / HeaderMap: transient structures of one import.
- NormalizedTrade: the validated output unit of the pipeline.
- ImportOutcome: the batch handed to the review step.
"""
from dataclasses import dataclass, field, asdict, fields
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

import pandas as pd

Cell = Union[str, int, float, datetime, None]
RawGrid = List[List[Cell]]
HeaderMap = Dict[str, int]
RawTradeRow = Dict[str, Cell]

# Columns of the trade DataFrame, in display order
TRADE_COLUMNS = [
    'id', 'date', 'date_closed', 'symbol', 'side', 'size', 'entry', 'exit',
    'pl', 'commission', 'swap', 'sl', 'tp'
]


@dataclass(frozen=True)
class NormalizedTrade:
    date: pd.Timestamp
    date_closed: pd.Timestamp
    symbol: str
    side: str
    size: float
    entry: float
    exit: float
    pl: float
    commission: float = 0.0
    swap: float = 0.0
    sl: Optional[float] = None
    tp: Optional[float] = None
    # Assigned when a trade enters the journal; not part of trade identity
    id: Optional[str] = field(default=None, compare=False)

    def dedup_key(self) -> tuple:
        """Exact-match key used to skip trades already present in the journal."""
        return (self.date, self.symbol, self.side, self.entry, self.exit, self.size)

    def to_record(self) -> Dict[str, Any]:
        """Serialises the trade to a plain dict with ISO-8601 timestamps."""
        record = asdict(self)
        record['date'] = self.date.isoformat()
        record['date_closed'] = self.date_closed.isoformat()
        return record

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> 'NormalizedTrade':
        """Rebuilds a trade from a stored record, tolerating unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in record.items() if k in known}

        # Older records may lack a close time
        closed = values.get('date_closed') or values['date']
        values['date'] = _as_utc(values['date'])
        values['date_closed'] = _as_utc(closed)

        return cls(**values)


def _as_utc(value: Any) -> pd.Timestamp:
    ts = pd.Timestamp(value)
    if ts.tzinfo is None:
        return ts.tz_localize('UTC')
    return ts.tz_convert('UTC')


@dataclass
class ImportOutcome:
    """Successful result of one import: trades in source row order plus counts."""
    trades: List[NormalizedTrade]
    total_rows: int
    dropped_rows: int
    header_row: int = 0
    header_map: HeaderMap = field(default_factory=dict)
    file_name: str = ''

    def to_frame(self) -> pd.DataFrame:
        return trades_to_frame(self.trades)


def trades_to_frame(trades: List[NormalizedTrade]) -> pd.DataFrame:
    """Converts a trade list to a DataFrame with the standard column order."""
    if not trades:
        return pd.DataFrame(columns=TRADE_COLUMNS)
    return pd.DataFrame([asdict(t) for t in trades]).reindex(columns=TRADE_COLUMNS)
