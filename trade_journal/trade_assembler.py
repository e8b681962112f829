"""
Trade assembly.

Walks the data rows below the detected header, pulls one value per mapped
canonical field, normalises them and keeps only the rows that form a
complete trade. Rejected rows are counted, never raised, unless not a single
row survives.
"""
import math
from typing import Optional, Sequence

from .config import DEFAULT_SOURCE_TIMEZONE, SIDE_BUY
from .errors import NoValidTradesError
from .field_normalizer import clean_number, parse_datetime, infer_side, is_blank
from .models import Cell, HeaderMap, ImportOutcome, NormalizedTrade, RawGrid, RawTradeRow


def extract_row(row: Sequence[Cell], header_map: HeaderMap) -> RawTradeRow:
    """
    Picks the raw value of every mapped field out of one grid row.

    Unmapped fields are absent from the result; a mapped column past the end
    of a short row reads as None.
    """
    return {
        field_name: (row[col] if col < len(row) else None)
        for field_name, col in header_map.items()
    }


def _optional_number(value: Cell) -> Optional[float]:
    if is_blank(value):
        return None
    number = clean_number(value)
    return number if math.isfinite(number) else None


def _number_or_zero(value: Cell) -> float:
    number = _optional_number(value)
    return 0.0 if number is None else number


def _finite(*values: float) -> bool:
    return all(math.isfinite(v) for v in values)


def derive_pl(side: str, entry: float, exit_price: float, size: float) -> float:
    """Profit/loss of a round trip when the export does not report it."""
    if side == SIDE_BUY:
        return (exit_price - entry) * size
    return (entry - exit_price) * size


def normalize_row(
    raw: RawTradeRow,
    timezone: str = DEFAULT_SOURCE_TIMEZONE,
    strict_sides: bool = False
) -> Optional[NormalizedTrade]:
    """
    Turns one RawTradeRow into a NormalizedTrade.

    Returns:
        Optional[NormalizedTrade]: The trade, or None if the row fails
        validation (missing/unparseable date, empty symbol, unknown side in
        strict mode, or a non-finite size/entry/exit/pl).
    """
    side = infer_side(raw.get('side'), strict=strict_sides)
    entry = clean_number(raw.get('entry'))
    exit_price = clean_number(raw.get('exit'))
    size = clean_number(raw.get('size'))

    # A mapped P/L column is authoritative, even when its cell is unusable
    if 'pl' in raw:
        pl = clean_number(raw['pl'])
    elif side is not None and _finite(entry, exit_price, size):
        pl = derive_pl(side, entry, exit_price, size)
    else:
        pl = math.nan

    date = parse_datetime(raw.get('date'), timezone)
    date_closed = None
    if 'dateClosed' in raw:
        date_closed = parse_datetime(raw['dateClosed'], timezone)
    if date_closed is None:
        date_closed = date

    symbol_cell = raw.get('symbol')
    symbol = '' if symbol_cell is None else str(symbol_cell).strip()

    # --- Validity gate ---
    if date is None or date_closed is None:
        return None
    if not symbol or side is None:
        return None
    if not _finite(size, entry, exit_price, pl):
        return None

    return NormalizedTrade(
        date=date,
        date_closed=date_closed,
        symbol=symbol,
        side=side,
        size=size,
        entry=entry,
        exit=exit_price,
        pl=pl,
        commission=_number_or_zero(raw.get('commission')),
        swap=_number_or_zero(raw.get('swap')),
        sl=_optional_number(raw.get('sl')),
        tp=_optional_number(raw.get('tp'))
    )


def assemble_trades(
    grid: RawGrid,
    header_row: int,
    header_map: HeaderMap,
    timezone: str = DEFAULT_SOURCE_TIMEZONE,
    strict_sides: bool = False,
    file_name: str = ''
) -> ImportOutcome:
    """
    Builds the ordered trade list from every row below the header row.

    Args:
        grid: Decoded file content.
        header_row: Index of the header row within the grid.
        header_map: Canonical field -> column index.
        timezone: Zone assumed for timestamps without offset.
        strict_sides: Reject rows whose side is neither buy nor sell.
        file_name: Source name, carried into the outcome for display.

    Returns:
        ImportOutcome: Trades in source row order with total/dropped counts.

    Raises:
        NoValidTradesError: If no data row passes validation.
    """
    data_rows = grid[header_row + 1:]

    trades = []
    dropped = 0
    for row in data_rows:
        trade = normalize_row(extract_row(row, header_map), timezone, strict_sides)
        if trade is None:
            dropped += 1
        else:
            trades.append(trade)

    if not trades:
        raise NoValidTradesError(dropped)

    return ImportOutcome(
        trades=trades,
        total_rows=len(data_rows),
        dropped_rows=dropped,
        header_row=header_row,
        header_map=dict(header_map),
        file_name=file_name
    )
