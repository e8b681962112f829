"""
Cell-level normalisation.

Converts single raw cell values into their canonical typed form:
- clean_number: currency/thousands noise stripped, NaN when unparseable.
- parse_datetime: spreadsheet serials, a fixed list of broker date formats,
  then a free-form fallback. Always returns a UTC timestamp or None.
- infer_side: 'Buy' / 'Sell' from the broker's type/side text.

Failures here are never fatal; they surface as NaN/None and cause the row to
be rejected by the trade assembler.
"""
import math
import re
from datetime import datetime
from typing import Optional

import numpy as np
import pandas as pd
from dateutil import parser as date_parser

from .config import (
    DATE_FORMATS,
    SPREADSHEET_EPOCH,
    DEFAULT_SOURCE_TIMEZONE,
    FALLBACK_DEFAULT_DATE,
    SIDE_BUY,
    SIDE_SELL
)
from .models import Cell

_NON_NUMERIC = re.compile(r'[^0-9.\-]+')
_NUMBER_PREFIX = re.compile(r'-?(\d+\.?\d*|\.\d+)')

_EPOCH = pd.Timestamp(SPREADSHEET_EPOCH, tz='UTC')
_MS_PER_DAY = 86_400_000

# ==========================================
# SECTION 1: NUMBERS
# ==========================================
def clean_number(value: Cell) -> float:
    """
    Converts a cell to float.

    Text is reduced to digits, '.' and '-' (dropping currency symbols,
    thousands separators and units) and the leading numeric part is parsed.

    Returns:
        float: The parsed value, or NaN if nothing numeric remains.
    """
    if value is None or isinstance(value, bool):
        return math.nan

    if isinstance(value, (int, float, np.number)):
        return float(value)

    if isinstance(value, str):
        # Unicode minus from some PDF-to-CSV converters
        cleaned = _NON_NUMERIC.sub('', value.replace('−', '-'))
        match = _NUMBER_PREFIX.match(cleaned)
        return float(match.group(0)) if match else math.nan

    return math.nan


def is_blank(value: Cell) -> bool:
    """True for cells that carry no value at all ('', None, NaN, 0)."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ''
    if isinstance(value, (int, float, np.number)) and not isinstance(value, bool):
        return math.isnan(value) or value == 0
    return False

# ==========================================
# SECTION 2: DATES
# ==========================================
def _to_utc(ts: pd.Timestamp, timezone: str) -> Optional[pd.Timestamp]:
    """Localises naive timestamps to the source timezone and converts to UTC."""
    if pd.isna(ts):
        return None
    if ts.tzinfo is None:
        ts = ts.tz_localize(timezone, ambiguous='NaT', nonexistent='shift_forward')
        if pd.isna(ts):
            return None
    return ts.tz_convert('UTC')


def _from_serial(value: float) -> Optional[pd.Timestamp]:
    """Spreadsheet serial date (days since 1899-12-30 UTC) to a timestamp."""
    if not math.isfinite(value):
        return None
    try:
        return _EPOCH + pd.Timedelta(milliseconds=round(value * _MS_PER_DAY))
    except (OverflowError, ValueError):
        return None


def parse_datetime(value: Cell, timezone: str = DEFAULT_SOURCE_TIMEZONE) -> Optional[pd.Timestamp]:
    """
    Parses a date/time cell into a UTC timestamp.

    Resolution order (first match wins):
    1. Empty, zero or NaN cells -> None.
    2. datetime cells (XLSX date-formatted cells) are taken as they are.
    3. Numbers are spreadsheet serial dates.
    4. Text is tried against config.DATE_FORMATS in order.
    5. Free-form parsing of whatever text is left.

    Args:
        value: Raw cell value.
        timezone: Zone in which timestamps without an offset were recorded.

    Returns:
        Optional[pd.Timestamp]: tz-aware UTC timestamp, or None if unparseable.
    """
    if is_blank(value) or isinstance(value, bool):
        return None

    try:
        if isinstance(value, datetime):
            return _to_utc(pd.Timestamp(value), timezone)

        if isinstance(value, (int, float, np.number)):
            return _from_serial(float(value))

        text = str(value).strip()

        for fmt in DATE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
            except ValueError:
                continue
            if fmt.endswith('Z'):
                return pd.Timestamp(parsed, tz='UTC')
            return _to_utc(pd.Timestamp(parsed), timezone)

        # A fixed default keeps partial dates independent of the current day
        parsed = date_parser.parse(text, default=datetime(*FALLBACK_DEFAULT_DATE))
        return _to_utc(pd.Timestamp(parsed), timezone)

    except (ValueError, OverflowError):
        # dateutil.ParserError and pandas OutOfBounds errors are ValueErrors
        return None

# ==========================================
# SECTION 3: SIDE
# ==========================================
def infer_side(value: Cell, strict: bool = False) -> Optional[str]:
    """
    Derives the trade direction from a type/side cell.

    Any text containing 'buy' is a Buy. Everything else is a Sell, unless
    strict mode is on, in which case text mentioning neither 'buy' nor 'sell'
    yields None so the row is rejected.
    """
    text = '' if value is None else str(value).lower()

    if 'buy' in text:
        return SIDE_BUY
    if strict and 'sell' not in text:
        return None
    return SIDE_SELL
