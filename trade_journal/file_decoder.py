"""
Broker File Decoder.

Turns the raw bytes of an uploaded trade-history export into a RawGrid: a
list of equally wide rows of cell values. Two layouts are supported:

1. CSV: delimiter sniffed from the first lines, parsed without a header so
   that title rows above the real column header survive. Numeric-looking
   cells are converted to numbers (dynamic typing).
2. XLSX: first worksheet only, read through openpyxl. Cells keep the type
   stored in the workbook (text, number, datetime).

No interpretation of the content happens here; locating the header and
mapping the columns is left to the downstream stages.
"""
import csv
import io
import os
import re
from typing import List

import pandas as pd

from .config import SUPPORTED_EXTENSIONS
from .errors import DecodeError, UnsupportedFileTypeError
from .models import Cell, RawGrid

# Mirrors what a spreadsheet would treat as a number: optional sign,
# digits with an optional fraction, optional exponent.
_NUMERIC_CELL = re.compile(r'^\s*-?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?\s*$')

# ==========================================
# SECTION 1: GENERIC UTILITIES
# ==========================================
def detect_file_kind(file_name: str) -> str:
    """
    Infers the decoder path ('csv' or 'xlsx') from the file extension.

    Raises:
        UnsupportedFileTypeError: If the extension is not recognised.
    """
    _, ext = os.path.splitext(file_name or '')
    kind = SUPPORTED_EXTENSIONS.get(ext.lower())
    if kind is None:
        raise UnsupportedFileTypeError(file_name)
    return kind


def _decode_text(data: bytes) -> str:
    """
    Decodes CSV bytes, honouring UTF-16 byte order marks (MetaTrader 5 exports)
    before trying UTF-8 and the Windows code page used by older terminals.
    """
    if data.startswith(b'\xff\xfe') or data.startswith(b'\xfe\xff'):
        encodings = ('utf-16',)
    else:
        encodings = ('utf-8-sig', 'cp1252')

    last_error = None
    for enc in encodings:
        try:
            return data.decode(enc)
        except UnicodeDecodeError as e:
            last_error = e
    raise DecodeError(f"Could not decode file contents: {last_error}")


def _sniff_delimiter(text: str) -> str:
    """Detects the field delimiter from the first few KB of the file."""
    sample = text[:4096]
    try:
        return csv.Sniffer().sniff(sample, delimiters=',;\t|').delimiter
    except csv.Error:
        # Sniffer gives up on single-column or very irregular samples
        counts = {d: sample.count(d) for d in (',', ';', '\t')}
        best = max(counts, key=counts.get)
        return best if counts[best] > 0 else ','


def _max_field_count(text: str, delimiter: str) -> int:
    """Number of fields in the widest record of the file."""
    try:
        widths = [len(record) for record in csv.reader(io.StringIO(text), delimiter=delimiter)]
    except csv.Error as e:
        raise DecodeError(f"Error parsing CSV: {e}") from e
    return max(widths + [1])


def _coerce_cell(value: Cell) -> Cell:
    """Dynamic typing for CSV text: numeric-looking cells become int/float."""
    if not isinstance(value, str):
        # pandas marks fields missing from short rows as NaN
        return '' if pd.isna(value) else value

    if not _NUMERIC_CELL.match(value):
        return value

    token = value.strip()
    if '.' in token or 'e' in token.lower():
        return float(token)
    return int(token)


def _trim_trailing_columns(rows: List[List[Cell]]) -> RawGrid:
    """
    Cuts the empty padding columns left by trailing delimiters
    while keeping every row the same width.
    """
    width = 0
    for row in rows:
        for idx in range(len(row) - 1, -1, -1):
            if row[idx] != '':
                width = max(width, idx + 1)
                break
    return [row[:width] for row in rows]

# ==========================================
# SECTION 2: DECODERS
# ==========================================
def decode_csv(data: bytes) -> RawGrid:
    """
    Parses CSV bytes into a RawGrid.

    Blank lines are skipped entirely. Rows shorter than the widest row are
    padded with empty text so column positions line up across the grid.

    Args:
        data (bytes): Raw file content.

    Returns:
        RawGrid: Rows of text/number cells. Empty when the file has no content.

    Raises:
        DecodeError: If the bytes cannot be decoded or tokenised.
    """
    text = _decode_text(data)
    if not text.strip():
        return []

    delimiter = _sniff_delimiter(text)
    width = _max_field_count(text, delimiter)

    try:
        # A schema as wide as the widest record keeps short title rows and
        # the real table in one frame without cutting any column.
        df_raw = pd.read_csv(
            io.StringIO(text),
            sep=delimiter,
            header=None,
            names=list(range(width)),
            index_col=False,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            on_bad_lines='error',
            engine='c'
        )
    except pd.errors.EmptyDataError:
        return []
    except (pd.errors.ParserError, ValueError) as e:
        raise DecodeError(f"Error parsing CSV: {e}") from e

    rows = [[_coerce_cell(cell) for cell in row] for row in df_raw.values.tolist()]
    return _trim_trailing_columns(rows)


def decode_xlsx(data: bytes) -> RawGrid:
    """
    Loads the first worksheet of an XLSX workbook into a RawGrid.

    Empty cells are returned as empty text rather than being dropped, so
    column alignment is preserved. Values keep their workbook types.

    Raises:
        DecodeError: If the workbook is corrupt or cannot be opened.
    """
    try:
        # dtype=object stops pandas from widening integer columns to float
        df_sheet = pd.read_excel(
            io.BytesIO(data),
            sheet_name=0,
            header=None,
            dtype=object,
            engine='openpyxl'
        )
    except Exception as e:
        raise DecodeError(f"Error parsing XLSX: {e}") from e

    rows = []
    for row in df_sheet.values.tolist():
        rows.append(['' if (not isinstance(cell, str) and pd.isna(cell)) else cell for cell in row])
    return _trim_trailing_columns(rows)


def decode_file(data: bytes, file_name: str) -> RawGrid:
    """Dispatches to the decoder matching the file extension."""
    kind = detect_file_kind(file_name)
    if kind == 'csv':
        return decode_csv(data)
    return decode_xlsx(data)
