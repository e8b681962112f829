"""
Broker File Import Pipeline.

Entry point of the import subsystem. Chains the stages

    Decoding -> HeaderSearch -> ColumnMapping -> RowExtraction -> Done

and returns the reviewed-to-be batch of trades. Any stage failure raises a
TradeImportError subclass immediately; nothing is retried and nothing is
written. The pipeline holds no state between calls, so importing the same
bytes twice yields equal trades.
"""
import os
import time
from typing import Any

from .config import DEFAULT_SOURCE_TIMEZONE
from .column_mapper import map_columns
from .file_decoder import decode_file
from .header_locator import find_header_row
from .models import ImportOutcome
from .trade_assembler import assemble_trades


def import_file(
    file_bytes: bytes,
    file_name: str,
    timezone: str = DEFAULT_SOURCE_TIMEZONE,
    strict_sides: bool = False,
    verbose: bool = False
) -> ImportOutcome:
    """
    Parses a broker trade-history export into normalised trades.

    Args:
        file_bytes (bytes): Raw file content.
        file_name (str): Original file name; its extension selects the decoder.
        timezone (str): Zone in which offset-less timestamps were recorded.
        strict_sides (bool): Reject rows whose side is neither buy nor sell
            instead of treating them as sells.
        verbose (bool): Print a progress line per stage.

    Returns:
        ImportOutcome: Trades in source row order plus row counts.

    Raises:
        UnsupportedFileTypeError, DecodeError, NoHeaderFoundError,
        MissingColumnsError, NoValidTradesError.
    """
    # --- 1. Decoding ---
    grid = decode_file(file_bytes, file_name)
    if verbose:
        print(f"     - Decoded {len(grid)} rows from '{file_name}'")

    # --- 2. Header Search ---
    header_row = find_header_row(grid)
    if verbose:
        print(f"     - Header found on row {header_row + 1}")

    # --- 3. Column Mapping ---
    header_map = map_columns(grid[header_row])
    if verbose:
        mapped = ', '.join(f"{k}->{v}" for k, v in header_map.items())
        print(f"     - Mapped columns: {mapped}")

    # --- 4. Row Extraction ---
    outcome = assemble_trades(
        grid,
        header_row,
        header_map,
        timezone=timezone,
        strict_sides=strict_sides,
        file_name=file_name
    )
    if verbose:
        print(f"     - Valid trades: {len(outcome.trades)} (dropped {outcome.dropped_rows} of {outcome.total_rows} rows)")

    return outcome


def read_file(path: str) -> bytes:
    """Reads an export from disk."""
    with open(path, 'rb') as f:
        return f.read()


def load_trade_file(path: str, **kwargs: Any) -> ImportOutcome:
    """
    Imports a trade-history file from disk.

    Keyword arguments are passed through to import_file.
    """
    verbose = kwargs.get('verbose', False)
    if verbose:
        print(f"\n [>] Reading trade history: {path}...")
        time.sleep(0.5)

    outcome = import_file(read_file(path), os.path.basename(path), **kwargs)

    if verbose:
        print(" [+] File parsed successfully.\n")
        time.sleep(0.5)
    return outcome
