"""
Header row detection.

Broker exports often start with account details or report titles, so the
column header is not necessarily the first row. Each candidate row is scored
by how many of its cells mention a known trade-column keyword; the best
scoring row within the search window wins.
"""
from typing import List, Optional, Sequence

from .config import HEADER_KEYWORDS, HEADER_SEARCH_ROWS
from .errors import NoHeaderFoundError
from .models import Cell, RawGrid


def score_header_row(row: Sequence[Cell], keywords: Optional[List[str]] = None) -> int:
    """Counts the cells of a row that contain at least one header keyword."""
    keywords = HEADER_KEYWORDS if keywords is None else keywords
    cells = [str(cell).lower() for cell in row]
    return sum(1 for cell in cells if any(kw in cell for kw in keywords))


def find_header_row(grid: RawGrid, max_rows: int = HEADER_SEARCH_ROWS) -> int:
    """
    Returns the index of the most header-like row among the first rows.

    Rows are scanned top to bottom and only a strictly higher score replaces
    the current best, so ties resolve to the earliest row.

    Raises:
        NoHeaderFoundError: If no row in the window matches any keyword.
    """
    best_index = -1
    best_score = 0

    for idx, row in enumerate(grid[:max_rows]):
        if not isinstance(row, (list, tuple)):
            continue
        score = score_header_row(row)
        if score > best_score:
            best_score = score
            best_index = idx

    if best_index == -1:
        raise NoHeaderFoundError()
    return best_index
