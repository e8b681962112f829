"""
Column mapping.

Resolves the labels of the detected header row to the canonical trade fields
using the alias table in config. Labels are normalised first so that
'S / L', 's/l' and 'S-L' all collapse to 's l'. Repeated labels are kept in
order, which is how the open and close legs of a statement ('Time', 'Price'
appearing twice) are told apart.
"""
import re
from typing import Dict, List, Optional, Sequence, Tuple

from .config import COLUMN_ALIASES, REQUIRED_FIELDS
from .errors import MissingColumnsError
from .models import Cell, HeaderMap

_NON_ALNUM = re.compile(r'[^a-z0-9]+')


def normalize_header(label: Cell) -> str:
    """Lower-cases a label and collapses every non-alphanumeric run to one space."""
    return _NON_ALNUM.sub(' ', str(label).lower()).strip()


def build_header_index(header_row: Sequence[Cell]) -> Dict[str, List[int]]:
    """Maps each normalised label to the positions of all columns carrying it."""
    index: Dict[str, List[int]] = {}
    for pos, label in enumerate(header_row):
        index.setdefault(normalize_header(label), []).append(pos)
    return index


def _resolve(index: Dict[str, List[int]], candidates: List[Tuple[str, int]]) -> Optional[int]:
    """Returns the column of the first (alias, occurrence) candidate present."""
    for alias, occurrence in candidates:
        positions = index.get(alias, [])
        if len(positions) > occurrence:
            return positions[occurrence]
    return None


def map_columns(
    header_row: Sequence[Cell],
    aliases: Optional[Dict[str, List[Tuple[str, int]]]] = None
) -> HeaderMap:
    """
    Builds the HeaderMap for a header row.

    Args:
        header_row: Cell labels of the detected header row.
        aliases: Alias table override; defaults to config.COLUMN_ALIASES.

    Returns:
        HeaderMap: Canonical field -> column index, for every field found.

    Raises:
        MissingColumnsError: If a required field has no column.
    """
    aliases = COLUMN_ALIASES if aliases is None else aliases
    index = build_header_index(header_row)

    header_map: HeaderMap = {}
    for field_name, candidates in aliases.items():
        col = _resolve(index, candidates)
        if col is not None:
            header_map[field_name] = col

    missing = [f for f in REQUIRED_FIELDS if f not in header_map]
    if missing:
        raise MissingColumnsError(missing)

    return header_map
