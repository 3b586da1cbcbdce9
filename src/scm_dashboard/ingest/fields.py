"""
Row and cell helpers shared by the sheet parsers.

Rows are turned into ``{header: value}`` records once, so the parsers work
with column names and never with positions. Missing trailing cells read as
``None`` and every value is whitespace-stripped.
"""

import re
from typing import Dict, Iterable, List, Optional, Sequence

# Characters tolerated around numbers in money/quantity cells
_NUMBER_NOISE_RE = re.compile(r'[\s$€£₹,]')

NULL_MARKERS = {'NULL', 'NA', 'N/A', '#N/A'}


def normalize_headers(header_row: Sequence[str]) -> List[str]:
    """Strip whitespace (and any stray BOM) from header cells."""
    return [h.strip().lstrip('\ufeff').strip() for h in header_row]


def row_to_record(headers: Sequence[str], row: Sequence[str]) -> Dict[str, Optional[str]]:
    """
    Map a data row onto its headers.

    Empty cells and cells beyond the end of a short row become None.
    """
    record: Dict[str, Optional[str]] = {}
    for index, header in enumerate(headers):
        if not header:
            continue
        value = row[index] if index < len(row) else None
        if value is not None:
            value = value.strip()
            if value == '':
                value = None
        record[header] = value
    return record


def missing_headers(headers: Iterable[str], required: Iterable[str]) -> List[str]:
    """Required headers absent from ``headers``, in required order."""
    present = set(headers)
    return [h for h in required if h not in present]


def first_value(record: Dict[str, Optional[str]], keys: Iterable[str]) -> Optional[str]:
    """Value of the first populated column among several aliases."""
    for key in keys:
        value = record.get(key)
        if value:
            return value
    return None


def parse_number(raw: Optional[str]) -> Optional[float]:
    """
    Parse a numeric cell.

    Thousands separators, currency symbols and spaces are ignored, so
    "$1,200.50" parses as 1200.5. Returns None for blank, null-marker or
    non-numeric input.
    """
    if raw is None:
        return None

    text = str(raw).strip()
    if not text or text.upper() in NULL_MARKERS:
        return None

    cleaned = _NUMBER_NOISE_RE.sub('', text)
    try:
        value = float(cleaned)
    except ValueError:
        return None

    if value != value or value in (float('inf'), float('-inf')):
        return None
    return value


def as_count(value: float):
    """Return integral floats as int so quantities print as 5, not 5.0."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value
