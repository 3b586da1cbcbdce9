"""
CSV tokenizer for sheet exports.

Turns raw CSV text into rows of string fields. Quoting follows the standard
library ``csv`` reader in non-strict mode, which gives a fixed policy for
malformed input:

- a quote inside an unquoted field is kept as a literal character
- text following a closing quote is appended to the same field
- an unterminated quoted field runs to the end of the input

Blank lines are dropped. Short rows are kept as-is; callers read missing
trailing fields as ``None``. Field length is not capped, so long notes cells
parse like any other field.
"""

import csv
import io
import logging
import sys
from typing import List, Optional

logger = logging.getLogger(__name__)

BOM = '\ufeff'


def _raise_field_size_limit() -> int:
    """Lift the reader's per-field cap as far as the platform allows."""
    limit = sys.maxsize
    while True:
        try:
            csv.field_size_limit(limit)
            return limit
        except OverflowError:
            limit //= 10


FIELD_SIZE_LIMIT = _raise_field_size_limit()


def parse_csv(
    text: str,
    delimiter: str = ',',
    errors: Optional[List[str]] = None,
    label: str = 'CSV',
) -> List[List[str]]:
    """
    Parse CSV text into a list of rows.

    Args:
        text: Raw CSV content (CRLF, LF or CR line endings)
        delimiter: Field delimiter (default: comma)
        errors: If given, a reader failure is appended here as a message
        label: Sheet name used in that message

    Returns:
        List of rows, each a list of field strings
    """
    if not text:
        return []

    if text.startswith(BOM):
        text = text[len(BOM):]

    reader = csv.reader(
        io.StringIO(text, newline=''),
        delimiter=delimiter,
        quotechar='"',
        doublequote=True,
        strict=False,
    )

    rows = []
    try:
        for row in reader:
            if _is_blank_row(row):
                continue
            rows.append(row)
    except csv.Error as e:
        message = f"{label}: parsing stopped at line {reader.line_num} after {len(rows)} rows: {e}"
        logger.warning(message)
        if errors is not None:
            errors.append(message)
    return rows


def _is_blank_row(row: List[str]) -> bool:
    if not row:
        return True
    return len(row) == 1 and not row[0].strip()
