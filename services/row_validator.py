"""Per-row validation for imported spare parts."""

import logging
import math
from typing import Iterable, List

from services.import_types import ImportRow, RowError

logger = logging.getLogger(__name__)


def parse_price(text: str) -> float:
    """
    Parse a price cell.

    Unparseable, non-finite or empty values fall back to 0.0 instead of
    failing the row.
    """
    if not text:
        return 0.0
    try:
        value = float(str(text).replace(',', '').strip())
    except ValueError:
        logger.debug(f"Unparseable price '{text}', defaulting to 0")
        return 0.0
    if not math.isfinite(value):
        logger.debug(f"Non-finite price '{text}', defaulting to 0")
        return 0.0
    return value


def validate_row(row: ImportRow) -> ImportRow:
    """Check required fields and set is_valid/errors on the row."""
    errors = []
    if not row.product_name.strip():
        errors.append(RowError(field='Product Name', message='Product Name is required'))
    if not row.part_id.strip():
        errors.append(RowError(field='Part ID', message='Part ID is required'))

    row.errors = errors
    row.is_valid = not errors
    return row


def validate_rows(rows: Iterable[ImportRow]) -> List[ImportRow]:
    return [validate_row(row) for row in rows]
