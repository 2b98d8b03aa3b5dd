"""
Tabular Extractor - Turn the worksheet grid into spare part rows.

The header row is located by content rather than position: catalog sheets
often carry a title block above the table. Row numbers are derived from the
position below the header so that repeated parses of the same file always
produce the same numbering.
"""

import io
import logging
import zipfile
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from services.drawing_service import ImageBlob
from services.errors import HeaderNotFoundError, InvalidContainerError
from services.import_types import ImportRow
from services.row_validator import parse_price

logger = logging.getLogger(__name__)

DEFAULT_HEADER_SCAN_ROWS = 10
HEADER_MARKER = 'product name'

# Field -> accepted column headers, in lookup order
COLUMN_ALIASES = {
    'product_name': ('Product Name',),
    'part_id': ('Part ID',),
    'hsn_code': ('HSN Code',),
    'use_application': ('(Use/Application of product)', 'Use/Application'),
    'model_spec': ('Model Specification',),
    'manufacturing_unit': ('Manufacturing Unit',),
    'technical_sheet': ('Ratings/Technical sheet', 'Technical Sheet'),
    'base_price': ('Price', 'Base Price'),
}


def cell_text(value: Any) -> str:
    """Render a raw cell value as trimmed text."""
    if value is None:
        return ''
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.isoformat(sep=' ')
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def read_grid(data: bytes) -> List[List[Any]]:
    """
    Read the first worksheet as raw rows of cell values.

    Formulas are not evaluated; the cached values stored in the file are used.
    The sheet is read in read-only mode, which leaves drawings and media to
    the drawing service.

    Raises:
        InvalidContainerError: If openpyxl cannot load the workbook
    """
    try:
        workbook = openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError, OSError) as e:
        logger.error(f"Could not load workbook: {e}")
        raise InvalidContainerError() from e

    try:
        if not workbook.worksheets:
            raise InvalidContainerError('Workbook contains no worksheet')
        worksheet = workbook.worksheets[0]
        logger.info(f"Reading sheet '{worksheet.title}' "
                    f"({worksheet.max_row} rows x {worksheet.max_column} columns)")
        # Stored dimensions can be stale; read every row present
        worksheet.reset_dimensions()
        return [list(row) for row in worksheet.iter_rows(min_row=1, values_only=True)]
    finally:
        workbook.close()


def find_header_row(grid: Sequence[Sequence[Any]],
                    max_scan: int = DEFAULT_HEADER_SCAN_ROWS) -> int:
    """
    Find the 0-based index of the header row.

    Raises:
        HeaderNotFoundError: If none of the first max_scan rows mentions
            'Product Name'
    """
    for index, row in enumerate(grid[:max_scan]):
        if any(HEADER_MARKER in cell_text(cell).lower() for cell in row):
            logger.info(f"Header row found at grid index {index}")
            return index
    raise HeaderNotFoundError()


class ColumnLookup:
    """Case-insensitive column name lookup built from the header row."""

    def __init__(self, header: Sequence[Any]):
        self.columns: Dict[str, int] = {}
        for index, cell in enumerate(header):
            name = cell_text(cell)
            if name:
                self.columns[name] = index
        self._folded = {}
        for name, index in self.columns.items():
            self._folded.setdefault(name.lower(), index)

    def _value_at(self, row: Sequence[Any], index: Optional[int]) -> str:
        if index is None or index >= len(row):
            return ''
        return cell_text(row[index])

    def get(self, row: Sequence[Any], column: str) -> str:
        """Exact header match first, then case-insensitive; '' if unresolved."""
        value = self._value_at(row, self.columns.get(column))
        if value:
            return value
        return self._value_at(row, self._folded.get(column.lower()))

    def first(self, row: Sequence[Any], *columns: str) -> str:
        for column in columns:
            value = self.get(row, column)
            if value:
                return value
        return ''


def extract_rows(grid: Sequence[Sequence[Any]],
                 row_images: Optional[Dict[int, ImageBlob]] = None,
                 max_scan: int = DEFAULT_HEADER_SCAN_ROWS) -> List[ImportRow]:
    """
    Materialize ImportRow records from the grid.

    Args:
        grid: Raw worksheet rows
        row_images: Mapping of 0-based grid row -> image
        max_scan: How many leading rows to search for the header

    Returns:
        One ImportRow per non-blank data row, in sheet order. Rows have not
        been validated yet.
    """
    row_images = row_images or {}
    header_index = find_header_row(grid, max_scan)
    lookup = ColumnLookup(grid[header_index])
    logger.debug(f"Header columns: {list(lookup.columns)}")

    rows = []
    for offset, raw in enumerate(grid[header_index + 1:]):
        if not raw:
            continue

        values = {
            name: lookup.first(raw, *aliases)
            for name, aliases in COLUMN_ALIASES.items()
        }
        if not values['product_name'] and not values['part_id']:
            continue

        rows.append(ImportRow(
            row_number=offset + 2,
            product_name=values['product_name'],
            part_id=values['part_id'],
            hsn_code=values['hsn_code'],
            use_application=values['use_application'],
            model_spec=values['model_spec'],
            manufacturing_unit=values['manufacturing_unit'],
            technical_sheet=values['technical_sheet'],
            base_price=parse_price(values['base_price']),
            image=row_images.get(header_index + 1 + offset),
        ))

    logger.info(f"Extracted {len(rows)} data rows below header")
    return rows
