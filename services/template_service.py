"""Blank import template for spare parts."""

import io
import logging

import openpyxl
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

logger = logging.getLogger(__name__)

TEMPLATE_HEADERS = [
    'Product Name',
    'Part ID',
    'HSN Code',
    '(Use/Application of product)',
    'Model Specification',
    'Manufacturing Unit',
    'Ratings/Technical sheet',
    'Price',
]

TEMPLATE_EXAMPLE_ROW = [
    'Hydraulic Seal Kit',
    'SP-1001',
    '84849000',
    'Sealing for hydraulic cylinders',
    'HSK-200',
    'Pune',
    'Max pressure 250 bar',
    1250,
]

TEMPLATE_FILENAME = 'spare_parts_import_template.xlsx'
TEMPLATE_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


def build_template() -> bytes:
    """Build the template workbook: header row plus one example row."""
    workbook = openpyxl.Workbook()
    worksheet = workbook.active
    worksheet.title = 'Spare Parts'

    worksheet.append(TEMPLATE_HEADERS)
    worksheet.append(TEMPLATE_EXAMPLE_ROW)

    header_fill = PatternFill(start_color='FFD9E1F2', end_color='FFD9E1F2', fill_type='solid')
    for col_idx, header in enumerate(TEMPLATE_HEADERS, 1):
        cell = worksheet.cell(row=1, column=col_idx)
        cell.font = Font(bold=True)
        cell.fill = header_fill
        worksheet.column_dimensions[get_column_letter(col_idx)].width = max(len(header) + 4, 16)

    worksheet.freeze_panes = 'A2'

    output = io.BytesIO()
    workbook.save(output)
    logger.debug("Built spare parts import template")
    return output.getvalue()
