"""
Record types produced by the spare part import engine.

These are created fresh for every import call and never persisted directly.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from services.drawing_service import ImageBlob


@dataclass
class RowError:
    """A validation problem on a single field."""
    field: str
    message: str


@dataclass
class ImportRow:
    """One catalog row extracted from the worksheet."""
    row_number: int
    product_name: str
    part_id: str
    hsn_code: str = ''
    use_application: str = ''
    model_spec: str = ''
    manufacturing_unit: str = ''
    technical_sheet: str = ''
    base_price: float = 0.0
    image: Optional[ImageBlob] = None
    is_valid: bool = True
    errors: List[RowError] = field(default_factory=list)
    is_update: Optional[bool] = None

    @property
    def key(self) -> str:
        """Natural key used for create-vs-update decisions."""
        return self.part_id.strip().lower()


@dataclass
class PreviewResult:
    """Dry-run report for an uploaded workbook."""
    rows: List[ImportRow]
    total_rows: int
    valid_rows: int
    invalid_rows: int
    images_found: int
    update_count: int
    new_count: int


@dataclass
class RowFailure:
    """A row that could not be written during commit."""
    row_number: int
    error: str


@dataclass
class ImportOutcome:
    """Counts and failures from a commit pass."""
    created: int = 0
    updated: int = 0
    failed: int = 0
    errors: List[RowFailure] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'created': self.created,
            'updated': self.updated,
            'failed': self.failed,
            'errors': [{'row_number': e.row_number, 'error': e.error} for e in self.errors],
        }
