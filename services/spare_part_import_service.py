"""
Spare Part Import Service - Framework-agnostic business logic.

This module ties the workbook parsing pipeline together and provides the two
entry points used by the API, CLI and background tasks:

- preview_import: parse, validate and reconcile without writing anything
- import_file: parse, validate and upsert every valid row, isolating
  failures per row
"""

import logging
from typing import Callable, Dict, List, Optional

from services.drawing_service import extract_row_images
from services.import_types import ImportOutcome, ImportRow, PreviewResult, RowFailure
from services.reconciliation import reconcile
from services.row_validator import validate_rows
from services.tabular_extractor import DEFAULT_HEADER_SCAN_ROWS, extract_rows, read_grid
from services.workbook_container import open_container

logger = logging.getLogger(__name__)

DESCRIPTION_FIELDS = (
    ('hsn_code', 'HSN Code'),
    ('use_application', 'Use/Application'),
    ('model_spec', 'Model Specification'),
    ('manufacturing_unit', 'Manufacturing Unit'),
)


def build_description(row: ImportRow) -> Optional[str]:
    """Join the optional descriptive attributes, one labelled line each."""
    lines = []
    for attr, label in DESCRIPTION_FIELDS:
        value = getattr(row, attr).strip()
        if value:
            lines.append(f"{label}: {value}")
    return '\n'.join(lines) or None


def build_specifications(row: ImportRow) -> Optional[dict]:
    if row.technical_sheet.strip():
        return {'technicalSheet': row.technical_sheet.strip()}
    return None


class SparePartImportService:
    """
    Spare part workbook import with preview and commit.

    The repository must provide list_keys(), key_map(), create(fields) and
    update(id, fields). The image store must provide
    store_image(data, part_id) -> url.
    """

    def __init__(
        self,
        repository,
        image_store=None,
        progress_callback: Optional[Callable[[str, float, str], None]] = None,
        header_scan_rows: int = DEFAULT_HEADER_SCAN_ROWS,
        actor: Optional[str] = None
    ):
        """
        Initialize spare part import service.

        Args:
            repository: Data store for spare parts
            image_store: Image store; None disables image persistence
            progress_callback: Optional callback for progress updates
                              Signature: callback(stage: str, percent: float, message: str)
            header_scan_rows: How many leading rows to search for the header
            actor: User recorded as creator/updater of written parts
        """
        self.repository = repository
        self.image_store = image_store
        self.progress_callback = progress_callback or (lambda *args: None)
        self.header_scan_rows = header_scan_rows
        self.actor = actor

    def _emit_progress(self, stage: str, percent: float, message: str):
        """Emit progress update via callback."""
        self.progress_callback(stage, percent, message)
        logger.info(f"Progress: {stage} ({percent:.1f}%) - {message}")

    def parse_workbook(self, data: bytes) -> List[ImportRow]:
        """
        Parse workbook bytes into validated rows with their images attached.

        Raises:
            InvalidContainerError: If the bytes are not a readable workbook
            HeaderNotFoundError: If no header row is found
        """
        with open_container(data) as container:
            row_images = extract_row_images(container)

        grid = read_grid(data)
        rows = extract_rows(grid, row_images, self.header_scan_rows)
        return validate_rows(rows)

    def preview_import(self, data: bytes) -> PreviewResult:
        """Dry run: report validation and create/update classification."""
        self._emit_progress('parsing', 0, 'Parsing workbook...')
        rows = self.parse_workbook(data)
        result = reconcile(rows, self.repository.list_keys())
        self._emit_progress('complete', 100, f"Previewed {result.total_rows} rows")
        return result

    def import_file(self, data: bytes) -> ImportOutcome:
        """
        Main import workflow.

        Parses the workbook again (row numbers are stable across parses),
        then creates or updates every valid row.
        """
        self._emit_progress('parsing', 0, 'Parsing workbook...')
        rows = self.parse_workbook(data)
        valid_rows = [row for row in rows if row.is_valid]
        logger.info(f"Importing {len(valid_rows)} valid rows "
                    f"({len(rows) - len(valid_rows)} invalid rows skipped)")

        self._emit_progress('importing', 10, f"Importing {len(valid_rows)} rows...")
        outcome = self.execute_import(valid_rows, self.repository.key_map())
        self._emit_progress('complete', 100,
                            f"Created {outcome.created}, updated {outcome.updated}, "
                            f"failed {outcome.failed}")
        return outcome

    def _store_image(self, row: ImportRow) -> Optional[str]:
        if row.image is None or self.image_store is None:
            return None
        try:
            return self.image_store.store_image(row.image.data, row.part_id)
        except Exception as e:
            logger.warning(f"Row {row.row_number}: could not store image for "
                           f"part {row.part_id}, continuing without it: {e}")
            return None

    def _import_row(self, row: ImportRow, key_map: Dict[str, int]) -> bool:
        """Write one row. Returns True if it created a new part."""
        image_url = self._store_image(row)

        fields = {
            'name': row.product_name,
            'description': build_description(row),
            'specifications': build_specifications(row),
            'updated_by': self.actor,
        }
        if image_url:
            fields['image_url'] = image_url

        existing_id = key_map.get(row.key)
        if existing_id is not None:
            self.repository.update(existing_id, fields)
            return False

        fields.update({
            'part_number': row.part_id.strip(),
            'base_price': row.base_price,
            'status': 'ACTIVE',
            'created_by': self.actor,
        })
        new_id = self.repository.create(fields)
        # later duplicates in the same file update this part
        key_map[row.key] = new_id
        return True

    def execute_import(self, rows: List[ImportRow], key_map: Dict[str, int]) -> ImportOutcome:
        """
        Create or update each valid row, in row order.

        Args:
            rows: Validated rows; invalid rows are ignored
            key_map: Lower-cased part ID -> existing id. Mutated as parts
                     are created.

        Returns:
            ImportOutcome with per-row failures
        """
        outcome = ImportOutcome()
        pending = sorted((row for row in rows if row.is_valid), key=lambda r: r.row_number)
        total = len(pending)

        for index, row in enumerate(pending):
            try:
                if self._import_row(row, key_map):
                    outcome.created += 1
                else:
                    outcome.updated += 1
            except Exception as e:
                logger.error(f"Row {row.row_number} ({row.part_id}) failed: {e}")
                outcome.failed += 1
                outcome.errors.append(RowFailure(row_number=row.row_number, error=str(e)))

            if total:
                percent = 10 + (90 * ((index + 1) / total))
                self._emit_progress('importing', percent,
                                    f"Processed row {index + 1}/{total}")

        logger.info(f"Import finished: {outcome.created} created, "
                    f"{outcome.updated} updated, {outcome.failed} failed")
        return outcome
