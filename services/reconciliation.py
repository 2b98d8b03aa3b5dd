"""
Reconciliation of imported rows against the existing catalog.

Classifies each valid row as a new part or an update of an existing one.
This is the preview step: it performs no writes and can be repeated freely.
"""

import logging
from typing import Iterable, List

from services.import_types import ImportRow, PreviewResult

logger = logging.getLogger(__name__)


def reconcile(rows: List[ImportRow], existing_keys: Iterable[str]) -> PreviewResult:
    """
    Mark valid rows as create or update and aggregate batch counts.

    Args:
        rows: Validated rows
        existing_keys: Part IDs already in the catalog (any case)

    Returns:
        PreviewResult over all rows. Invalid rows keep is_update=None and
        are excluded from update_count/new_count.
    """
    known = {key.strip().lower() for key in existing_keys if key}

    update_count = 0
    new_count = 0
    images_found = 0
    valid_rows = 0

    for row in rows:
        if row.image is not None:
            images_found += 1

        if not row.is_valid:
            row.is_update = None
            continue

        valid_rows += 1
        row.is_update = row.key in known
        if row.is_update:
            update_count += 1
        else:
            new_count += 1

    logger.info(f"Reconciled {len(rows)} rows: {valid_rows} valid, "
                f"{update_count} updates, {new_count} new, {images_found} images")

    return PreviewResult(
        rows=rows,
        total_rows=len(rows),
        valid_rows=valid_rows,
        invalid_rows=len(rows) - valid_rows,
        images_found=images_found,
        update_count=update_count,
        new_count=new_count,
    )
