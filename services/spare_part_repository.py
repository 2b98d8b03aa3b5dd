"""
Spare part data store backed by SQLAlchemy.

Part IDs are matched case-insensitively. Every write commits immediately so
that a failure on one imported row never discards the rows before it.
"""

import logging
from typing import Any, Dict, List, Optional, Set, Tuple

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.models.schema import SparePart, SparePartStatus

logger = logging.getLogger(__name__)

# Columns an import is allowed to write
WRITABLE_FIELDS = (
    'name', 'part_number', 'description', 'category', 'base_price',
    'image_url', 'specifications', 'status', 'created_by', 'updated_by',
)


class SparePartNotFoundError(LookupError):
    pass


class SparePartRepository:
    """Data store operations used by the import engine and catalog API."""

    def __init__(self, db_session: Session):
        self.session = db_session

    def list_keys(self) -> Set[str]:
        """Return all existing part numbers."""
        return {number for (number,) in self.session.query(SparePart.part_number).all()}

    def key_map(self) -> Dict[str, int]:
        """Return lower-cased part number -> id for every part."""
        rows = self.session.query(SparePart.part_number, SparePart.id).all()
        return {number.lower(): part_id for number, part_id in rows}

    def find_by_key(self, part_id: str) -> Optional[int]:
        """Find a part's id by part number, ignoring case."""
        row = self.session.query(SparePart.id)\
            .filter(func.lower(SparePart.part_number) == part_id.strip().lower())\
            .first()
        return row[0] if row else None

    def get(self, spare_part_id: int) -> Optional[SparePart]:
        return self.session.get(SparePart, spare_part_id)

    def create(self, fields: Dict[str, Any]) -> int:
        """
        Insert a new spare part.

        Args:
            fields: Column values; unknown keys are ignored

        Returns:
            New part id
        """
        values = {k: v for k, v in fields.items() if k in WRITABLE_FIELDS}
        values.setdefault('status', SparePartStatus.ACTIVE)
        part = SparePart(**values)
        try:
            self.session.add(part)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        logger.debug(f"Created spare part {part.id} ({part.part_number})")
        return part.id

    def update(self, spare_part_id: int, fields: Dict[str, Any]) -> None:
        """
        Update an existing spare part.

        Raises:
            SparePartNotFoundError: If the id does not exist
        """
        part = self.get(spare_part_id)
        if part is None:
            raise SparePartNotFoundError(f"Spare part {spare_part_id} not found")

        for key, value in fields.items():
            if key in WRITABLE_FIELDS:
                setattr(part, key, value)
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        logger.debug(f"Updated spare part {spare_part_id} ({part.part_number})")

    def list_parts(self, page: int = 1, page_size: int = 50,
                   search: Optional[str] = None,
                   status: Optional[str] = SparePartStatus.ACTIVE) -> Tuple[int, List[SparePart]]:
        """
        Page through the catalog.

        Args:
            page: 1-based page number
            page_size: Items per page
            search: Case-insensitive match on name, part number or description
            status: Filter by status; None returns all

        Returns:
            (total matching rows, parts on this page)
        """
        query = self.session.query(SparePart)

        if status:
            query = query.filter(SparePart.status == status)

        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                SparePart.name.ilike(pattern),
                SparePart.part_number.ilike(pattern),
                SparePart.description.ilike(pattern),
                SparePart.category.ilike(pattern),
            ))

        total = query.count()
        parts = query.order_by(SparePart.name.asc())\
            .offset((page - 1) * page_size)\
            .limit(page_size)\
            .all()
        return total, parts
