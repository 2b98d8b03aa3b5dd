"""
Spare parts router - Read access to the catalog.

This module provides endpoints for browsing the parts written by imports.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from api.dependencies import get_db
from api.schemas.spare_part_schema import SparePartListResponse, SparePartResponse
from services.spare_part_repository import SparePartRepository

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix='/spare-parts', tags=['spare-parts'])


@router.get('', response_model=SparePartListResponse)
async def list_spare_parts(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    search: Optional[str] = Query(None, description="Search name, part number, description or category"),
    db: Session = Depends(get_db)
):
    """
    List active spare parts with pagination.

    **Example:**
    ```bash
    curl "http://localhost:8000/api/spare-parts?page=1&page_size=20&search=seal"
    ```
    """
    total, parts = SparePartRepository(db).list_parts(page=page, page_size=page_size, search=search)

    total_pages = (total + page_size - 1) // page_size

    return SparePartListResponse(
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        items=[SparePartResponse.model_validate(part) for part in parts]
    )


@router.get('/{spare_part_id}', response_model=SparePartResponse)
async def get_spare_part(
    spare_part_id: int,
    db: Session = Depends(get_db)
):
    """Get a single spare part by id."""
    part = SparePartRepository(db).get(spare_part_id)

    if not part:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Spare part {spare_part_id} not found"
        )

    return SparePartResponse.model_validate(part)
