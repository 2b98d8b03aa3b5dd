"""Spare part catalog schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class SparePartResponse(BaseModel):
    """A catalog spare part."""

    id: int
    name: str
    part_number: str
    description: Optional[str] = None
    category: Optional[str] = None
    base_price: float = 0.0
    image_url: Optional[str] = None
    specifications: Optional[Dict[str, Any]] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SparePartListResponse(BaseModel):
    """Paginated list of spare parts."""

    total: int = Field(..., description="Total number of parts")
    page: int = Field(..., description="Current page number")
    page_size: int = Field(..., description="Items per page")
    total_pages: int = Field(..., description="Total number of pages")
    items: List[SparePartResponse] = Field(..., description="Parts in current page")
