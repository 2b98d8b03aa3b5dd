"""
Import-related Pydantic schemas.

This module contains response schemas for spare part import preview and
commit, converting the service layer records into JSON-ready models.
"""

from typing import List, Optional
from pydantic import BaseModel, Field

from api.schemas.job_schema import JobCreateResponse
from services.import_types import ImportOutcome, ImportRow, PreviewResult


class RowErrorResponse(BaseModel):
    """Validation error on a single field."""

    field: str = Field(..., description="Column the error refers to")
    message: str = Field(..., description="Human-readable error")


class ImportRowResponse(BaseModel):
    """One parsed spare part row."""

    row_number: int = Field(..., description="Row number as shown to the user")
    product_name: str
    part_id: str
    hsn_code: str = ""
    use_application: str = ""
    model_spec: str = ""
    manufacturing_unit: str = ""
    technical_sheet: str = ""
    base_price: float = 0.0
    image_data_url: Optional[str] = Field(None, description="Embedded picture as a data URL")
    is_valid: bool
    errors: List[RowErrorResponse] = Field(default_factory=list)
    is_update: Optional[bool] = Field(None, description="True if the part ID already exists")

    @classmethod
    def from_row(cls, row: ImportRow) -> "ImportRowResponse":
        return cls(
            row_number=row.row_number,
            product_name=row.product_name,
            part_id=row.part_id,
            hsn_code=row.hsn_code,
            use_application=row.use_application,
            model_spec=row.model_spec,
            manufacturing_unit=row.manufacturing_unit,
            technical_sheet=row.technical_sheet,
            base_price=row.base_price,
            image_data_url=row.image.data_url if row.image else None,
            is_valid=row.is_valid,
            errors=[RowErrorResponse(field=e.field, message=e.message) for e in row.errors],
            is_update=row.is_update
        )


class ImportPreviewResponse(BaseModel):
    """Dry-run result for an uploaded workbook."""

    rows: List[ImportRowResponse] = Field(..., description="Parsed rows in sheet order")
    total_rows: int
    valid_rows: int
    invalid_rows: int
    images_found: int
    update_count: int
    new_count: int

    @classmethod
    def from_result(cls, result: PreviewResult) -> "ImportPreviewResponse":
        return cls(
            rows=[ImportRowResponse.from_row(row) for row in result.rows],
            total_rows=result.total_rows,
            valid_rows=result.valid_rows,
            invalid_rows=result.invalid_rows,
            images_found=result.images_found,
            update_count=result.update_count,
            new_count=result.new_count
        )

    class Config:
        json_schema_extra = {
            "example": {
                "rows": [],
                "total_rows": 2,
                "valid_rows": 2,
                "invalid_rows": 0,
                "images_found": 1,
                "update_count": 1,
                "new_count": 1
            }
        }


class RowFailureResponse(BaseModel):
    row_number: int
    error: str


class ImportResultResponse(BaseModel):
    """Outcome of a committed import."""

    created: int = Field(..., description="Parts created")
    updated: int = Field(..., description="Parts updated")
    failed: int = Field(..., description="Rows that could not be written")
    errors: List[RowFailureResponse] = Field(default_factory=list, description="Per-row failures")

    @classmethod
    def from_outcome(cls, outcome: ImportOutcome) -> "ImportResultResponse":
        return cls(**outcome.to_dict())

    class Config:
        json_schema_extra = {
            "example": {
                "created": 12,
                "updated": 3,
                "failed": 1,
                "errors": [{"row_number": 7, "error": "duplicate key value"}]
            }
        }


class ImportStartResponse(JobCreateResponse):
    """
    Response when a background import is initiated.

    Extends JobCreateResponse with import-specific messages.
    """

    class Config:
        json_schema_extra = {
            "example": {
                "job_id": "abc-123-def-456",
                "message": "Spare part import job started",
                "status_url": "/api/spare-parts/import/jobs/abc-123-def-456"
            }
        }
