"""
Pydantic schemas for request/response validation.

This package contains all Pydantic models used for API request validation
and response serialization.
"""

from api.schemas.common import ErrorResponse, HealthCheckResponse
from api.schemas.job_schema import (
    JobStatusEnum, JobTypeEnum, JobProgressResponse,
    JobStatusResponse, JobCreateResponse
)
from api.schemas.import_schema import (
    ImportRowResponse, ImportPreviewResponse, ImportResultResponse, ImportStartResponse
)
from api.schemas.spare_part_schema import SparePartResponse, SparePartListResponse

__all__ = [
    # Common
    'ErrorResponse',
    'HealthCheckResponse',

    # Job
    'JobStatusEnum',
    'JobTypeEnum',
    'JobProgressResponse',
    'JobStatusResponse',
    'JobCreateResponse',

    # Import
    'ImportRowResponse',
    'ImportPreviewResponse',
    'ImportResultResponse',
    'ImportStartResponse',

    # Spare parts
    'SparePartResponse',
    'SparePartListResponse',
]
