"""
Job-related Pydantic schemas.

This module contains schemas for background import job status and progress.
"""

from enum import Enum
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field
from datetime import datetime


class JobStatusEnum(str, Enum):
    """Job execution status."""
    PENDING = 'pending'
    PROCESSING = 'processing'
    SUCCESS = 'success'
    FAILED = 'failed'
    CANCELLED = 'cancelled'


class JobTypeEnum(str, Enum):
    """Type of background job."""
    SPARE_PART_IMPORT = 'spare_part_import'


class JobProgressResponse(BaseModel):
    """Real-time progress update."""

    stage: str = Field(..., description="Current stage (e.g., 'parsing', 'importing')")
    percent: float = Field(..., ge=0, le=100, description="Progress percentage")
    message: str = Field(..., description="Human-readable progress message")
    timestamp: datetime = Field(..., description="Progress update timestamp")

    class Config:
        json_schema_extra = {
            "example": {
                "stage": "importing",
                "percent": 65.5,
                "message": "Processed row 131/200",
                "timestamp": "2025-10-15T12:30:45Z"
            }
        }


class JobStatusResponse(BaseModel):
    """Comprehensive job status response."""

    job_id: str = Field(..., description="Unique job identifier (Celery task ID)")
    job_type: JobTypeEnum = Field(..., description="Type of job")
    status: JobStatusEnum = Field(..., description="Current job status")
    created_at: datetime = Field(..., description="Job creation timestamp")
    started_at: Optional[datetime] = Field(None, description="Job start timestamp")
    completed_at: Optional[datetime] = Field(None, description="Job completion timestamp")

    progress: Optional[JobProgressResponse] = Field(None, description="Latest progress update")

    result: Optional[Dict[str, Any]] = Field(None, description="Import outcome (if completed)")
    error: Optional[Dict[str, Any]] = Field(None, description="Error details (if failed)")

    created_by: Optional[str] = Field(None, description="User who created the job")

    class Config:
        from_attributes = True


class JobCreateResponse(BaseModel):
    """Response when a job is created."""

    job_id: str = Field(..., description="Unique job identifier")
    message: str = Field(default="Job created successfully", description="Success message")
    status_url: str = Field(..., description="URL to check job status")
