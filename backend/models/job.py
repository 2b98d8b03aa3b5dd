"""
Job tracking models for background imports.

This module defines SQLAlchemy models for tracking spare part import jobs
that run on a Celery worker, including their progress and results.
"""

from enum import Enum
from sqlalchemy import (
    Column, Integer, String, TIMESTAMP, ForeignKey, Numeric, Text,
    CheckConstraint, Index, text
)
from sqlalchemy.orm import relationship

from backend.models.schema import Base, JSONType


class JobStatus(str, Enum):
    """Job execution status."""
    PENDING = 'pending'
    PROCESSING = 'processing'
    SUCCESS = 'success'
    FAILED = 'failed'
    CANCELLED = 'cancelled'


class JobType(str, Enum):
    """Type of background job."""
    SPARE_PART_IMPORT = 'spare_part_import'


class JobRun(Base):
    """
    Represents a background spare part import.

    Tracks the lifecycle of a job from creation through completion,
    storing parameters, the import outcome, and error information.
    """

    __tablename__ = 'job_runs'
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'processing', 'success', 'failed', 'cancelled')",
            name='job_runs_status_check'
        ),
        Index('idx_job_runs_status', 'status'),
        Index('idx_job_runs_created_at', 'created_at'),
        Index('idx_job_runs_type_status', 'job_type', 'status'),
        {'comment': 'Tracks background import jobs'}
    )

    job_id = Column(
        String(255),
        primary_key=True,
        nullable=False,
        comment='Celery task UUID'
    )
    job_type = Column(
        String(50),
        nullable=False,
        comment='Type of job'
    )
    status = Column(
        String(20),
        nullable=False,
        server_default='pending',
        comment='Current job status'
    )
    created_at = Column(
        TIMESTAMP,
        server_default=text('CURRENT_TIMESTAMP'),
        nullable=False,
        comment='Job creation timestamp'
    )
    started_at = Column(
        TIMESTAMP,
        nullable=True,
        comment='Job start timestamp'
    )
    completed_at = Column(
        TIMESTAMP,
        nullable=True,
        comment='Job completion timestamp'
    )

    params = Column(
        JSONType,
        server_default='{}',
        nullable=False,
        comment='Input parameters for the job'
    )
    result = Column(
        JSONType,
        nullable=True,
        comment='Import outcome (created/updated/failed/errors)'
    )
    error = Column(
        JSONType,
        nullable=True,
        comment='Error details if job failed'
    )

    created_by = Column(
        String(255),
        nullable=True,
        comment='User or API key that created the job'
    )

    progress = relationship(
        'JobProgress',
        back_populates='job',
        cascade='all, delete-orphan',
        order_by='JobProgress.timestamp'
    )

    def __repr__(self):
        return f"<JobRun(job_id='{self.job_id}', type='{self.job_type}', status='{self.status}')>"


class JobProgress(Base):
    """A progress update recorded while a job runs."""

    __tablename__ = 'job_progress'
    __table_args__ = (
        Index('idx_job_progress_job_id', 'job_id'),
        Index('idx_job_progress_timestamp', 'timestamp'),
        {'comment': 'Detailed progress tracking for jobs'}
    )

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        nullable=False
    )
    job_id = Column(
        String(255),
        ForeignKey('job_runs.job_id', ondelete='CASCADE'),
        nullable=False,
        comment='Associated job ID'
    )
    stage = Column(
        String(50),
        nullable=False,
        comment='Current stage (e.g., parsing, importing)'
    )
    percent = Column(
        Numeric(5, 2),
        nullable=False,
        comment='Progress percentage (0.00 to 100.00)'
    )
    message = Column(
        Text,
        nullable=True,
        comment='Human-readable progress message'
    )
    timestamp = Column(
        TIMESTAMP,
        server_default=text('CURRENT_TIMESTAMP'),
        nullable=False,
        comment='Progress update timestamp'
    )

    job = relationship('JobRun', back_populates='progress')

    def __repr__(self):
        return f"<JobProgress(job_id='{self.job_id}', stage='{self.stage}', percent={self.percent})>"
