"""Models package for the spare parts catalog."""
from backend.models.schema import Base, SparePart, SparePartStatus
from backend.models.job import JobRun, JobProgress, JobStatus, JobType

__all__ = ['Base', 'SparePart', 'SparePartStatus', 'JobRun', 'JobProgress', 'JobStatus', 'JobType']
