"""
Import router - Spare part workbook uploads, previews and job tracking.

This module provides endpoints for previewing and committing spare part
imports, downloading the blank template, and running an import as a
background job.
"""

import os
import logging
import tempfile
import shutil
import json
import uuid
from pathlib import Path
from typing import Tuple

import redis
from fastapi import APIRouter, UploadFile, File, Depends, HTTPException, status, Response
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from api.config import settings
from api.dependencies import (
    get_db, get_current_user, get_import_service,
    verify_file_extension, verify_file_size, verify_content_type
)
from api.schemas.import_schema import ImportPreviewResponse, ImportResultResponse, ImportStartResponse
from api.schemas.job_schema import JobStatusResponse, JobProgressResponse
from backend.models.job import JobRun, JobType, JobStatus
from services.errors import ImportEngineError
from services.spare_part_import_service import SparePartImportService
from services.storage_service import delete_file, get_file_size_mb
from services.template_service import TEMPLATE_CONTENT_TYPE, TEMPLATE_FILENAME, build_template
from tasks.import_tasks import import_spare_parts_file

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix='/spare-parts/import', tags=['spare-part-import'])

# Redis client for progress tracking
redis_client = redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)


def save_upload(file: UploadFile) -> Tuple[str, int]:
    """
    Validate an upload and copy it to the temp upload directory.

    Returns:
        (temp file path, size in bytes)

    Raises:
        HTTPException: If extension, content type or size is not allowed
    """
    verify_file_extension(file.filename)
    verify_content_type(file.content_type)

    fd, temp_path = tempfile.mkstemp(
        suffix=Path(file.filename).suffix,
        dir=settings.TEMP_UPLOAD_DIR
    )
    try:
        with os.fdopen(fd, 'wb') as tmp:
            shutil.copyfileobj(file.file, tmp)

        file_size = os.path.getsize(temp_path)
        verify_file_size(file_size)
    except Exception:
        delete_file(temp_path)
        raise

    logger.info(f"File saved to {temp_path} ({get_file_size_mb(temp_path):.2f} MB)")
    return temp_path, file_size


def engine_error(e: ImportEngineError) -> HTTPException:
    logger.warning(f"Import rejected ({e.kind.value}): {e.message}")
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.to_dict())


@router.post('/preview', response_model=ImportPreviewResponse)
async def preview_import(
    file: UploadFile = File(..., description="Spare parts workbook (.xlsx)"),
    service: SparePartImportService = Depends(get_import_service)
):
    """
    Parse an uploaded workbook without writing anything.

    Every row is returned with its validation errors, its embedded picture
    (as a data URL) and whether it would create or update a part.

    **Example:**
    ```bash
    curl -F "file=@parts.xlsx" http://localhost:8000/api/spare-parts/import/preview
    ```
    """
    logger.info(f"Preview request: {file.filename}")
    temp_path, _ = save_upload(file)

    try:
        data = Path(temp_path).read_bytes()
        result = await run_in_threadpool(service.preview_import, data)
    except ImportEngineError as e:
        raise engine_error(e)
    finally:
        delete_file(temp_path)

    return ImportPreviewResponse.from_result(result)


@router.post('', response_model=ImportResultResponse)
async def import_spare_parts(
    file: UploadFile = File(..., description="Spare parts workbook (.xlsx)"),
    service: SparePartImportService = Depends(get_import_service)
):
    """
    Import an uploaded workbook into the catalog.

    Valid rows create new parts or update existing ones matched by Part ID
    (case-insensitive). Invalid rows are skipped; rows that fail to save are
    reported individually and do not stop the import.

    **Returns:**
    - Counts of created, updated and failed rows
    - Row number and error for every failed row
    """
    logger.info(f"Import request: {file.filename}")
    temp_path, _ = save_upload(file)

    try:
        data = Path(temp_path).read_bytes()
        outcome = await run_in_threadpool(service.import_file, data)
    except ImportEngineError as e:
        raise engine_error(e)
    finally:
        delete_file(temp_path)

    return ImportResultResponse.from_outcome(outcome)


@router.get('/template')
async def download_template(current_user: str = Depends(get_current_user)):
    """Download a blank import workbook with the expected columns."""
    logger.info(f"Template download by {current_user}")
    return Response(
        content=build_template(),
        media_type=TEMPLATE_CONTENT_TYPE,
        headers={'Content-Disposition': f'attachment; filename="{TEMPLATE_FILENAME}"'}
    )


@router.post('/jobs', response_model=ImportStartResponse, status_code=status.HTTP_202_ACCEPTED)
async def start_import_job(
    file: UploadFile = File(..., description="Spare parts workbook (.xlsx)"),
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    """
    Upload a workbook and import it on a background worker.

    Returns immediately with a job ID. Poll
    GET /api/spare-parts/import/jobs/{job_id} for progress and the outcome.
    """
    logger.info(f"Background import request from {current_user}: {file.filename}")
    temp_path, file_size = save_upload(file)

    try:
        job_id = str(uuid.uuid4())
        job_run = JobRun(
            job_id=job_id,
            job_type=JobType.SPARE_PART_IMPORT,
            status=JobStatus.PENDING,
            params={
                'filename': file.filename,
                'file_size_mb': round(file_size / 1024 / 1024, 2)
            },
            created_by=current_user
        )
        db.add(job_run)
        # Committed before enqueueing so the worker finds the record
        db.commit()

        import_spare_parts_file.apply_async(args=[temp_path, current_user], task_id=job_id)

    except Exception as e:
        db.rollback()
        delete_file(temp_path)
        logger.error(f"Could not start import job: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Could not start import job: {str(e)}"
        )

    logger.info(f"Started import task {job_id} for file: {file.filename}")

    return ImportStartResponse(
        job_id=job_id,
        message="Spare part import job started",
        status_url=f"{settings.API_PREFIX}/spare-parts/import/jobs/{job_id}"
    )


@router.get('/jobs/{job_id}', response_model=JobStatusResponse)
async def get_job_status(
    job_id: str,
    db: Session = Depends(get_db)
):
    """
    Get current status of a background import.

    **Status Values:**
    - `pending`: Job is queued, waiting for worker
    - `processing`: Job is currently running
    - `success`: Job completed; `result` holds the import outcome
    - `failed`: Job failed; `error` holds the details
    """
    job_run = db.query(JobRun).filter_by(job_id=job_id).first()

    if not job_run:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Job {job_id} not found"
        )

    # Latest progress from Redis, falling back to the database
    progress = None
    try:
        progress_data = redis_client.get(f'job_progress:{job_id}')
        if progress_data:
            progress = JobProgressResponse(**json.loads(progress_data))
    except (redis.RedisError, ValueError) as e:
        logger.warning(f"Could not fetch progress from Redis for {job_id}: {e}")

    if not progress and job_run.progress:
        latest_progress = job_run.progress[-1]
        progress = JobProgressResponse(
            stage=latest_progress.stage,
            percent=float(latest_progress.percent),
            message=latest_progress.message or "",
            timestamp=latest_progress.timestamp
        )

    return JobStatusResponse(
        job_id=job_run.job_id,
        job_type=job_run.job_type,
        status=job_run.status,
        created_at=job_run.created_at,
        started_at=job_run.started_at,
        completed_at=job_run.completed_at,
        progress=progress,
        result=job_run.result,
        error=job_run.error,
        created_by=job_run.created_by
    )
