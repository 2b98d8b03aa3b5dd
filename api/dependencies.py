"""
Dependency injection utilities for FastAPI.

This module provides reusable dependencies for database sessions,
authentication, upload validation and the import service.
"""

import logging
from typing import Generator
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from fastapi import Depends, HTTPException, Header, status

from api.config import settings
from services.spare_part_import_service import SparePartImportService
from services.spare_part_repository import SparePartRepository
from services.storage_service import ImageStorageService, validate_file_extension

logger = logging.getLogger(__name__)

# Create database engine
engine = create_engine(
    settings.DATABASE_URL,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=settings.DB_POOL_PRE_PING,
    echo=settings.DEBUG
)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    Get database session dependency.

    Yields database session and ensures it's closed after use.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_api_key(
    x_api_key: str = Header(None, alias=settings.API_KEY_HEADER)
) -> str:
    """
    Validate API key from header.

    Raises:
        HTTPException: If API key is invalid or missing
    """
    if not settings.ENABLE_API_KEY_AUTH:
        # API key auth disabled - allow all requests
        return "public"

    if not x_api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key required",
            headers={"WWW-Authenticate": "ApiKey"}
        )

    if settings.API_KEYS and x_api_key not in settings.API_KEYS:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key"
        )

    return x_api_key


def get_current_user(api_key: str = Depends(get_api_key)) -> str:
    """Get current user from API key (the key is the user identifier)."""
    return api_key


def get_image_store() -> ImageStorageService:
    return ImageStorageService(
        image_dir=settings.SPARE_PART_IMAGE_DIR,
        public_url=settings.SPARE_PART_IMAGE_URL,
        max_dimension=settings.IMAGE_MAX_DIMENSION,
        quality=settings.IMAGE_QUALITY
    )


def get_import_service(
    db: Session = Depends(get_db),
    image_store: ImageStorageService = Depends(get_image_store),
    current_user: str = Depends(get_current_user)
) -> SparePartImportService:
    """Build an import service bound to the request's session and user."""
    return SparePartImportService(
        repository=SparePartRepository(db),
        image_store=image_store,
        header_scan_rows=settings.HEADER_SCAN_ROWS,
        actor=current_user
    )


def verify_file_size(file_size: int) -> bool:
    """
    Verify uploaded file size is within limit.

    Raises:
        HTTPException: If file is too large
    """
    max_size_bytes = settings.MAX_FILE_SIZE_MB * 1024 * 1024

    if file_size > max_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File size ({file_size / 1024 / 1024:.1f} MB) exceeds maximum allowed "
                   f"({settings.MAX_FILE_SIZE_MB} MB)"
        )

    return True


def verify_file_extension(filename: str) -> bool:
    """
    Verify file has allowed extension.

    Raises:
        HTTPException: If extension is not allowed
    """
    if not filename or not validate_file_extension(filename, settings.ALLOWED_EXTENSIONS):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File '{filename}' not allowed. "
                   f"Allowed extensions: {', '.join(settings.ALLOWED_EXTENSIONS)}"
        )

    return True


def verify_content_type(content_type: str) -> bool:
    """
    Verify the upload declares a spreadsheet content type.

    Raises:
        HTTPException: If the content type is not a spreadsheet type
    """
    if content_type not in settings.ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only Excel files (.xlsx, .xls) are allowed"
        )

    return True
