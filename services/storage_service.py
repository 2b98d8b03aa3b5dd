"""
Storage Service - Image storage and upload file management.

This module persists spare part pictures extracted from imported workbooks
and provides helpers for the temporary upload files handled by the API.
"""

import io
import re
import hashlib
import logging
import time
from pathlib import Path
from typing import Optional
from datetime import datetime

from PIL import Image

logger = logging.getLogger(__name__)

# Default storage locations
DEFAULT_IMAGE_DIR = 'storage/images/spare-parts'
DEFAULT_IMAGE_URL = '/storage/images/spare-parts'
DEFAULT_MAX_DIMENSION = 800
DEFAULT_QUALITY = 80


class ImageStorageError(Exception):
    """Raised when an image cannot be decoded or written."""


class ImageStorageService:
    """
    Framework-agnostic image store for spare part pictures.

    Images are downscaled to fit a square box, re-encoded as JPEG and written
    under a collision-resistant name derived from the part ID.
    """

    def __init__(self, image_dir: str = DEFAULT_IMAGE_DIR,
                 public_url: str = DEFAULT_IMAGE_URL,
                 max_dimension: int = DEFAULT_MAX_DIMENSION,
                 quality: int = DEFAULT_QUALITY):
        """
        Initialize image storage service.

        Args:
            image_dir: Directory to write images to
            public_url: URL prefix the directory is served under
            max_dimension: Bounding box edge in pixels (no enlargement)
            quality: JPEG quality (1-95)
        """
        self.image_dir = image_dir
        self.public_url = public_url.rstrip('/')
        self.max_dimension = max_dimension
        self.quality = quality

    def _ensure_directory_exists(self):
        """Ensure the image directory exists."""
        Path(self.image_dir).mkdir(parents=True, exist_ok=True)
        logger.debug(f"Storage directory ensured: {self.image_dir}")

    @staticmethod
    def safe_key(part_id: str) -> str:
        """Make a part ID safe for use in a file name."""
        return re.sub(r'[^a-zA-Z0-9_-]', '_', part_id)

    def derive_filename(self, part_id: str, timestamp: Optional[float] = None) -> str:
        """
        Build a unique file name for a part image.

        The name combines the sanitized part ID with a short digest of the
        part ID and the current time, so re-imports never overwrite a file
        that an earlier import is still referencing.
        """
        if timestamp is None:
            timestamp = time.time()
        digest = hashlib.md5(f"{part_id}{int(timestamp * 1000)}".encode('utf-8')).hexdigest()[:8]
        return f"{self.safe_key(part_id)}-{digest}.jpg"

    def compress_image(self, data: bytes, max_dimension: Optional[int] = None,
                       quality: Optional[int] = None) -> bytes:
        """
        Downscale and re-encode image bytes as JPEG.

        Args:
            data: Raw image bytes (PNG, JPEG, ...)
            max_dimension: Override for the bounding box edge
            quality: Override for JPEG quality

        Returns:
            JPEG bytes

        Raises:
            ImageStorageError: If the bytes are not a decodable image
        """
        max_dimension = max_dimension or self.max_dimension
        quality = quality or self.quality

        try:
            with Image.open(io.BytesIO(data)) as img:
                img = img.convert('RGB')
                img.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)
                output = io.BytesIO()
                img.save(output, format='JPEG', quality=quality)
                return output.getvalue()
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise ImageStorageError(f"Could not process image: {e}") from e

    def store_image(self, data: bytes, part_id: str,
                    max_dimension: Optional[int] = None,
                    quality: Optional[int] = None) -> str:
        """
        Compress and store a part image.

        Args:
            data: Raw image bytes
            part_id: Part ID used to derive the file name

        Returns:
            Public URL of the stored image
        """
        self._ensure_directory_exists()

        compressed = self.compress_image(data, max_dimension, quality)
        filename = self.derive_filename(part_id)
        dest_path = Path(self.image_dir) / filename

        try:
            dest_path.write_bytes(compressed)
        except OSError as e:
            logger.error(f"Failed to store image for part {part_id}: {e}")
            raise ImageStorageError(f"Could not write {dest_path}: {e}") from e

        logger.info(f"Stored image for part {part_id}: {filename}")
        return f"{self.public_url}/{filename}"


def validate_file_extension(file_path: str, allowed_extensions: list = None) -> bool:
    """
    Validate file extension.

    Args:
        file_path: Path or name of the file
        allowed_extensions: List of allowed extensions (e.g., ['.xlsx', '.xls'])

    Returns:
        True if extension is allowed, False otherwise
    """
    if allowed_extensions is None:
        allowed_extensions = ['.xlsx', '.xls']

    ext = Path(file_path).suffix.lower()
    is_valid = ext in [e.lower() for e in allowed_extensions]

    if not is_valid:
        logger.warning(f"Invalid file extension: {ext} (allowed: {allowed_extensions})")

    return is_valid


def get_file_size_mb(file_path: str) -> float:
    """Get file size in megabytes, 0.0 if the file is missing."""
    path = Path(file_path)

    if not path.exists():
        return 0.0

    return round(path.stat().st_size / (1024 * 1024), 2)


def delete_file(file_path: str) -> bool:
    """
    Delete a file, e.g. a temporary upload.

    Returns:
        True if file was deleted, False if file didn't exist
    """
    path = Path(file_path)

    if path.exists():
        path.unlink()
        logger.info(f"Deleted file: {file_path}")
        return True
    else:
        logger.warning(f"File not found for deletion: {file_path}")
        return False


def cleanup_temp_files(temp_dir: str, older_than_hours: int = 24) -> int:
    """
    Clean up temporary upload files older than specified hours.

    Args:
        temp_dir: Temporary directory to clean
        older_than_hours: Remove files older than this many hours

    Returns:
        Number of files deleted
    """
    temp_path = Path(temp_dir)

    if not temp_path.exists():
        return 0

    cutoff_time = datetime.now().timestamp() - (older_than_hours * 3600)

    deleted_count = 0

    for file_path in temp_path.glob("*"):
        if file_path.is_file() and file_path.stat().st_mtime < cutoff_time:
            try:
                file_path.unlink()
                deleted_count += 1
                logger.debug(f"Cleaned up temp file: {file_path}")
            except OSError as e:
                logger.error(f"Error deleting temp file {file_path}: {e}")

    if deleted_count > 0:
        logger.info(f"Cleaned up {deleted_count} temporary files")

    return deleted_count
