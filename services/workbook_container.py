"""
Workbook container access.

An .xlsx file is a zip archive of XML parts and binary media. This module
opens the archive once per import and reads individual parts on demand.
Missing parts are reported as None so that optional content (drawings,
media) degrades gracefully instead of failing the import.
"""

import io
import logging
import posixpath
import zipfile
from typing import Dict, List, Optional

from services.errors import InvalidContainerError

logger = logging.getLogger(__name__)

MEDIA_PREFIX = 'xl/media/'


class WorkbookContainer:
    """Read-only view over the parts of a workbook archive."""

    def __init__(self, archive: zipfile.ZipFile):
        self._archive = archive
        self._names = set(archive.namelist())

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def close(self):
        self._archive.close()

    def list_entries(self) -> List[str]:
        """Return every part path in archive order."""
        return self._archive.namelist()

    def has_part(self, path: str) -> bool:
        return path in self._names

    def read_binary(self, path: str) -> Optional[bytes]:
        """
        Read a part as raw bytes.

        Args:
            path: Part path inside the archive (e.g. 'xl/media/image1.png')

        Returns:
            Part contents, or None if the part does not exist or is unreadable
        """
        if path not in self._names:
            return None
        try:
            return self._archive.read(path)
        except (zipfile.BadZipFile, OSError, RuntimeError) as e:
            logger.warning(f"Could not read workbook part {path}: {e}")
            return None

    def read_text(self, path: str) -> Optional[str]:
        """Read a part as UTF-8 text, or None if it is missing."""
        data = self.read_binary(path)
        if data is None:
            return None
        return data.decode('utf-8', errors='replace')

    def read_media(self) -> Dict[str, bytes]:
        """
        Collect all media files keyed by their base file name.

        Returns:
            Mapping of file name (e.g. 'image1.png') to bytes
        """
        media = {}
        for name in self.list_entries():
            if not name.startswith(MEDIA_PREFIX) or name.endswith('/'):
                continue
            data = self.read_binary(name)
            if data:
                media[posixpath.basename(name)] = data
        logger.debug(f"Found {len(media)} media files in workbook")
        return media


def open_container(data: bytes) -> WorkbookContainer:
    """
    Open workbook bytes as a container.

    Raises:
        InvalidContainerError: If the bytes are not a zip archive
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(data), 'r')
    except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError) as e:
        logger.error(f"Cannot open workbook archive: {e}")
        raise InvalidContainerError() from e
    return WorkbookContainer(archive)
