"""
Error types raised by the spare part import engine.

Only failures that make the whole import meaningless are raised; everything
else is recorded on the affected row or in the batch result.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Fatal import error categories."""
    INVALID_CONTAINER = 'invalid_container'
    HEADER_NOT_FOUND = 'header_not_found'


class ImportEngineError(Exception):
    """Base class for fatal import errors."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def to_dict(self) -> dict:
        return {'kind': self.kind.value, 'message': self.message}


class InvalidContainerError(ImportEngineError):
    """The uploaded file is not a readable workbook archive."""

    def __init__(self, message: str = 'File is not a valid Excel workbook'):
        super().__init__(ErrorKind.INVALID_CONTAINER, message)


class HeaderNotFoundError(ImportEngineError):
    """No header row containing 'Product Name' was found."""

    def __init__(self, message: str = 'Could not find header row with "Product Name" column'):
        super().__init__(ErrorKind.HEADER_NOT_FOUND, message)
