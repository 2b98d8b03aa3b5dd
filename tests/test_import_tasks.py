"""
Tests for the background import entry points.

The worker path is exercised without a broker by calling run_import directly
against the in-memory database.
"""

import pytest

from services.errors import HeaderNotFoundError
from tasks import import_tasks


@pytest.fixture
def workbook_file(tmp_path, workbook_factory):
    """Workbook on disk whose header sits below a 12-line title block."""
    path = tmp_path / 'parts.xlsx'
    path.write_bytes(workbook_factory([['Seal Kit', 'SP-1']], title_rows=12))
    return str(path)


class TestWorkerConfiguration:
    """Test that the worker honours the same settings as the API."""

    def test_header_scan_rows_applied(self, workbook_file, session, monkeypatch, tmp_path):
        monkeypatch.setattr(import_tasks, 'HEADER_SCAN_ROWS', 20)
        monkeypatch.setattr(import_tasks, 'SPARE_PART_IMAGE_DIR', str(tmp_path / 'images'))

        result = import_tasks.run_import(workbook_file, session, created_by='worker')

        assert result == {'created': 1, 'updated': 0, 'failed': 0, 'errors': []}

    def test_default_scan_window(self, workbook_file, session, monkeypatch):
        monkeypatch.setattr(import_tasks, 'HEADER_SCAN_ROWS', 10)

        with pytest.raises(HeaderNotFoundError):
            import_tasks.run_import(workbook_file, session)

    def test_image_settings_applied(self, session, monkeypatch):
        monkeypatch.setattr(import_tasks, 'IMAGE_MAX_DIMENSION', 400)
        monkeypatch.setattr(import_tasks, 'IMAGE_QUALITY', 60)
        monkeypatch.setattr(import_tasks, 'HEADER_SCAN_ROWS', 15)

        service = import_tasks.build_import_service(session, created_by='worker')

        assert service.image_store.max_dimension == 400
        assert service.image_store.quality == 60
        assert service.header_scan_rows == 15
        assert service.actor == 'worker'
