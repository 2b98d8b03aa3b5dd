"""
Tests for the spare part HTTP endpoints.

The routers are mounted on a bare FastAPI app with the database and import
service dependencies overridden, so no PostgreSQL, Redis or broker is needed.
"""

import io
import pytest
import openpyxl
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.dependencies import get_db, get_import_service
from api.routers import import_router, spare_parts
from backend.models.job import JobProgress, JobRun, JobStatus, JobType
from services.spare_part_import_service import SparePartImportService
from services.spare_part_repository import SparePartRepository

XLSX = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


class FakeRedis:
    def get(self, key):
        return None


class FakeTask:
    def __init__(self):
        self.calls = []

    def apply_async(self, args=None, task_id=None):
        self.calls.append((args, task_id))


@pytest.fixture
def client(session, monkeypatch, tmp_path):
    """Test client bound to the in-memory session."""
    monkeypatch.setattr(import_router.settings, 'TEMP_UPLOAD_DIR', str(tmp_path))
    monkeypatch.setattr(import_router, 'redis_client', FakeRedis())

    app = FastAPI()
    app.include_router(import_router.router, prefix='/api')
    app.include_router(spare_parts.router, prefix='/api')
    app.dependency_overrides[get_db] = lambda: session
    app.dependency_overrides[get_import_service] = lambda: SparePartImportService(
        SparePartRepository(session), actor='tester'
    )
    return TestClient(app)


def upload(data, filename='parts.xlsx', content_type=XLSX):
    return {'file': (filename, data, content_type)}


class TestPreviewEndpoint:
    """Test POST /api/spare-parts/import/preview."""

    def test_preview(self, client, workbook_factory, png_bytes, tmp_path):
        data = workbook_factory([['Seal Kit', 'SP-1'], ['', 'SP-2']], images={1: png_bytes})

        response = client.post('/api/spare-parts/import/preview', files=upload(data))

        assert response.status_code == 200
        body = response.json()
        assert body['total_rows'] == 2
        assert body['valid_rows'] == 1
        assert body['invalid_rows'] == 1
        assert body['images_found'] == 1
        assert body['new_count'] == 1
        assert body['rows'][0]['image_data_url'].startswith('data:image/png;base64,')
        assert body['rows'][1]['errors'] == [{'field': 'Product Name', 'message': 'Product Name is required'}]
        assert body['rows'][1]['is_update'] is None
        # temp upload removed
        assert list(tmp_path.iterdir()) == []

    def test_bad_extension(self, client):
        response = client.post('/api/spare-parts/import/preview', files=upload(b'a,b', filename='parts.csv'))

        assert response.status_code == 400

    def test_bad_content_type(self, client, workbook_factory):
        response = client.post('/api/spare-parts/import/preview',
                               files=upload(workbook_factory([]), content_type='text/plain'))

        assert response.status_code == 400

    def test_invalid_workbook(self, client, tmp_path):
        response = client.post('/api/spare-parts/import/preview', files=upload(b'not a zip'))

        assert response.status_code == 400
        assert response.json()['detail']['kind'] == 'invalid_container'
        assert list(tmp_path.iterdir()) == []

    def test_broken_picture_link_is_not_fatal(self, client, linked_workbook_factory, png_bytes, dangling_embed):
        data = dangling_embed(linked_workbook_factory([['Seal Kit', 'SP-1']], images={'I2': png_bytes}))

        response = client.post('/api/spare-parts/import/preview', files=upload(data))

        assert response.status_code == 200
        assert response.json()['valid_rows'] == 1
        assert response.json()['images_found'] == 0

    def test_missing_header(self, client, workbook_factory):
        data = workbook_factory([['Seal', 'SP-1']], header=['Name', 'Code'])

        response = client.post('/api/spare-parts/import/preview', files=upload(data))

        assert response.status_code == 400
        assert response.json()['detail'] == {
            'kind': 'header_not_found',
            'message': 'Could not find header row with "Product Name" column'
        }


class TestImportEndpoint:
    """Test POST /api/spare-parts/import and the catalog endpoints."""

    def test_import_then_list(self, client, workbook_factory):
        data = workbook_factory([['Seal Kit', 'SP-1'], ['Bearing', 'BR-1'], ['Seal Kit v2', 'sp-1']])

        response = client.post('/api/spare-parts/import', files=upload(data))

        assert response.status_code == 200
        assert response.json() == {'created': 2, 'updated': 1, 'failed': 0, 'errors': []}

        listing = client.get('/api/spare-parts', params={'search': 'seal'}).json()
        assert listing['total'] == 1
        assert listing['items'][0]['name'] == 'Seal Kit v2'
        assert listing['items'][0]['part_number'] == 'SP-1'

        part_id = listing['items'][0]['id']
        assert client.get(f'/api/spare-parts/{part_id}').json()['part_number'] == 'SP-1'

    def test_missing_part(self, client):
        assert client.get('/api/spare-parts/999').status_code == 404


class TestTemplateEndpoint:
    """Test GET /api/spare-parts/import/template."""

    def test_download(self, client):
        response = client.get('/api/spare-parts/import/template')

        assert response.status_code == 200
        assert response.headers['content-type'] == XLSX
        assert 'spare_parts_import_template.xlsx' in response.headers['content-disposition']
        workbook = openpyxl.load_workbook(io.BytesIO(response.content))
        assert workbook.active['A1'].value == 'Product Name'

    def test_requires_api_key(self, client, monkeypatch):
        monkeypatch.setattr(import_router.settings, 'ENABLE_API_KEY_AUTH', True)
        monkeypatch.setattr(import_router.settings, 'API_KEYS', ['key-1'])

        assert client.get('/api/spare-parts/import/template').status_code == 401
        assert client.get('/api/spare-parts/import/template',
                          headers={'X-API-Key': 'wrong'}).status_code == 403
        assert client.get('/api/spare-parts/import/template',
                          headers={'X-API-Key': 'key-1'}).status_code == 200


class TestJobEndpoints:
    """Test background job submission and status."""

    def test_start_job(self, client, session, workbook_factory, monkeypatch):
        task = FakeTask()
        monkeypatch.setattr(import_router, 'import_spare_parts_file', task)

        response = client.post('/api/spare-parts/import/jobs', files=upload(workbook_factory([['A', 'SP-1']])))

        assert response.status_code == 202
        job_id = response.json()['job_id']
        assert response.json()['status_url'].endswith(f'/spare-parts/import/jobs/{job_id}')

        (args, task_id), = task.calls
        assert task_id == job_id
        assert args[1] == 'public'

        job_run = session.query(JobRun).filter_by(job_id=job_id).one()
        assert job_run.status == JobStatus.PENDING
        assert job_run.params['filename'] == 'parts.xlsx'

    def test_job_status_from_database(self, client, session):
        session.add(JobRun(job_id='job-1', job_type=JobType.SPARE_PART_IMPORT,
                           status=JobStatus.SUCCESS, params={},
                           result={'created': 1, 'updated': 0, 'failed': 0, 'errors': []}))
        session.add(JobProgress(job_id='job-1', stage='complete', percent=100, message='done'))
        session.commit()

        body = client.get('/api/spare-parts/import/jobs/job-1').json()

        assert body['status'] == 'success'
        assert body['result']['created'] == 1
        assert body['progress']['stage'] == 'complete'
        assert body['progress']['percent'] == 100.0

    def test_unknown_job(self, client):
        assert client.get('/api/spare-parts/import/jobs/nope').status_code == 404
