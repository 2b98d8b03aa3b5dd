"""
Pytest configuration and fixtures for spare part import tests.

Tests run against an in-memory SQLite database and workbooks built on the
fly with openpyxl, with drawing parts injected to embed pictures.
"""

import io
import re
import zipfile
import pytest
from typing import Dict, List, Optional, Sequence
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from dotenv import load_dotenv
from PIL import Image
import openpyxl
from openpyxl.drawing.image import Image as SheetImage

from backend.models.schema import Base

# Load environment
load_dotenv()

HEADER = [
    'Product Name', 'Part ID', 'HSN Code', '(Use/Application of product)',
    'Model Specification', 'Manufacturing Unit', 'Ratings/Technical sheet', 'Price',
]

DRAWING_XML = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    '<xdr:wsDr xmlns:xdr="http://schemas.openxmlformats.org/drawingml/2006/spreadsheetDrawing"'
    ' xmlns:a="http://schemas.openxmlformats.org/drawingml/2006/main"'
    ' xmlns:r="http://schemas.openxmlformats.org/officeDocument/2006/relationships">'
    '{anchors}</xdr:wsDr>'
)

ANCHOR_XML = (
    '<xdr:twoCellAnchor editAs="oneCell">'
    '<xdr:from><xdr:col>8</xdr:col><xdr:colOff>0</xdr:colOff>'
    '<xdr:row>{row}</xdr:row><xdr:rowOff>0</xdr:rowOff></xdr:from>'
    '<xdr:to><xdr:col>9</xdr:col><xdr:colOff>0</xdr:colOff>'
    '<xdr:row>{row}</xdr:row><xdr:rowOff>95250</xdr:rowOff></xdr:to>'
    '<xdr:pic><xdr:nvPicPr><xdr:cNvPr id="{pic_id}" name="Picture {pic_id}"/><xdr:cNvPicPr/></xdr:nvPicPr>'
    '<xdr:blipFill><a:blip r:embed="{rel_id}"/><a:stretch><a:fillRect/></a:stretch></xdr:blipFill>'
    '<xdr:spPr/></xdr:pic><xdr:clientData/></xdr:twoCellAnchor>'
)

RELS_XML = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
    '{relationships}</Relationships>'
)

RELATIONSHIP_XML = (
    '<Relationship Id="{rel_id}"'
    ' Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/image"'
    ' Target="../media/{file_name}"/>'
)


def make_png(width: int = 64, height: int = 48, color: str = 'red') -> bytes:
    output = io.BytesIO()
    Image.new('RGB', (width, height), color).save(output, format='PNG')
    return output.getvalue()


def add_parts(data: bytes, parts: Dict[str, bytes]) -> bytes:
    """Return a copy of a zip archive with extra parts added."""
    source = zipfile.ZipFile(io.BytesIO(data))
    output = io.BytesIO()
    with zipfile.ZipFile(output, 'w', zipfile.ZIP_DEFLATED) as target:
        for item in source.infolist():
            target.writestr(item, source.read(item.filename))
        for name, content in parts.items():
            target.writestr(name, content)
    source.close()
    return output.getvalue()


def build_workbook(rows: Sequence[Sequence], title_rows: int = 0,
                   images: Optional[Dict[int, bytes]] = None,
                   header: Optional[List[str]] = None) -> bytes:
    """
    Build workbook bytes.

    Args:
        rows: Data rows written below the header
        title_rows: Number of title lines above the header
        images: 0-based grid row -> PNG bytes to anchor on that row
        header: Header row; None writes the default header, [] writes none
    """
    workbook = openpyxl.Workbook()
    worksheet = workbook.active
    worksheet.title = 'Spare Parts'

    for index in range(title_rows):
        worksheet.append([f'Spare parts catalog - section {index + 1}'])
    if header is None:
        header = HEADER
    if header:
        worksheet.append(header)
    for row in rows:
        worksheet.append(list(row))

    output = io.BytesIO()
    workbook.save(output)
    data = output.getvalue()

    if not images:
        return data

    anchors = []
    relationships = []
    parts = {}
    for index, (grid_row, png) in enumerate(sorted(images.items()), 1):
        rel_id = f'rId{index}'
        file_name = f'image{index}.png'
        anchors.append(ANCHOR_XML.format(row=grid_row, pic_id=index + 1, rel_id=rel_id))
        relationships.append(RELATIONSHIP_XML.format(rel_id=rel_id, file_name=file_name))
        parts[f'xl/media/{file_name}'] = png

    parts['xl/drawings/drawing1.xml'] = DRAWING_XML.format(anchors=''.join(anchors))
    parts['xl/drawings/_rels/drawing1.xml.rels'] = RELS_XML.format(relationships=''.join(relationships))
    return add_parts(data, parts)


def rewrite_parts(data: bytes, replace: Optional[Dict[str, bytes]] = None,
                  remove: Sequence[str] = ()) -> bytes:
    """Return a copy of a zip archive with parts replaced or removed."""
    replace = replace or {}
    source = zipfile.ZipFile(io.BytesIO(data))
    output = io.BytesIO()
    with zipfile.ZipFile(output, 'w', zipfile.ZIP_DEFLATED) as target:
        for item in source.infolist():
            if item.filename in remove:
                continue
            target.writestr(item, replace.get(item.filename, source.read(item.filename)))
    source.close()
    return output.getvalue()


def read_part(data: bytes, name: str) -> bytes:
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        return archive.read(name)


def build_linked_workbook(rows: Sequence[Sequence], images: Dict[str, bytes]) -> bytes:
    """
    Build workbook bytes with pictures placed through openpyxl.

    Unlike build_workbook, the drawing is linked from the worksheet the way
    Excel saves it.

    Args:
        rows: Data rows written below the default header
        images: Anchor cell (e.g. 'I2') -> PNG bytes
    """
    workbook = openpyxl.Workbook()
    worksheet = workbook.active
    worksheet.append(HEADER)
    for row in rows:
        worksheet.append(list(row))
    for cell, png in images.items():
        worksheet.add_image(SheetImage(io.BytesIO(png)), cell)

    output = io.BytesIO()
    workbook.save(output)
    return output.getvalue()


def break_embed_reference(data: bytes) -> bytes:
    """Point every picture in the drawing at a relationship that does not exist."""
    drawing = read_part(data, 'xl/drawings/drawing1.xml')
    broken = re.sub(rb'embed="[^"]+"', b'embed="rId99"', drawing)
    return rewrite_parts(data, replace={'xl/drawings/drawing1.xml': broken})


class InMemoryRepository:
    """Dictionary-backed stand-in for SparePartRepository."""

    def __init__(self, existing: Optional[Dict[str, str]] = None, fail_on: Sequence[str] = ()):
        self.parts: Dict[int, dict] = {}
        self.fail_on = {key.lower() for key in fail_on}
        self.created: List[int] = []
        self.updated: List[int] = []
        for part_number, name in (existing or {}).items():
            self.parts[len(self.parts) + 1] = {'part_number': part_number, 'name': name}

    def list_keys(self):
        return {part['part_number'] for part in self.parts.values()}

    def key_map(self):
        return {part['part_number'].lower(): part_id for part_id, part in self.parts.items()}

    def create(self, fields):
        if fields['part_number'].lower() in self.fail_on:
            raise RuntimeError(f"insert rejected for {fields['part_number']}")
        part_id = len(self.parts) + 1
        self.parts[part_id] = dict(fields)
        self.created.append(part_id)
        return part_id

    def update(self, part_id, fields):
        if self.parts[part_id]['part_number'].lower() in self.fail_on:
            raise RuntimeError(f"update rejected for {self.parts[part_id]['part_number']}")
        self.parts[part_id].update(fields)
        self.updated.append(part_id)


@pytest.fixture
def png_bytes():
    """A small PNG image."""
    return make_png()


@pytest.fixture
def workbook_factory():
    """Build workbook bytes; see build_workbook."""
    return build_workbook


@pytest.fixture
def linked_workbook_factory():
    """Build workbook bytes with linked pictures; see build_linked_workbook."""
    return build_linked_workbook


@pytest.fixture
def rewrite_workbook_parts():
    return rewrite_parts


@pytest.fixture
def dangling_embed():
    return break_embed_reference


@pytest.fixture
def memory_repository():
    return InMemoryRepository


@pytest.fixture(scope='function')
def engine():
    """Create an in-memory database engine."""
    eng = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture(scope='function')
def session(engine):
    """Create a new database session for a test."""
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    sess = Session()

    yield sess

    sess.close()
