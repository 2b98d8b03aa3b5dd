"""
Drawing Service - Map embedded pictures to worksheet rows.

Pictures placed over a worksheet live in a drawing part. Each picture anchor
records the grid cell its top-left corner sits on and references the image
through a relationship id, which the drawing's relationship part resolves to
a file under xl/media/.

Extraction is best-effort: a missing or malformed part, or an anchor that
cannot be resolved, simply yields no image for that row.
"""

import base64
import logging
import posixpath
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Dict, List, Optional

from services.workbook_container import WorkbookContainer

logger = logging.getLogger(__name__)

DRAWING_PART = 'xl/drawings/drawing1.xml'
DRAWING_RELS_PART = 'xl/drawings/_rels/drawing1.xml.rels'

PACKAGE_REL_NS = 'http://schemas.openxmlformats.org/package/2006/relationships'
OFFICE_REL_NS = 'http://schemas.openxmlformats.org/officeDocument/2006/relationships'

NS = {
    'xdr': 'http://schemas.openxmlformats.org/drawingml/2006/spreadsheetDrawing',
    'a': 'http://schemas.openxmlformats.org/drawingml/2006/main',
    'rel': PACKAGE_REL_NS,
}

ANCHOR_TAGS = ('xdr:twoCellAnchor', 'xdr:oneCellAnchor')


@dataclass(frozen=True)
class AnchorRecord:
    """A picture anchor: 0-based origin grid row and its relationship id."""
    origin_row: int
    relationship_id: str


@dataclass(frozen=True)
class ImageBlob:
    """An embedded image with its declared MIME type."""
    data: bytes
    mime_type: str
    file_name: str = ''

    @property
    def data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode('ascii')
        return f"data:{self.mime_type};base64,{encoded}"


def mime_type_for(file_name: str) -> str:
    """PNG files are image/png, everything else is treated as JPEG."""
    ext = posixpath.splitext(file_name)[1].lower().lstrip('.')
    return 'image/png' if ext == 'png' else 'image/jpeg'


def parse_relationships(text: Optional[str]) -> Dict[str, str]:
    """
    Parse a drawing relationship part.

    Only relationships pointing at media assets are kept.

    Args:
        text: XML text of the .rels part, or None if absent

    Returns:
        Mapping of relationship id -> media file name
    """
    if not text or not text.strip():
        return {}

    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        logger.warning(f"Malformed drawing relationships part, ignoring images: {e}")
        return {}

    relationships = {}
    for rel in root.findall('rel:Relationship', NS):
        rel_id = rel.attrib.get('Id')
        target = rel.attrib.get('Target')
        if rel_id and target and 'media/' in target:
            relationships[rel_id] = posixpath.basename(target)

    logger.info(f"Found {len(relationships)} image relationships")
    return relationships


def _parse_anchor(anchor: ET.Element) -> Optional[AnchorRecord]:
    row_text = anchor.findtext('xdr:from/xdr:row', default=None, namespaces=NS)
    if row_text is None:
        return None
    try:
        row = int(row_text.strip())
    except ValueError:
        return None
    if row < 0:
        return None

    blip = anchor.find('xdr:pic/xdr:blipFill/a:blip', NS)
    if blip is None:
        return None
    rel_id = blip.attrib.get(f'{{{OFFICE_REL_NS}}}embed')
    if not rel_id:
        return None

    return AnchorRecord(origin_row=row, relationship_id=rel_id)


def parse_anchors(text: Optional[str]) -> List[AnchorRecord]:
    """
    Parse a drawing part into picture anchors.

    Anchors without a numeric origin row or without an embedded picture
    reference are skipped.

    Args:
        text: XML text of the drawing part, or None if absent

    Returns:
        List of AnchorRecord (order irrelevant)
    """
    if not text or not text.strip():
        return []

    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        logger.warning(f"Malformed drawing part, ignoring images: {e}")
        return []

    elements = []
    for tag in ANCHOR_TAGS:
        elements.extend(root.findall(tag, NS))

    logger.info(f"Found {len(elements)} anchor elements in drawing")

    anchors = []
    for element in elements:
        record = _parse_anchor(element)
        if record is not None:
            anchors.append(record)
    return anchors


def resolve_anchor(anchor: AnchorRecord, relationships: Dict[str, str],
                   media: Dict[str, bytes]) -> Optional[ImageBlob]:
    """Resolve an anchor to its image bytes, or None if any link is missing."""
    file_name = relationships.get(anchor.relationship_id)
    if not file_name:
        return None
    data = media.get(file_name)
    if not data:
        return None
    return ImageBlob(data=data, mime_type=mime_type_for(file_name), file_name=file_name)


def extract_row_images(container: WorkbookContainer) -> Dict[int, ImageBlob]:
    """
    Build the grid row -> image map for the first drawing of a workbook.

    A workbook without drawings is legal and produces an empty map.

    Returns:
        Mapping of 0-based grid row to ImageBlob. If two anchors share a
        row, the last one wins.
    """
    drawing_text = container.read_text(DRAWING_PART)
    if drawing_text is None:
        logger.info("No drawing part found - workbook has no embedded images")
        return {}

    relationships = parse_relationships(container.read_text(DRAWING_RELS_PART))
    if not relationships:
        return {}

    media = container.read_media()

    row_images = {}
    for anchor in parse_anchors(drawing_text):
        image = resolve_anchor(anchor, relationships, media)
        if image is not None:
            row_images[anchor.origin_row] = image

    logger.info(f"Extracted {len(row_images)} images mapped to rows")
    return row_images
