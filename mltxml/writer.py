"""
MLT Writer - Serialize documents and persist them per project.

Each project lives in its own directory under the projects root:

    <PROJECTS_DIR>/<project_id>/project.mlt
"""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional, Union
from xml.dom import minidom

from . import config
from .errors import PersistenceError
from .models import MltDocument, Node
from .parser import MLTParser

logger = logging.getLogger(__name__)


def _to_element(node: Node) -> ET.Element:
    elem = ET.Element(node.tag, dict(node.attrs))
    elem.text = node.text
    for child in node.children:
        elem.append(_to_element(child))
    return elem


def serialize(source: Union[MltDocument, Node], pretty: bool = True) -> str:
    """Serialize a document or subtree without XML declaration."""
    node = source.root if isinstance(source, MltDocument) else source
    xml_str = ET.tostring(_to_element(node), encoding='unicode')
    if not pretty:
        return xml_str

    pretty_xml = minidom.parseString(xml_str).toprettyxml(indent="  ")
    # Drop minidom's declaration and the blank lines it leaves behind
    lines = [line for line in pretty_xml.split('\n') if line.strip()]
    if lines and lines[0].startswith('<?xml'):
        lines = lines[1:]
    return '\n'.join(lines) + '\n'


def project_dir(project_id: str, project_root: Optional[str] = None) -> Path:
    """Directory of a project under the projects root."""
    return Path(project_root or config.PROJECTS_DIR) / project_id


def mlt_path(project_id: str, project_root: Optional[str] = None) -> Path:
    """Path of a project's MLT file."""
    return project_dir(project_id, project_root) / config.MLT_FILENAME


def save_mlt(project_id: str, data: str, project_root: Optional[str] = None) -> str:
    """
    Save a serialized document body as the project's MLT file.

    Creates the file or overwrites an existing one. The XML declaration is
    prepended here, so ``data`` must not carry one.

    Returns:
        Path of the written file.

    Raises:
        PersistenceError: If the file cannot be written. Not retried.
    """
    filepath = mlt_path(project_id, project_root)
    try:
        with open(filepath, 'w', encoding='utf-8') as f:
            f.write(config.DECLARE_XML + data)
    except OSError as exc:
        logger.warning("Unable to update file %s: %s", filepath, exc)
        raise PersistenceError(f"Unable to update file {filepath}") from exc

    logger.info("File %s updated.", filepath)
    return str(filepath)


def load_mlt(project_id: str, project_root: Optional[str] = None) -> MltDocument:
    """Load a project's MLT file through the hardened parser.

    Raises:
        FileNotFoundError: If the project has no MLT file.
    """
    filepath = mlt_path(project_id, project_root)
    if not filepath.is_file():
        raise FileNotFoundError(f"Project file not found: {filepath}")
    return MLTParser().parse_file(str(filepath))
