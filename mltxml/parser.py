"""
MLT Parser - Reads MLT XML project files into an MltDocument.
"""

import xml.etree.ElementTree as ET
from pathlib import Path

from .config import MAX_FILE_SIZE_BYTES
from .models import MltDocument, Node
from .safe_xml import safe_fromstring, safe_parse


class MLTParser:
    """Parser for MLT XML edit-decision documents."""

    def parse_file(self, filepath: str) -> MltDocument:
        """Parse an MLT file and return an MltDocument.

        Enforces a file size limit to prevent memory exhaustion from
        maliciously large XML files.
        """
        path = Path(filepath)
        file_size = path.stat().st_size
        if file_size > MAX_FILE_SIZE_BYTES:
            raise ValueError(
                f"MLT file exceeds maximum size "
                f"({file_size / 1024 / 1024:.1f} MB > "
                f"{MAX_FILE_SIZE_BYTES / 1024 / 1024:.0f} MB limit)"
            )
        tree = safe_parse(str(path))
        return MltDocument(self._build(tree.getroot()))

    def parse_string(self, xml_string: str) -> MltDocument:
        """Parse MLT XML from a string."""
        return MltDocument(self._build(safe_fromstring(xml_string)))

    def _build(self, elem: ET.Element) -> Node:
        """Convert an element subtree to Nodes, dropping whitespace-only layout text."""
        text = elem.text if elem.text and elem.text.strip() else None
        node = Node(tag=elem.tag, attrs=dict(elem.attrib), text=text)
        for child_elem in elem:
            if not isinstance(child_elem.tag, str):
                continue  # comments and processing instructions
            child = self._build(child_elem)
            child.parent = node
            node.children.append(child)
        return node


def parse_mlt(filepath: str) -> MltDocument:
    """Convenience function to parse an MLT file."""
    return MLTParser().parse_file(filepath)
