"""
Safe XML parsing, defused against XXE, billion laughs, and entity expansion.

Every MLT document enters the package through these two functions. Project
files are often handed over by other tools, so nothing reads them with the
plain ElementTree parser.

Blocks:
- External entity injection (XXE): file:///etc/passwd, http:// callbacks
- Billion laughs / entity expansion: exponential DTD bombs
- DTD retrieval: remote DTD loading
"""

import xml.etree.ElementTree as ET

import defusedxml.ElementTree as _safe_ET


def safe_parse(source: str) -> ET.ElementTree:
    """Parse an XML file with XXE and entity-expansion protection."""
    return _safe_ET.parse(source)


def safe_fromstring(text: str) -> ET.Element:
    """Parse an XML string with XXE and entity-expansion protection."""
    return _safe_ET.fromstring(text)
