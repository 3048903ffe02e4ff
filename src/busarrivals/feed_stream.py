"""Flattened feed reader and XML flattener.

The upstream API answers in XML. Rather than walking the tree, the parser
works on a flattened rendition of it, one ``path=value`` line per attribute::

    /predictions/@stop_name=Massachusetts Ave @ Beacon St
    /predictions/mode/route/@route_id=78
    /predictions/mode/route/direction/trip/@trip_id=38012345
    /predictions/mode/route/direction/trip
    /predictions/mode/route/direction
    /predictions/mode/route

A line whose path carries no ``@attribute`` segment closes the object named by
that path.
"""

import logging
import re
import xml.etree.ElementTree as ET
from typing import Iterator, List

from .models import PathValue

logger = logging.getLogger(__name__)

# Path runs up to the first "=" or whitespace; everything after is the value
_LINE_RE = re.compile(r"^([^=\s]*)(?:[=\s](.*))?$")


def iter_path_values(text: str) -> Iterator[PathValue]:
    """
    Lazily yield (path, value) pairs from flattened feed text.

    Args:
        text: Flattened feed, one pair per line.

    Yields:
        PathValue pairs in document order. Malformed lines are not rejected;
        the consumer ignores paths it does not recognize.
    """
    for line in text.splitlines():
        if not line.strip():
            continue
        match = _LINE_RE.match(line)
        yield PathValue(match.group(1), match.group(2) or "")


def flatten_xml(xml_text) -> str:
    """
    Flatten an XML document into feed lines.

    Args:
        xml_text: XML document as str or bytes.

    Returns:
        Newline-joined feed lines: one per attribute, one close marker per element.

    Raises:
        ET.ParseError: If the document is not well-formed.
    """
    root = ET.fromstring(xml_text)
    lines: List[str] = []
    _flatten_element(root, "", lines)
    logger.debug(f"Flattened XML into {len(lines)} lines")
    return "\n".join(lines) + "\n"


def _flatten_element(element: ET.Element, parent_path: str, lines: List[str]) -> None:
    path = f"{parent_path}/{_local_name(element.tag)}"
    for name, value in element.attrib.items():
        lines.append(f"{path}/@{_local_name(name)}={_one_line(value)}")
    text = (element.text or "").strip()
    if text:
        lines.append(f"{path}={_one_line(text)}")
    for child in element:
        _flatten_element(child, path, lines)
    lines.append(path)


def _local_name(tag: str) -> str:
    # Drop "{namespace}" prefixes
    return tag.rsplit("}", 1)[-1]


def _one_line(value: str) -> str:
    return " ".join(value.split())

