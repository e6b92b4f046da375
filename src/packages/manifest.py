"""package.xml and class-definition document parsing."""

import logging
import xml.etree.ElementTree as ET
from typing import List, Optional

from packages.models import ClassDefinition, InstallItem, PackageParameters

logger = logging.getLogger(__name__)


def parse_package_manifest_file(path: str) -> Optional[ET.Element]:
    """Parse a package.xml file into its root element.

    Returns:
        The root element, or None if the file is empty or not XML.
    """
    try:
        with open(path, "rb") as fh:
            data = fh.read()
    except OSError as e:
        logger.error("Couldn't read manifest %s: %s", path, e)
        return None
    return parse_manifest_bytes(data, source=path)


def parse_manifest_bytes(data: bytes, source: str = "<bytes>") -> Optional[ET.Element]:
    """Parse manifest content; None when empty or malformed."""
    if not data or not data.strip():
        logger.debug("Manifest %s is empty", source)
        return None
    try:
        return ET.fromstring(data)
    except ET.ParseError as e:
        logger.debug("Manifest %s is not XML: %s", source, e)
        return None


def _text(node: ET.Element, tag: str) -> Optional[str]:
    child = node.find(tag)
    if child is None or child.text is None:
        return None
    text = child.text.strip()
    return text or None


def _items(node: Optional[ET.Element]) -> List[InstallItem]:
    if node is None:
        return []
    items = []
    for item in node.findall("item"):
        item_type = item.get("type")
        filename = item.get("filename") or item.get("name")
        if not item_type or not filename:
            continue
        items.append(InstallItem(item_type, filename, item.get("sub-directory", "")))
    return items


def parse_parameters(root: ET.Element) -> Optional[PackageParameters]:
    """Extract package parameters from a manifest document.

    Returns:
        PackageParameters, or None if the document is not a package
        manifest or names no package.
    """
    if root is None or root.tag != "package":
        return None
    name = _text(root, "name")
    if not name:
        return None

    params = PackageParameters(name=name)
    params.summary = _text(root, "summary")
    params.description = _text(root, "description")
    params.vendor = _text(root, "vendor")
    type_node = root.find("type")
    if type_node is not None:
        params.type = type_node.get("value") or (type_node.text or "").strip() or None

    version = root.find("version")
    if version is not None:
        params.version_number = _text(version, "number")
        params.release_number = _text(version, "release")

    languages = root.find("languages")
    if languages is not None:
        params.languages = [
            lang.text.strip() for lang in languages.findall("language") if lang.text and lang.text.strip()
        ]

    params.install_items = _items(root.find("install"))
    params.uninstall_items = _items(root.find("uninstall"))
    return params


def _int(value: Optional[str]) -> int:
    try:
        return int(value) if value else 0
    except ValueError:
        return 0


def parse_class_definition(path: str) -> ClassDefinition:
    """Read identifier, name and timestamps from a class-*.xml file.

    Raises:
        ValueError: If the document is not XML or names no identifier.
    """
    try:
        root = ET.parse(path).getroot()
    except ET.ParseError as e:
        raise ValueError(f"Class-definition {path} is not XML: {e}") from e

    identifier = _text(root, "identifier")
    if not identifier:
        raise ValueError(f"Class-definition {path} has no identifier")

    return ClassDefinition(
        identifier=identifier,
        name=_text(root, "name"),
        remote_id=_text(root, "remote-id"),
        created=_int(_text(root, "created")),
        modified=_int(_text(root, "modified")),
    )
