"""Default class-definition transformer: normalizes XML layout for editing and diffing."""

import logging
import xml.etree.ElementTree as ET

from errors import TransformError
from repository.base import ClassDefinitionTransformer

logger = logging.getLogger(__name__)


def _strip_whitespace(node: ET.Element) -> None:
    for element in node.iter():
        if element.text is not None and not element.text.strip():
            element.text = None
        elif element.text is not None:
            element.text = element.text.rstrip()
        if element.tail is not None and not element.tail.strip():
            element.tail = None


class XmlPrettyPrintTransformer(ClassDefinitionTransformer):
    """Re-indent a class-definition document in place.

    Raises:
        TransformError: If the document is not XML or cannot be rewritten.
    """

    def __init__(self, indent: str = "  "):
        self.indent = indent

    def transform(self, path: str) -> None:
        try:
            tree = ET.parse(path)
        except ET.ParseError as e:
            raise TransformError(path, f"not XML ({e})") from e
        except OSError as e:
            raise TransformError(path, str(e)) from e

        _strip_whitespace(tree.getroot())
        ET.indent(tree, space=self.indent)
        try:
            tree.write(path, encoding="utf-8", xml_declaration=True)
            with open(path, "a", encoding="utf-8") as fh:
                fh.write("\n")
        except OSError as e:
            raise TransformError(path, str(e)) from e
        logger.debug("Reformatted %s", path)
