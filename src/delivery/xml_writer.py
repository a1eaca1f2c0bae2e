"""Line-oriented XML writer shared by the PHOTO.XML and INDEX_D.XML serializers."""

from dataclasses import dataclass, field
from typing import Iterable, List

from .settings import STANDARD_VERSION

_XML_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
)


@dataclass
class XmlConfig:
    """Configuration for XML generation."""

    encoding: str = "UTF-8"
    indent_spaces: int = 2
    standard_version: str = field(default_factory=lambda: STANDARD_VERSION)


def escape_xml(value: str) -> str:
    """Escape the five XML special characters."""
    for char, entity in _XML_ESCAPES:
        value = value.replace(char, entity)
    return value


def is_valid_xml_structure(xml: str, required_tags: Iterable[str]) -> bool:
    """Check that each tag has both its open and close form in the document.

    This is a substring check, not a parser.
    """
    return all(f"<{tag}>" in xml and f"</{tag}>" in xml for tag in required_tags)


class XmlWriter:
    """Builds an indented XML document one line at a time.

    Every text value passes through escape_xml. Optional elements are
    dropped entirely when their value is empty.
    """

    def __init__(self, indent_spaces: int = 2):
        self.indent = " " * indent_spaces
        self.depth = 0
        self.lines: List[str] = []

    def _push(self, text: str):
        self.lines.append(self.indent * self.depth + text)

    def declaration(self, encoding: str = "UTF-8"):
        self._push(f'<?xml version="1.0" encoding="{encoding}"?>')

    def comment(self, text: str):
        self._push(f"<!-- {text} -->")

    def open(self, tag: str):
        self._push(f"<{tag}>")
        self.depth += 1

    def close(self, tag: str):
        self.depth -= 1
        self._push(f"</{tag}>")

    def empty(self, tag: str):
        self._push(f"<{tag}/>")

    def element(self, tag: str, value):
        if isinstance(value, bool):
            value = "1" if value else "0"
        self._push(f"<{tag}>{escape_xml(str(value))}</{tag}>")

    def optional_element(self, tag: str, value):
        if value:
            self.element(tag, value)

    def to_string(self) -> str:
        return "\n".join(self.lines)
