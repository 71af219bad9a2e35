from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Hashable

from etl_pipeline.extract.documents import DocumentFilesSource
from etl_pipeline.parsing.types import FieldId
from etl_pipeline.pipeline.errors import ConfigurationError, InputReadError


def text_of(element: ET.Element) -> str:
    """All text inside `element`, its children included."""
    return "".join(element.itertext())


class XmlFilesSource(DocumentFilesSource):
    """
    Records from XML files.

    `records_at` is an ElementTree path, relative to each document's root
    element, selecting the record elements. The default `"."` makes every
    file a single record; `"*"` makes every child of the root a record.

    Field names are ElementTree paths relative to the record element:
    - `get("Name")` or `get("Person/Name")`: text of the one matching element,
    - `get("@ACTION")`: an attribute of the record element.
    Missing elements return `None`. A path matching several elements is an
    error; use `get_repeating` for repeating nodes.
    """

    default_find_file = r"\.xml$"

    def __init__(self, *, records_at: str = ".", **options: Any) -> None:
        super().__init__(**options)
        self.records_at = records_at

    def parse_file(self, path: Path) -> list[ET.Element]:
        try:
            root = ET.fromstring(self.read_bytes(path))
        except ET.ParseError as e:
            raise InputReadError(path, e.position[0], str(e)) from e
        return _findall(root, self.records_at)

    def raw_fields(self, node: ET.Element) -> dict[Hashable, Any]:
        raw: dict[Hashable, Any] = {f"@{k}": v for k, v in node.attrib.items()}
        for child in node:
            raw.setdefault(child.tag, text_of(child))
        if not len(node):
            raw["."] = node.text or ""
        return raw

    def get(self, field: FieldId) -> Any:
        if self.record is None:
            return None
        if not isinstance(field, str):
            return super().get(field)
        if field.startswith("@"):
            return self.attribute(field[1:])

        matches = _findall(self.node, field)
        if not matches:
            return None
        if len(matches) > 1:
            raise ConfigurationError(f"{len(matches)} matches found for {field!r}; use get_repeating")
        return text_of(matches[0])

    def get_repeating(self, top: str, *subnodes: str) -> list[Any]:
        """
        Values from repeating elements. Always a list, empty when nothing matches.

        - `get_repeating("Involved/Name")` -> `["John", "Jane"]`
        - `get_repeating("Involved", "Name")` -> `["John", "Jane"]`
        - `get_repeating("Involved", "Name", "Role")` -> `[("John", "Husband"), ("Jane", "Wife")]`
        """
        if self.record is None:
            return []
        out: list[Any] = []
        for element in _findall(self.node, top):
            if not subnodes:
                out.append(text_of(element))
                continue
            values = []
            for sub in subnodes:
                found = element.find(sub)
                values.append(text_of(found) if found is not None else None)
            out.append(values[0] if len(values) == 1 else tuple(values))
        return out

    def attribute(self, name: str) -> str | None:
        """An attribute of the current record element, e.g. `ACTION="DELETE"`."""
        if self.record is None:
            return None
        return self.node.get(name)


def _findall(element: ET.Element, path: str) -> list[ET.Element]:
    try:
        return element.findall(path)
    except SyntaxError as e:
        # ElementTree reports unsupported paths as SyntaxError.
        raise ConfigurationError(f"bad element path {path!r}: {e}") from e
