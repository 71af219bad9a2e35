from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Hashable, Mapping

from etl_pipeline.extract.documents import DocumentFilesSource
from etl_pipeline.parsing.types import FieldId
from etl_pipeline.pipeline.errors import InputReadError

_MISSING = object()


def find_node(node: Any, path: str, default: Any = None) -> Any:
    """
    Walk a slash separated path through parsed JSON.

    Object members by name, array items by 0-based index. Leading and doubled
    slashes are ignored, so `"/a/b"`, `"a/b"` and `"a//b"` are the same path
    and `"/"` is `node` itself. Returns `default` when the path does not exist.
    """
    for part in (p for p in path.split("/") if p):
        if isinstance(node, Mapping):
            if part not in node:
                return default
            node = node[part]
        elif isinstance(node, list):
            try:
                node = node[int(part)]
            except (ValueError, IndexError):
                return default
        else:
            return default
    return node


class JsonFilesSource(DocumentFilesSource):
    """
    Records from JSON files.

    `records_at` points at the record node inside each file (default: the whole
    document). An array there holds one record per item. Anything else is one
    record. `get` takes a path relative to the record, e.g. `get("Patient/Name")`
    or `get("Codes/0")`. Missing paths return `None`.
    """

    default_find_file = r"\.json$"

    def __init__(self, *, records_at: str = "/", **options: Any) -> None:
        super().__init__(**options)
        self.records_at = records_at

    def parse_file(self, path: Path) -> list[Any]:
        try:
            document = json.loads(self.read_bytes(path))
        except json.JSONDecodeError as e:
            raise InputReadError(path, e.lineno, e.msg) from e
        except UnicodeDecodeError as e:
            raise InputReadError(path, None, str(e)) from e

        nodes = find_node(document, self.records_at, _MISSING)
        if nodes is _MISSING:
            raise InputReadError(path, None, f"nothing at {self.records_at!r}")
        return nodes if isinstance(nodes, list) else [nodes]

    def raw_fields(self, node: Any) -> dict[Hashable, Any]:
        if isinstance(node, Mapping):
            return dict(node)
        return {"value": node}

    def get(self, field: FieldId) -> Any:
        if self.record is None:
            return None
        if isinstance(field, str):
            return find_node(self.node, field)
        return super().get(field)
