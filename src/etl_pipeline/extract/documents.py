from __future__ import annotations

import logging
import re
from abc import abstractmethod
from collections import deque
from pathlib import Path
from typing import Any, Hashable

from etl_pipeline.extract.base import Extractor, RecordTest
from etl_pipeline.ingest.discovery import get_data_dir, list_files
from etl_pipeline.parsing.types import Record
from etl_pipeline.pipeline.errors import FileOpenError, ResourceOpenError

logger = logging.getLogger(__name__)


class DocumentFilesSource(Extractor):
    """
    Records from structured documents (JSON, XML), one or more per file.

    `path` is a single document or a folder. Without `path`, the folder is
    `search_in` (default: the data dir). Folders are searched recursively for
    names matching `find_file`. Files are listed once, at setup, in sorted order.

    Subclasses parse one file into its record nodes and say how a node looks
    as raw fields. `node` holds the current record's node.
    """

    default_find_file = r"."

    def __init__(
        self,
        *,
        path: str | Path | None = None,
        search_in: str | Path | None = None,
        find_file: str | re.Pattern[str] | None = None,
        stop_if: RecordTest | None = None,
        bypass_if: RecordTest | None = None,
    ) -> None:
        super().__init__(stop_if=stop_if, bypass_if=bypass_if)
        self.path = Path(path) if path is not None else None
        self.search_in = Path(search_in) if search_in is not None else None
        self.find_file = find_file if find_file is not None else self.default_find_file
        self.node: Any = None
        self._files: deque[Path] | None = None
        self._pending: deque[tuple[Path, int, Any]] = deque()

    @property
    def source_name(self) -> str:
        where = self.path if self.path is not None else self.search_in
        return f"{type(self).__name__}({where})" if where is not None else type(self).__name__

    @abstractmethod
    def parse_file(self, path: Path) -> list[Any]:
        """Record nodes of one document. Raises `InputReadError` on malformed content."""

    @abstractmethod
    def raw_fields(self, node: Any) -> dict[Hashable, Any]:
        """Flat view of a node, used as `Record.raw`."""

    def setup(self) -> None:
        if self._files is not None:
            return
        if self.path is not None and self.path.is_file():
            files = [self.path]
        else:
            root = self.path if self.path is not None else (self.search_in or get_data_dir())
            if not root.is_dir():
                raise ResourceOpenError(root, "no such file or folder")
            files = list_files(root, self.find_file)
        logger.debug("%s: %d files", self.source_name, len(files))
        self._files = deque(files)

    def finished(self) -> None:
        self._files = None
        self._pending.clear()
        self.node = None

    def _read_record(self) -> Record | None:
        if self._files is None:
            self.setup()
        assert self._files is not None

        while not self._pending:
            if not self._files:
                self.node = None
                return None
            path = self._files.popleft()
            nodes = self.parse_file(path)
            logger.debug("%s: %d records in %s", self.source_name, len(nodes), path)
            self._pending.extend((path, i, node) for i, node in enumerate(nodes, start=1))

        path, i, node = self._pending.popleft()
        self.node = node
        record = Record(raw=self.raw_fields(node))
        record.origin = f"record {i} in {path.name}"
        return record

    @staticmethod
    def read_bytes(path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as e:
            raise FileOpenError(path, str(e)) from e
