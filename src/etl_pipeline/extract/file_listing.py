from __future__ import annotations

import re
from collections import deque
from pathlib import Path

from etl_pipeline.extract.base import Extractor, RecordTest
from etl_pipeline.ingest.discovery import find_single_folder, get_data_dir, list_files
from etl_pipeline.parsing.types import Record
from etl_pipeline.pipeline.errors import ResourceOpenError


class FileListingSource(Extractor):
    """
    One record per file found under a folder (recursively), in sorted order.

    Record fields:
    - `Extension`: file extension without the dot,
    - `File`: file name,
    - `Folder`: absolute folder holding the file,
    - `Inside`: that folder relative to the listing root ("" at the root),
    - `Path`: absolute path of the file,
    - `Relative`: path relative to the listing root.

    The root is `path`, or the one subfolder of `search_in` matching `find_folder`.
    `find_file` limits the listing to file names matching a regex.
    """

    def __init__(
        self,
        *,
        path: str | Path | None = None,
        search_in: str | Path | None = None,
        find_folder: str | re.Pattern[str] | None = None,
        find_file: str | re.Pattern[str] | None = None,
        stop_if: RecordTest | None = None,
        bypass_if: RecordTest | None = None,
    ) -> None:
        super().__init__(stop_if=stop_if, bypass_if=bypass_if)
        self.path = Path(path) if path is not None else None
        self.search_in = Path(search_in) if search_in is not None else None
        self.find_folder = find_folder
        self.find_file = re.compile(find_file) if isinstance(find_file, str) else find_file
        self._matches: deque[Path] | None = None

    @property
    def source_name(self) -> str:
        return f"files in {self.path}" if self.path is not None else type(self).__name__

    def setup(self) -> None:
        if self._matches is not None:
            return
        if self.path is None:
            if self.find_folder is not None:
                self.path = find_single_folder(self.find_folder, self.search_in)
            else:
                self.path = self.search_in if self.search_in is not None else get_data_dir()
        if not self.path.is_dir():
            raise ResourceOpenError(self.path, "not a folder")

        root = self.path.resolve()
        self.path = root
        self._matches = deque(list_files(root, self.find_file))

    def finished(self) -> None:
        self._matches = None

    def _read_record(self) -> Record | None:
        if self._matches is None:
            self.setup()
        assert self._matches is not None and self.path is not None
        if not self._matches:
            return None

        found = self._matches.popleft()
        relative = found.relative_to(self.path)
        inside = relative.parent.as_posix()
        record = Record(
            raw={
                "Extension": found.suffix.lstrip("."),
                "File": found.name,
                "Folder": str(found.parent),
                "Inside": "" if inside == "." else inside,
                "Path": str(found),
                "Relative": relative.as_posix(),
            }
        )
        record.origin = f"file {relative.as_posix()} in {self.path}"
        return record
