from __future__ import annotations

from typing import TYPE_CHECKING, Any

from etl_pipeline.load.base import Loader

if TYPE_CHECKING:
    from etl_pipeline.extract.base import Extractor


class ListStore(Loader):
    """Appends every record to a list. Handy for tests and for inspecting a conversion."""

    def __init__(self, *, records: list[dict[str, Any]] | None = None, clear: bool = True) -> None:
        super().__init__()
        self.records: list[dict[str, Any]] = records if records is not None else []
        self.clear = clear

    @property
    def destination_name(self) -> str:
        return "list"

    def setup(self, extract: Extractor) -> None:
        if self.clear:
            self.records.clear()

    def finished(self) -> None:
        pass

    def _write(self, record: dict[str, Any], record_number: int) -> int:
        self.records.append(record)
        return 1
