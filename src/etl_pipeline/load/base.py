from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from etl_pipeline.parsing.types import WriteFailure

if TYPE_CHECKING:
    from etl_pipeline.extract.base import Extractor

logger = logging.getLogger(__name__)


class Loader(ABC):
    """
    The contract every output destination implements.

    `set` fills an in-progress record buffer. `write_record` commits it and
    reports how many records the destination accepted (`0` or `1`) instead of
    raising, so one bad record does not stop a batch. The buffer is replaced
    with `new_record()` after every write.
    """

    def __init__(self) -> None:
        self.record: dict[str, Any] = self.new_record()
        self.written = 0
        self.failures: list[WriteFailure] = []

    @property
    def destination_name(self) -> str:
        return type(self).__name__

    def new_record(self) -> dict[str, Any]:
        """Fresh, empty output buffer. Override to give fields default values."""
        return {}

    @abstractmethod
    def setup(self, extract: Extractor) -> None:
        """Prepare the destination. Raises `ResourceOpenError` when it cannot."""

    @abstractmethod
    def finished(self) -> None:
        """Flush and close the destination."""

    @abstractmethod
    def _write(self, record: dict[str, Any], record_number: int) -> int:
        """Store `record`; return the number of records stored."""

    def set(self, field: str, value: Any) -> None:
        """Put one output field into the buffer. No validation happens here."""
        self.record[field] = value

    def write_record(self, record_number: int) -> int:
        """Commit the buffer. `record_number` is the source's count, for failure reports."""
        record = self.record
        try:
            count = self._write(record, record_number)
        finally:
            self.record = self.new_record()
        self.written += count
        return count

    def reject(self, record: dict[str, Any], record_number: int, reason: str) -> int:
        """Note a record the destination turned down. Returns `0` for `_write` to pass along."""
        logger.warning("%s: record %d not written: %s", self.destination_name, record_number, reason)
        self.failures.append(WriteFailure(record_number=record_number, reason=reason, fields=dict(record)))
        return 0
