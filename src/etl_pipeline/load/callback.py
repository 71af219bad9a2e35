from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from etl_pipeline.load.base import Loader
from etl_pipeline.pipeline.errors import ConfigurationError

if TYPE_CHECKING:
    from etl_pipeline.extract.base import Extractor


class CallbackLoader(Loader):
    """
    Calls `execute(record)` once per record, turning a pipeline into a filter.

    A truthy return counts the record as loaded. A falsy one does not, and is
    not a failure either. Exceptions from `execute` propagate.
    """

    def __init__(self, *, execute: Callable[[dict[str, Any]], Any]) -> None:
        super().__init__()
        if not callable(execute):
            raise ConfigurationError(f"execute must be callable, got {type(execute).__name__}")
        self.execute = execute

    @property
    def destination_name(self) -> str:
        return f"callback {getattr(self.execute, '__name__', type(self.execute).__name__)}"

    def setup(self, extract: Extractor) -> None:
        pass

    def finished(self) -> None:
        pass

    def _write(self, record: dict[str, Any], record_number: int) -> int:
        return 1 if self.execute(record) else 0
