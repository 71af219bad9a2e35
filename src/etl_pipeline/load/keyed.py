from __future__ import annotations

from typing import TYPE_CHECKING, Any

from etl_pipeline.load.base import Loader
from etl_pipeline.parsing.types import DuplicatePolicy
from etl_pipeline.pipeline.errors import ConfigurationError

if TYPE_CHECKING:
    from etl_pipeline.extract.base import Extractor


class KeyedStore(Loader):
    """
    Loads records into a dict, keyed by the value of one output field.

    `duplicates` decides what happens when a key repeats:
    - `keep` (default): `store[key]` is a list of every record, in arrival order,
    - `overwrite`: `store[key]` is the latest record,
    - `skip`: `store[key]` is the first record; later ones are reported as not written.

    `clear` empties `store` at setup. Turn it off to collect several runs
    into the same dict. Records with no key value are not stored: they go to
    `unkeyed` and are reported as failures.
    """

    def __init__(
        self,
        *,
        store: dict[Any, Any] | None = None,
        key: str = "key",
        duplicates: DuplicatePolicy | str = DuplicatePolicy.keep,
        clear: bool = True,
    ) -> None:
        super().__init__()
        try:
            self.duplicates = DuplicatePolicy(duplicates)
        except ValueError:
            allowed = [p.value for p in DuplicatePolicy]
            raise ConfigurationError(f"duplicates must be one of {allowed}, got {duplicates!r}") from None
        if not key:
            raise ConfigurationError("KeyedStore needs a `key` field name")

        self.store: dict[Any, Any] = store if store is not None else {}
        self.key = key
        self.clear = clear
        self.unkeyed: list[dict[str, Any]] = []

    @property
    def destination_name(self) -> str:
        return f"dict keyed on {self.key!r}"

    def setup(self, extract: Extractor) -> None:
        if self.clear:
            self.store.clear()
            self.unkeyed.clear()

    def finished(self) -> None:
        pass

    def _write(self, record: dict[str, Any], record_number: int) -> int:
        key = record.get(self.key)
        if key is None or (isinstance(key, str) and key.strip() == ""):
            self.unkeyed.append(record)
            return self.reject(record, record_number, f"no value for key field {self.key!r}")

        if self.duplicates is DuplicatePolicy.keep:
            existing = self.store.get(key)
            if existing is None:
                self.store[key] = [record]
            elif isinstance(existing, list):
                existing.append(record)
            else:
                # a single record left by an earlier run with another policy.
                self.store[key] = [existing, record]
            return 1

        if self.duplicates is DuplicatePolicy.skip and key in self.store:
            return self.reject(record, record_number, f"duplicate key {key!r}")

        self.store[key] = record
        return 1
