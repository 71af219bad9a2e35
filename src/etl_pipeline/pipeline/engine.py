from __future__ import annotations

import logging
from typing import Any, Mapping

from etl_pipeline.extract.base import Extractor
from etl_pipeline.ingest.summary import RunSummary
from etl_pipeline.load.base import Loader
from etl_pipeline.parsing.types import Record
from etl_pipeline.pipeline.errors import ConfigurationError
from etl_pipeline.pipeline.registry import get_extractor, get_loader

logger = logging.getLogger(__name__)


class Pipeline:
    """
    One conversion: an extractor, a loader, and the field mapping between them.

        p = Pipeline()
        p.extract_using("csv", path="people.csv")
        p.transform(Name=0, Age=1)
        p.constants(Source="import")
        p.load_into("hash", key="Name")
        summary = p.run()

    Mapping values are source field ids, or callables taking the extractor.
    Constant values are literals, or callables taking the loader. When a
    destination field has both, the mapped value wins.

    `run` always finishes both stages and then clears the whole configuration,
    so a `Pipeline` object never carries settings from one run into the next.
    Runs are single threaded; do not share one `Pipeline` between threads.
    """

    def __init__(
        self,
        *,
        extract: Extractor | None = None,
        load: Loader | None = None,
        mapping: Mapping[str, Any] | None = None,
        constants: Mapping[str, Any] | None = None,
    ) -> None:
        self.extract = extract
        self.load = load
        self.field_map: dict[str, Any] = dict(mapping or {})
        self.constant_values: dict[str, Any] = dict(constants or {})

    ## -- configuration

    def extract_using(self, source: str | Extractor, **options: Any) -> Pipeline:
        """Set the input source, by format name (see `registry`) or as an instance."""
        if isinstance(source, str):
            source = get_extractor(source, **options)
        elif options:
            raise ConfigurationError("options are only accepted together with a format name")
        self.extract = source
        return self

    def load_into(self, destination: str | Loader, **options: Any) -> Pipeline:
        """Set the output destination, by format name or as an instance."""
        if isinstance(destination, str):
            destination = get_loader(destination, **options)
        elif options:
            raise ConfigurationError("options are only accepted together with a format name")
        self.load = destination
        return self

    def transform(self, mapping: Mapping[str, Any] | None = None, **pairs: Any) -> Pipeline:
        """Add `destination field -> source field id (or callable)` entries. Later entries win."""
        self.field_map.update(mapping or {})
        self.field_map.update(pairs)
        return self

    def constants(self, mapping: Mapping[str, Any] | None = None, **pairs: Any) -> Pipeline:
        """Add `destination field -> value (or callable)` defaults written into every record."""
        self.constant_values.update(mapping or {})
        self.constant_values.update(pairs)
        return self

    def validate(self) -> None:
        """Raise `ConfigurationError` naming the first thing a run is missing."""
        if self.extract is None:
            raise ConfigurationError('No input source: call "extract_using" before "run"')
        if self.load is None:
            raise ConfigurationError('No output destination: call "load_into" before "run"')
        if not self.field_map:
            raise ConfigurationError('No field mapping: call "transform" before "run"')
        if not isinstance(self.extract, Extractor):
            raise ConfigurationError(f"{type(self.extract).__name__} is not an Extractor")
        if not isinstance(self.load, Loader):
            raise ConfigurationError(f"{type(self.load).__name__} is not a Loader")

    def reset(self) -> None:
        """Forget the extractor, loader, mapping and constants."""
        self.extract = None
        self.load = None
        self.field_map = {}
        self.constant_values = {}

    ## -- execution

    def apply_transform(self, record: Record) -> dict[str, Any]:
        """
        Set every output field on the loader: constants first, then mapped
        fields on top. Each value goes into the loader's buffer as soon as it
        is computed, so a later callable sees the fields set before it.
        `record.fields` mirrors the values. Returns `record.fields`.
        """
        load, extract = self.load, self.extract
        assert extract is not None and load is not None
        out = record.fields
        for name, value in self.constant_values.items():
            out[name] = value(load) if callable(value) else value
            load.set(name, out[name])
        for name, source in self.field_map.items():
            out[name] = source(extract) if callable(source) else extract.get(source)
            load.set(name, out[name])
        return out

    def run(self) -> RunSummary:
        """
        Extract, transform and load every record, then reset the configuration.

        Configuration errors are raised before anything is opened. Errors
        opening a source or destination propagate. Records the destination
        turns down are counted in the summary and do not stop the run.
        """
        try:
            self.validate()
        except ConfigurationError:
            self.reset()
            raise

        extract, load = self.extract, self.load
        assert extract is not None and load is not None
        source, destination = extract.source_name, load.destination_name
        first_failure = len(load.failures)
        total = loaded = 0

        logger.info("run started: %s -> %s", source, destination)
        try:
            extract.setup()
            load.setup(extract)

            while extract.next_record():
                record = extract.record
                assert record is not None
                self.apply_transform(record)
                loaded += load.write_record(extract.record_number)
                total += 1
        finally:
            try:
                extract.finished()
            finally:
                try:
                    load.finished()
                finally:
                    self.reset()

        summary = RunSummary(
            source=source,
            destination=destination,
            total=total,
            loaded=loaded,
            rejected=total - loaded,
            failures=tuple(load.failures[first_failure:]),
        )
        logger.info("run finished: %s", summary.render_one_line())
        return summary


def run_pipeline(
    extract: Extractor,
    load: Loader,
    mapping: Mapping[str, Any],
    constants: Mapping[str, Any] | None = None,
) -> RunSummary:
    """Run one conversion with a fresh `Pipeline`."""
    return Pipeline(extract=extract, load=load, mapping=mapping, constants=constants).run()
