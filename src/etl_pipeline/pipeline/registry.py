from __future__ import annotations

import logging
from typing import Any

from etl_pipeline.extract.base import Extractor
from etl_pipeline.load.base import Loader
from etl_pipeline.pipeline.errors import ConfigurationError

logger = logging.getLogger(__name__)

EXTRACT_FORMATS = ("csv", "tsv", "delimited", "excel", "file_listing", "json", "xml", "memory")
LOAD_FORMATS = ("hash", "list", "postgres", "callable")


def get_extractor(format_name: str, **options: Any) -> Extractor:
    """
    A registry that builds an input source from its format name and options.
    Options are passed straight to the source's constructor.
    """
    name = format_name.strip().lower()
    logger.debug("extractor %r with options %s", name, sorted(options))

    if name in ("csv", "delimited"):
        from etl_pipeline.extract.delimited import DelimitedTextSource
        return DelimitedTextSource(**options)

    if name == "tsv":
        from etl_pipeline.extract.delimited import DelimitedTextSource
        options.setdefault("separator", "\t")
        return DelimitedTextSource(**options)

    if name == "excel":
        from etl_pipeline.extract.excel import ExcelSource
        return ExcelSource(**options)

    if name == "file_listing":
        from etl_pipeline.extract.file_listing import FileListingSource
        return FileListingSource(**options)

    if name == "json":
        from etl_pipeline.extract.json_files import JsonFilesSource
        return JsonFilesSource(**options)

    if name == "xml":
        from etl_pipeline.extract.xml_files import XmlFilesSource
        return XmlFilesSource(**options)

    if name == "memory":
        from etl_pipeline.extract.memory import MemorySource
        return MemorySource(**options)

    raise ConfigurationError(f"Unknown input format: {format_name!r} (expected one of {list(EXTRACT_FORMATS)})")


def get_loader(format_name: str, **options: Any) -> Loader:
    """A registry that builds an output destination from its format name and options."""
    name = format_name.strip().lower()
    logger.debug("loader %r with options %s", name, sorted(options))

    if name == "hash":
        from etl_pipeline.load.keyed import KeyedStore
        return KeyedStore(**options)

    if name == "list":
        from etl_pipeline.load.memory import ListStore
        return ListStore(**options)

    if name == "postgres":
        from etl_pipeline.load.postgres import PostgresTable
        return PostgresTable(**options)

    if name == "callable":
        from etl_pipeline.load.callback import CallbackLoader
        return CallbackLoader(**options)

    raise ConfigurationError(f"Unknown output format: {format_name!r} (expected one of {list(LOAD_FORMATS)})")
