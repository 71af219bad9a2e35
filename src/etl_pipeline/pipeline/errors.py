from __future__ import annotations

from typing import Any


class EtlError(Exception):
    """Base class for everything the pipeline raises on purpose."""


class ConfigurationError(EtlError, ValueError):
    """
    A run is not configured well enough to start.

    Raised before any record is processed: missing extractor/loader/mapping,
    unknown format names, ambiguous or missing input files.
    """


class ResourceOpenError(EtlError):
    """`setup()` could not open the file, folder or database a stage needs. Never retried."""

    def __init__(self, resource: Any, detail: str) -> None:
        self.resource = str(resource)
        self.detail = detail
        super().__init__(f"unable to open '{self.resource}': {detail}")


class FileOpenError(ResourceOpenError):
    """An input file exists in the configuration but cannot be read."""


class InputReadError(EtlError):
    """An opened input file turned out to be unreadable part way through."""

    def __init__(self, path: Any, line: int | None, detail: str) -> None:
        self.path = str(path)
        self.line = line
        self.detail = detail
        where = f" near line {line}" if line is not None else ""
        super().__init__(f"unable to read '{self.path}'{where}: {detail}")
