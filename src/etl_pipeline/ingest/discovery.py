from __future__ import annotations

import os
import re
from pathlib import Path

from etl_pipeline.pipeline.errors import ConfigurationError


def get_data_dir() -> Path:
    """Folder searched for input files when a search has no explicit folder."""
    return Path(os.getenv("ETL_DATA_DIR", "."))


def _compile(pattern: str | re.Pattern[str]) -> re.Pattern[str]:
    return pattern if isinstance(pattern, re.Pattern) else re.compile(pattern)


def _single(matches: list[Path], *, what: str, pattern: re.Pattern[str], folder: Path) -> Path:
    """Exactly one match or a descriptive failure."""
    if not matches:
        raise ConfigurationError(f"no {what} in '{folder}' match {pattern.pattern!r}")
    if len(matches) > 1:
        names = [m.name for m in matches]
        raise ConfigurationError(f"{len(matches)} {what}s in '{folder}' match {pattern.pattern!r}: {names}")
    return matches[0]


def find_single_file(pattern: str | re.Pattern[str], folder: Path | None = None) -> Path:
    """
    Find the one file in `folder` (not its subfolders) whose name matches `pattern`.

    Zero or several matches are configuration errors, never resolved silently.
    """
    folder = folder if folder is not None else get_data_dir()
    rx = _compile(pattern)
    if not folder.is_dir():
        raise ConfigurationError(f"search folder '{folder}' does not exist")
    matches = sorted(p for p in folder.iterdir() if p.is_file() and rx.search(p.name))
    return _single(matches, what="file", pattern=rx, folder=folder)


def find_single_folder(pattern: str | re.Pattern[str], folder: Path | None = None) -> Path:
    """Same as `find_single_file`, for immediate subfolders."""
    folder = folder if folder is not None else get_data_dir()
    rx = _compile(pattern)
    if not folder.is_dir():
        raise ConfigurationError(f"search folder '{folder}' does not exist")
    matches = sorted(p for p in folder.iterdir() if p.is_dir() and rx.search(p.name))
    return _single(matches, what="folder", pattern=rx, folder=folder)


def list_files(root: Path, pattern: str | re.Pattern[str] | None = None) -> list[Path]:
    """Every file under `root`, recursively and sorted, optionally only names matching `pattern`."""
    files = sorted(p for p in root.rglob("*") if p.is_file())
    if pattern is None:
        return files
    rx = _compile(pattern)
    return [p for p in files if rx.search(p.name)]
