from __future__ import annotations

import re

_LETTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"

# letters, then an optional row number as in a cell reference ("B12").
_CELL_REF = re.compile(r"^([A-Za-z]+)(\d*)$")


def column_letters(ordinal: int) -> str:
    """
    Convert a 0-based column ordinal into its spreadsheet name.

    `0 -> "A"`, `25 -> "Z"`, `26 -> "AA"`, `701 -> "ZZ"`.
    Column names are bijective base-26: there is no zero digit, so every step
    decrements before dividing.
    """
    if isinstance(ordinal, bool) or not isinstance(ordinal, int):
        raise ValueError(f"column ordinal must be an int, got {type(ordinal).__name__}")
    if ordinal < 0:
        raise ValueError(f"column ordinal must be >= 0, got {ordinal}")

    n = ordinal + 1
    name = ""
    while n > 0:
        n, rem = divmod(n - 1, 26)
        name = _LETTERS[rem] + name
    return name


def column_ordinal(letters: str) -> int:
    """
    Convert a column name (or a cell reference like `"b12"`) into its 0-based ordinal.
    Case-insensitive; the row number of a cell reference is ignored.
    """
    m = _CELL_REF.match(str(letters).strip())
    if m is None:
        raise ValueError(f"not a column name: {letters!r}")

    n = 0
    for ch in m.group(1).upper():
        n = n * 26 + (ord(ch) - ord("A") + 1)
    return n - 1


def is_column_name(value: object) -> bool:
    """`True` for strings shaped like a column name or cell reference."""
    return isinstance(value, str) and _CELL_REF.match(value.strip()) is not None
