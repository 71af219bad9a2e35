from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Hashable, Mapping, Union


class DuplicatePolicy(str, Enum):
    """How a keyed store treats a second record for a key it already holds."""
    keep = "keep"               # collect every record for the key, in arrival order
    overwrite = "overwrite"     # newest record wins
    skip = "skip"               # first record wins, later ones are discarded


def _has_content(v: Any) -> bool:
    if v is None:
        return False
    return str(v).strip() != ""


@dataclass(slots=True)
class Record:
    """
    One input item on its way through the pipeline.

    `raw` is filled once by the extractor and is not mutated afterwards.
    `fields` is the output map written by the transform step and read by the loader.
    """
    raw: dict[Hashable, Any]
    fields: dict[str, Any] = field(default_factory=dict)
    origin: str = ""
    is_blank: bool = field(init=False)

    def __post_init__(self) -> None:
        # computed once, at creation.
        self.is_blank = not any(_has_content(v) for v in self.raw.values())


@dataclass(frozen=True, slots=True)
class WriteFailure:
    """A record the destination did not accept. The run carries on past it."""
    record_number: int
    reason: str
    fields: Mapping[str, Any]


# source field identifier: column index, column letters, header name or regex.
FieldId = Union[Hashable, re.Pattern]

# deferred values, called with the active extractor (mapping) or loader (constants).
ExtractComputation = Callable[[Any], Any]
LoadComputation = Callable[[Any], Any]
