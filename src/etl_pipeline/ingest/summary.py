from __future__ import annotations

from dataclasses import dataclass, field

from etl_pipeline.parsing.types import WriteFailure


@dataclass(frozen=True)
class RunSummary:
    """What one pipeline run did."""
    source: str
    destination: str
    total: int              # records handed to the loader
    loaded: int             # records the loader accepted
    rejected: int           # records the loader turned down
    failures: tuple[WriteFailure, ...] = field(default=())

    def render_one_line(self) -> str:
        """How a run summary is formatted for the terminal."""
        return f"{self.source} -> {self.destination}: total={self.total} loaded={self.loaded} rejected={self.rejected}"
