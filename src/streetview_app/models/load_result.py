"""Outcome objects returned by load and bind operations."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence, Tuple


class LoadStatus(Enum):
    """Overall outcome of a load or bind call."""

    SUCCESS = "success"
    PARTIAL = "partial"
    EMPTY = "empty"

    def __str__(self) -> str:  # pragma: no cover - convenience for host display
        return self.value


@dataclass(slots=True, frozen=True)
class LoadResult:
    """Counts and skip reasons for one load/bind call.

    ``reasons`` lists one human-readable entry per skipped record, or a single
    entry explaining why the whole call produced nothing.
    """

    status: LoadStatus
    loaded: int = 0
    skipped: int = 0
    reasons: Tuple[str, ...] = ()
    source: Optional[Path] = None

    @property
    def ok(self) -> bool:
        return self.status != LoadStatus.EMPTY

    @classmethod
    def empty(cls, reason: str, source: Optional[Path] = None) -> "LoadResult":
        return cls(LoadStatus.EMPTY, reasons=(reason,), source=source)

    @classmethod
    def from_counts(
        cls,
        loaded: int,
        reasons: Sequence[str],
        source: Optional[Path] = None,
    ) -> "LoadResult":
        """Derive the status from how many records were accepted and skipped."""
        if loaded == 0:
            status = LoadStatus.EMPTY
        elif reasons:
            status = LoadStatus.PARTIAL
        else:
            status = LoadStatus.SUCCESS
        return cls(status, loaded=loaded, skipped=len(reasons), reasons=tuple(reasons), source=source)
