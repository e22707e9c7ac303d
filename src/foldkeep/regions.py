"""Region store: the active folds of one open document.

Offsets are 0-based character positions. A region always spans whole lines:
``start`` is the first character of a line and ``end`` is the end of a line
(the offset of its newline, or the end of the document).
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from foldkeep.errors import OutOfRangeError, OverlapError

if TYPE_CHECKING:
    from foldkeep.buffer import TextBuffer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FoldRegion:
    """One folded span."""

    start: int
    end: int
    header: str

    @property
    def span(self) -> tuple[int, int]:
        return (self.start, self.end)

    def contains(self, position: int) -> bool:
        return self.start <= position <= self.end

    def intersects(self, start: int, end: int) -> bool:
        return self.start <= end and start <= self.end


class RegionStore:
    """Non-overlapping fold regions in insertion order."""

    def __init__(self, buffer: TextBuffer) -> None:
        self.buffer = buffer
        self._regions: list[FoldRegion] = []

    def __len__(self) -> int:
        return len(self._regions)

    def __iter__(self) -> Iterator[FoldRegion]:
        return iter(list(self._regions))

    def spans(self) -> list[tuple[int, int]]:
        return [r.span for r in self._regions]

    # ── Offsets ──────────────────────────────────────────────

    def normalize(self, raw_start: int, raw_end: int) -> tuple[int, int]:
        """Order the pair and widen it to whole lines.

        A selection ending at the first column of a line (it swallowed the
        newline before that line) stops at the end of the previous line.
        """
        start, end = sorted((raw_start, raw_end))
        size = len(self.buffer)
        if start < 0 or end > size:
            raise OutOfRangeError(start, end, size)

        start = self.buffer.line_start(start)
        if end > start and self.buffer.line_start(end) == end:
            end -= 1
        end = self.buffer.line_end(end)
        return start, end

    def shift(self, position: int, delta: int) -> None:
        """Move regions after an edit whose old extent ended at ``position``."""
        if not delta:
            return
        self._regions = [
            FoldRegion(r.start + delta, r.end + delta, r.header) if r.start >= position else r
            for r in self._regions
        ]

    # ── Queries ──────────────────────────────────────────────

    def has_overlap(self, start: int, end: int) -> bool:
        return any(r.intersects(start, end) for r in self._regions)

    def region_at(self, position: int) -> FoldRegion | None:
        for r in self._regions:
            if r.contains(position):
                return r
        return None

    # ── Mutation ─────────────────────────────────────────────

    def insert(self, region: FoldRegion) -> None:
        if self.has_overlap(region.start, region.end):
            raise OverlapError(region.start, region.end)
        self.buffer.set_editable(False, *_locked(region))
        self._regions.append(region)
        logger.debug("Stored fold %d-%d", region.start, region.end)

    def remove_at(self, position: int) -> list[FoldRegion]:
        removed = [r for r in self._regions if r.contains(position)]
        self._discard(removed)
        return removed

    def remove_all(self) -> list[FoldRegion]:
        removed = list(self._regions)
        self._discard(removed)
        return removed

    def _discard(self, removed: list[FoldRegion]) -> None:
        for r in removed:
            self._regions.remove(r)
            self.buffer.set_editable(True, *_locked(r))


def _locked(region: FoldRegion) -> tuple[int, int]:
    """The read-only extent: the span plus the newline just before it."""
    return max(0, region.start - 1), region.end
