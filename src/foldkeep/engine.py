"""Fold engine: fold, unfold, unfold-all and refold for one open document.

Each open document gets its own engine. The engine owns the document's
``RegionStore`` and the "recently unfolded" spans used by ``refold``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from foldkeep.config import FoldConfig
from foldkeep.errors import EmptyRangeError, FoldRejected, OverlapError
from foldkeep.regions import FoldRegion, RegionStore

if TYPE_CHECKING:
    from foldkeep.buffer import Decoration, TextBuffer

logger = logging.getLogger(__name__)

NOTHING_TO_UNFOLD = "Nothing to unfold"
NOTHING_TO_REFOLD = "Nothing to refold"


@dataclass
class FoldResult:
    """Outcome of a user-facing fold command."""

    message: str
    regions: list[FoldRegion] = field(default_factory=list)
    changed: bool = False
    error: bool = False


class FoldEngine:
    def __init__(self, buffer: TextBuffer, config: FoldConfig | None = None) -> None:
        self.buffer = buffer
        self.config = config or FoldConfig()
        self.store = RegionStore(buffer)
        self.recently_unfolded: list[tuple[int, int]] = []
        self._decorations: dict[tuple[int, int], Decoration] = {}
        buffer.add_change_listener(self.on_text_changed)

    @property
    def regions(self) -> list[FoldRegion]:
        return list(self.store)

    def is_folded(self, position: int) -> bool:
        return self.store.region_at(position) is not None

    # ── Fold ─────────────────────────────────────────────────

    def fold(self, raw_start: int, raw_end: int) -> FoldRegion:
        """Fold the whole lines covering ``raw_start``..``raw_end``.

        Raises EmptyRangeError, OverlapError or OutOfRangeError without
        changing anything.
        """
        start, end = self.store.normalize(raw_start, raw_end)
        if start == end:
            raise EmptyRangeError(start, end)
        # Decorations from another source (e.g. restored before this engine
        # existed) block the span too.
        if self.store.has_overlap(start, end) or self.buffer.decorations_in(start, end):
            raise OverlapError(start, end)
        placement = self.config.decoration_placement()

        region = FoldRegion(start, end, self._header(start, end))
        self.store.insert(region)
        self._decorations[region.span] = self.buffer.add_decoration(
            start, end, region.header, on_activate=self.unfold_at, placement=placement
        )
        self.buffer.set_cursor(start)
        logger.debug("Folded %d-%d (%r)", start, end, region.header)
        return region

    def fold_lines(self, first: int, last: int) -> FoldRegion:
        """Fold 0-based lines ``first`` through ``last`` inclusive."""
        first, last = sorted((first, last))
        start = self.buffer.line_offset(first)
        return self.fold(start, self.buffer.line_end(self.buffer.line_offset(last)))

    def fold_all_occurrences(self, needle: str) -> list[FoldRegion]:
        """Fold every line-span containing ``needle`` that is not folded yet."""
        if not needle:
            return []
        text = self.buffer.substring(0, len(self.buffer))
        created: list[FoldRegion] = []
        for match in re.finditer(re.escape(needle), text):
            try:
                created.append(self.fold(match.start(), match.end()))
            except FoldRejected as e:
                logger.debug("Skipped occurrence at %d: %s", match.start(), e)
        return created

    def _header(self, start: int, end: int) -> str:
        for line in self.buffer.substring(start, end).split("\n"):
            if line.strip():
                return line
        return self.config.blank_header

    # ── Unfold ───────────────────────────────────────────────

    def unfold_at(self, position: int) -> FoldResult:
        return self._unfold(self.store.remove_at(position))

    def unfold_all(self) -> FoldResult:
        return self._unfold(self.store.remove_all())

    def _unfold(self, removed: list[FoldRegion]) -> FoldResult:
        if not removed:
            return FoldResult(NOTHING_TO_UNFOLD)
        for region in removed:
            decoration = self._decorations.pop(region.span, None)
            if decoration is not None:
                self.buffer.remove_decoration(decoration)
        self.recently_unfolded = [r.span for r in removed]
        logger.debug("Unfolded %d region(s)", len(removed))
        return FoldResult(f"Unfolded {_count(removed)}", removed, changed=True)

    # ── Refold ───────────────────────────────────────────────

    def refold(self) -> FoldResult:
        if not self.recently_unfolded:
            return FoldResult(NOTHING_TO_REFOLD)
        created: list[FoldRegion] = []
        for start, end in self.recently_unfolded:
            try:
                created.append(self.fold(start, end))
            except FoldRejected as e:
                logger.warning("Could not refold %d-%d: %s", start, end, e)
        self.clear_recent()
        return FoldResult(f"Refolded {_count(created)}", created, changed=bool(created))

    def clear_recent(self) -> None:
        self.recently_unfolded = []

    # ── Offset bookkeeping ───────────────────────────────────

    def on_text_changed(self, position: int, removed: int, inserted: int) -> None:
        delta = inserted - removed
        if not delta:
            return
        old_end = position + removed
        self.store.shift(old_end, delta)
        self._decorations = {
            (s + delta, e + delta) if s >= old_end else (s, e): d
            for (s, e), d in self._decorations.items()
        }
        shifted = [_shift_span(s, e, position, old_end, delta) for s, e in self.recently_unfolded]
        self.recently_unfolded = [(s, e) for s, e in shifted if s < e]


def _shift_span(start: int, end: int, position: int, old_end: int, delta: int) -> tuple[int, int]:
    """Move an unlocked span past an edit of ``[position, old_end)``.

    Edits inside the span (text there is writable once unfolded) grow or
    shrink it. Text deleted across either boundary is clipped away, and a
    span deleted outright collapses to an empty one.
    """
    if start >= old_end:
        return start + delta, end + delta
    if end >= old_end:
        return min(start, position), end + delta
    if end > position:
        return min(start, position), position
    return start, end


def _count(regions: list[FoldRegion]) -> str:
    return f"{len(regions)} fold" + ("" if len(regions) == 1 else "s")
