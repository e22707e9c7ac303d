"""FoldKeeper: the hub between a host editor and the fold machinery.

Responsibilities:
1. One FoldEngine per open document (created on first use)
2. Lifecycle hooks: restore on open, save on close, save everything on exit
3. Hook registration: install/remove the callbacks on a host
4. Command surface: fold/unfold/refold that report to the status line
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from foldkeep.config import FoldConfig
from foldkeep.engine import FoldEngine, FoldResult
from foldkeep.errors import FoldRejected, PersistenceWriteError
from foldkeep.persistence import FoldPersistence
from foldkeep.regions import FoldRegion

if TYPE_CHECKING:
    from foldkeep.buffer import TextBuffer

logger = logging.getLogger(__name__)

HOOK_OPEN = "document-open"
HOOK_CLOSE = "document-close"
HOOK_EXIT = "process-exit"


@runtime_checkable
class HookHost(Protocol):
    """A host that can call us back on lifecycle events."""

    def add_hook(self, name: str, callback: Callable) -> None: ...

    def remove_hook(self, name: str, callback: Callable) -> None: ...


class FoldKeeper:
    """Per-document fold sessions plus their persistence."""

    def __init__(self, config: FoldConfig | None = None) -> None:
        self.config = config or FoldConfig()
        self.persistence = FoldPersistence(self.config)
        self._engines: dict[int, tuple[TextBuffer, FoldEngine]] = {}

    # ── Sessions ─────────────────────────────────────────────

    def engine_for(self, doc: TextBuffer) -> FoldEngine:
        entry = self._engines.get(id(doc))
        if entry is None:
            entry = (doc, FoldEngine(doc, self.config))
            self._engines[id(doc)] = entry
        return entry[1]

    @property
    def documents(self) -> list[TextBuffer]:
        return [doc for doc, _ in self._engines.values()]

    # ── Hook registration ────────────────────────────────────

    def _hooks(self) -> list[tuple[str, Callable]]:
        return [
            (HOOK_OPEN, self.on_document_open),
            (HOOK_CLOSE, self.on_document_close),
            (HOOK_EXIT, self.on_process_exit),
        ]

    def register(self, host: HookHost) -> None:
        for name, callback in self._hooks():
            host.add_hook(name, callback)
        logger.info("Registered fold persistence hooks")

    def unregister(self, host: HookHost) -> None:
        for name, callback in self._hooks():
            host.remove_hook(name, callback)
        logger.info("Removed fold persistence hooks")

    # ── Lifecycle ────────────────────────────────────────────

    def on_document_open(self, doc: TextBuffer) -> bool:
        return self.persistence.restore(doc, self.engine_for(doc))

    def on_document_close(self, doc: TextBuffer) -> None:
        self.save_document(doc)
        self._engines.pop(id(doc), None)

    def on_process_exit(self) -> int:
        """Save every open document. Returns how many saves failed."""
        failed = 0
        for doc in self.documents:
            if not self.save_document(doc):
                failed += 1
        return failed

    def save_document(self, doc: TextBuffer) -> bool:
        try:
            self.persistence.save(doc, self.engine_for(doc))
        except PersistenceWriteError as e:
            logger.warning("Folds for %s not saved: %s", doc.path, e)
            return False
        return True

    # ── Commands ─────────────────────────────────────────────

    def fold_selection(self, doc: TextBuffer, start: int, end: int) -> FoldResult:
        return self._fold(doc, lambda engine: engine.fold(start, end))

    def fold_lines(self, doc: TextBuffer, first: int, last: int) -> FoldResult:
        """Fold 0-based lines ``first`` through ``last`` inclusive."""
        return self._fold(doc, lambda engine: engine.fold_lines(first, last))

    def _fold(self, doc: TextBuffer, action: Callable[[FoldEngine], FoldRegion]) -> FoldResult:
        try:
            region = action(self.engine_for(doc))
        except FoldRejected as e:
            result = FoldResult(str(e), error=True)
        else:
            result = FoldResult(f"Folded lines at {region.start}-{region.end}", [region], True)
        return self._report(doc, result)

    def unfold_at_point(self, doc: TextBuffer) -> FoldResult:
        return self._report(doc, self.engine_for(doc).unfold_at(doc.cursor))

    def unfold_all(self, doc: TextBuffer) -> FoldResult:
        return self._report(doc, self.engine_for(doc).unfold_all())

    def refold(self, doc: TextBuffer) -> FoldResult:
        return self._report(doc, self.engine_for(doc).refold())

    def _report(self, doc: TextBuffer, result: FoldResult) -> FoldResult:
        doc.status_message(result.message)
        return result
