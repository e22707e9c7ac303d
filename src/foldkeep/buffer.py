"""Text-buffer collaborator protocol and an in-memory document.

The fold engine never touches editor internals directly. Everything it needs
from the host (line queries, read-only marks, decorations, the cursor, status
messages, change notifications) goes through ``TextBuffer``. ``Document`` is a
plain-text implementation used by the CLI host and the test-suite.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from foldkeep.errors import ReadOnlyError

logger = logging.getLogger(__name__)

# Called after every edit: (position, removed_chars, inserted_chars)
ChangeListener = Callable[[int, int, int], None]

# Called when the user activates (clicks) a decoration
ActivateCallback = Callable[[int], object]

_MARKERS = {"left-fringe": "+ {}", "right-fringe": "{} +"}


@dataclass(eq=False)
class Decoration:
    """A folded span as the host displays it."""

    start: int
    end: int
    header: str
    on_activate: ActivateCallback | None = None
    placement: str | None = None

    def covers(self, start: int, end: int) -> bool:
        return self.start <= end and start <= self.end

    def label(self) -> str:
        return _MARKERS.get(self.placement or "", "{}").format(self.header)


@runtime_checkable
class TextBuffer(Protocol):
    """What the fold engine needs from the host editor."""

    @property
    def path(self) -> str | None: ...

    @property
    def cursor(self) -> int: ...

    def __len__(self) -> int: ...

    def substring(self, start: int, end: int) -> str: ...

    def line_start(self, position: int) -> int: ...

    def line_end(self, position: int) -> int: ...

    def line_offset(self, line: int) -> int: ...

    def set_cursor(self, position: int) -> None: ...

    def set_editable(self, editable: bool, start: int, end: int) -> None:
        """Mark ``[start, end)`` read-only (False) or writable again (True)."""
        ...

    def add_decoration(
        self,
        start: int,
        end: int,
        header: str,
        on_activate: ActivateCallback | None = None,
        placement: str | None = None,
    ) -> Decoration: ...

    def remove_decoration(self, decoration: Decoration) -> None: ...

    def decorations_in(self, start: int, end: int) -> list[Decoration]: ...

    def status_message(self, text: str) -> None: ...

    def add_change_listener(self, listener: ChangeListener) -> None: ...


class Document:
    """In-memory text document with read-only ranges and fold decorations."""

    def __init__(self, text: str = "", path: str | None = None) -> None:
        self.path = path
        self._text = text
        self._cursor = 0
        self._locks: list[tuple[int, int]] = []
        self._decorations: list[Decoration] = []
        self._listeners: list[ChangeListener] = []
        self.messages: list[str] = []

    @classmethod
    def open(cls, path: Path | str) -> Document:
        """Load a file from disk. A missing file opens as an empty document."""
        p = Path(path)
        text = p.read_text(encoding="utf-8") if p.exists() else ""
        return cls(text, path=str(p.absolute()))

    def write(self) -> None:
        if not self.path:
            raise ValueError("Document has no path")
        Path(self.path).write_text(self._text, encoding="utf-8")

    # ── Text access ──────────────────────────────────────────

    @property
    def text(self) -> str:
        return self._text

    def __len__(self) -> int:
        return len(self._text)

    def substring(self, start: int, end: int) -> str:
        return self._text[start:end]

    def line_start(self, position: int) -> int:
        return self._text.rfind("\n", 0, position) + 1

    def line_end(self, position: int) -> int:
        i = self._text.find("\n", position)
        return len(self._text) if i == -1 else i

    def line_offset(self, line: int) -> int:
        """Offset of the first character of 0-based ``line``."""
        pos = 0
        for _ in range(line):
            i = self._text.find("\n", pos)
            if i == -1:
                raise IndexError(f"Line {line} is past the end of the document")
            pos = i + 1
        return pos

    # ── Cursor & status ──────────────────────────────────────

    @property
    def cursor(self) -> int:
        return self._cursor

    def set_cursor(self, position: int) -> None:
        self._cursor = max(0, min(position, len(self._text)))

    def status_message(self, text: str) -> None:
        self.messages.append(text)
        logger.debug("[%s] %s", self.path or "<unsaved>", text)

    # ── Read-only ranges ─────────────────────────────────────

    def set_editable(self, editable: bool, start: int, end: int) -> None:
        if editable:
            if (start, end) in self._locks:
                self._locks.remove((start, end))
        else:
            self._locks.append((start, end))

    def is_read_only(self, start: int, end: int | None = None) -> bool:
        """True if replacing ``[start, end)`` would touch locked text.

        The character right after a lock (the newline ending a fold) is
        covered too, so text can never be appended to a folded line. An
        insertion at the first locked character lands before it and is allowed.
        """
        if end is None or end == start:
            return any(ls < start <= le for ls, le in self._locks)
        return any(ls < end and start <= le for ls, le in self._locks)

    # ── Editing ──────────────────────────────────────────────

    def replace(self, start: int, end: int, text: str) -> None:
        if not 0 <= start <= end <= len(self._text):
            raise IndexError(f"Edit range {start}-{end} outside document")
        if self.is_read_only(start, end):
            raise ReadOnlyError(f"Text at {start}-{end} is folded and read-only")

        self._text = self._text[:start] + text + self._text[end:]
        delta = len(text) - (end - start)
        if delta:
            self._locks = [
                (ls + delta, le + delta) if ls >= end else (ls, le) for ls, le in self._locks
            ]
            for d in self._decorations:
                if d.start >= end:
                    d.start += delta
                    d.end += delta
            if self._cursor >= end:
                self._cursor += delta
            elif self._cursor > start:
                self._cursor = start

        for listener in list(self._listeners):
            listener(start, end - start, len(text))

    def insert(self, position: int, text: str) -> None:
        self.replace(position, position, text)

    def delete(self, start: int, end: int) -> None:
        self.replace(start, end, "")

    def add_change_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def remove_change_listener(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ── Decorations ──────────────────────────────────────────

    def add_decoration(
        self,
        start: int,
        end: int,
        header: str,
        on_activate: ActivateCallback | None = None,
        placement: str | None = None,
    ) -> Decoration:
        decoration = Decoration(start, end, header, on_activate, placement)
        self._decorations.append(decoration)
        return decoration

    def remove_decoration(self, decoration: Decoration) -> None:
        if decoration in self._decorations:
            self._decorations.remove(decoration)

    def decorations_in(self, start: int, end: int) -> list[Decoration]:
        return [d for d in self._decorations if d.covers(start, end)]

    @property
    def decorations(self) -> list[Decoration]:
        return list(self._decorations)

    def activate(self, position: int) -> bool:
        """Simulate clicking the folded text at ``position``."""
        hits = [d for d in self._decorations if d.start <= position <= d.end]
        for d in hits:
            if d.on_activate:
                d.on_activate(position)
        return bool(hits)

    def render(self) -> str:
        """The document as displayed: every folded span replaced by its label."""
        out: list[str] = []
        pos = 0
        for d in sorted(self._decorations, key=lambda d: d.start):
            if d.start < pos:
                continue
            out.append(self._text[pos : d.start])
            out.append(d.label())
            pos = d.end
        out.append(self._text[pos:])
        return "".join(out)
