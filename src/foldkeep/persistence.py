"""Persisted fold sets: save and restore the folds of a document.

One file per document under ``FoldConfig.persist_dir``, named by
``pathcodec.encode``. The file is a coding comment followed by one
S-expression listing ``(start end)`` pairs in fold order::

    ;; -*- coding: utf-8 -*-
    ((120 340) (512 600))
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING

from foldkeep import pathcodec
from foldkeep.config import FoldConfig
from foldkeep.errors import FoldRejected, PersistenceReadError, PersistenceWriteError

if TYPE_CHECKING:
    from foldkeep.buffer import TextBuffer
    from foldkeep.engine import FoldEngine

logger = logging.getLogger(__name__)

_CODING_LINE = ";; -*- coding: {} -*-"
_CODING_RE = re.compile(rb"coding:\s*([-\w.]+)")


# ── File format ──────────────────────────────────────────────


class _Tokenizer:
    TOKEN_PATTERN = re.compile(
        r"""
        (?P<LPAREN>\()|
        (?P<RPAREN>\))|
        (?P<ATOM>[^\s()]+)
        """,
        re.VERBOSE,
    )

    def __init__(self, text: str) -> None:
        self.tokens = [(m.lastgroup, m.group()) for m in self.TOKEN_PATTERN.finditer(text)]
        self.pos = 0

    def next(self) -> tuple[str, str] | None:
        if self.pos < len(self.tokens):
            self.pos += 1
            return self.tokens[self.pos - 1]
        return None

    def expect(self, kind: str) -> str:
        token = self.next()
        if token is None:
            raise PersistenceReadError(f"Unexpected end of input, expected {kind}")
        if token[0] != kind:
            raise PersistenceReadError(f"Expected {kind}, got {token[1]!r}")
        return token[1]

    def at_end(self) -> bool:
        return self.pos >= len(self.tokens)


def dumps(spans: list[tuple[int, int]], encoding: str = "utf-8") -> str:
    body = " ".join(f"({start} {end})" for start, end in spans)
    return f"{_CODING_LINE.format(encoding)}\n({body})\n"


def loads(text: str) -> list[tuple[int, int]]:
    """Parse a persisted fold set. Comment lines starting with ``;`` are skipped."""
    body = "\n".join(line for line in text.splitlines() if not line.lstrip().startswith(";"))
    tokens = _Tokenizer(body)
    tokens.expect("LPAREN")

    spans: list[tuple[int, int]] = []
    while True:
        token = tokens.next()
        if token is None:
            raise PersistenceReadError("Unexpected end of input, missing closing paren")
        if token[0] == "RPAREN":
            break
        if token[0] != "LPAREN":
            raise PersistenceReadError(f"Expected a (start end) pair, got {token[1]!r}")
        start = _int(tokens.expect("ATOM"))
        end = _int(tokens.expect("ATOM"))
        tokens.expect("RPAREN")
        spans.append((start, end))

    if not tokens.at_end():
        raise PersistenceReadError("Trailing data after fold list")
    return spans


def _int(atom: str) -> int:
    try:
        return int(atom)
    except ValueError:
        raise PersistenceReadError(f"Not an offset: {atom!r}") from None


def _decode(raw: bytes) -> str:
    """Decode using the coding declared on the first line, utf-8 otherwise."""
    first_line = raw.split(b"\n", 1)[0]
    match = _CODING_RE.search(first_line)
    encoding = match.group(1).decode("ascii") if match else "utf-8"
    try:
        return raw.decode(encoding)
    except (LookupError, UnicodeDecodeError) as e:
        raise PersistenceReadError(f"Cannot decode fold file as {encoding}: {e}") from e


# ── Persistence layer ────────────────────────────────────────


class FoldPersistence:
    """Reads and writes persisted fold sets under one directory."""

    def __init__(self, config: FoldConfig) -> None:
        self.config = config

    @property
    def root(self) -> Path:
        return self.config.persist_dir

    def target(self, document_path: str) -> Path:
        """Persistence file for a document. Save and restore both go through here."""
        return pathcodec.encode(
            pathcodec.canonical_path(document_path), self.root, self.config.escape()
        )

    def save(self, buffer: TextBuffer, engine: FoldEngine) -> None:
        """Write the document's active folds, or drop a stale file when there are none.

        Raises PersistenceWriteError.
        """
        if not buffer.path:
            return
        path = self.target(buffer.path)
        spans = engine.store.spans()

        if not spans:
            if path.exists():
                try:
                    path.unlink()
                except OSError as e:
                    raise PersistenceWriteError(f"Cannot remove {path}: {e}") from e
                logger.info("Removed fold file for %s (no folds left)", buffer.path)
            return

        encoding = self.config.file_encoding()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(dumps(spans, encoding), encoding=encoding)
        except OSError as e:
            raise PersistenceWriteError(f"Cannot write {path}: {e}") from e
        logger.info("Saved %d fold(s) for %s", len(spans), buffer.path)

    def load_spans(self, document_path: str) -> list[tuple[int, int]]:
        """Stored spans for a document. Empty when nothing is stored.

        Raises PersistenceReadError for unreadable or malformed files.
        """
        path = self.target(document_path)
        if not path.exists():
            return []
        try:
            raw = path.read_bytes()
        except OSError as e:
            raise PersistenceReadError(f"Cannot read {path}: {e}") from e
        return loads(_decode(raw))

    def restore(self, buffer: TextBuffer, engine: FoldEngine) -> bool:
        """Replay stored folds into ``engine``. True if at least one fold came back."""
        if not buffer.path:
            return False
        try:
            spans = self.load_spans(buffer.path)
        except PersistenceReadError as e:
            logger.warning("Ignoring fold file for %s: %s", buffer.path, e)
            return False
        if not spans:
            return False

        cursor = buffer.cursor
        restored = 0
        for start, end in spans:
            try:
                engine.fold(start, end)
                restored += 1
            except FoldRejected as e:
                logger.warning("Skipped stored fold %d-%d in %s: %s", start, end, buffer.path, e)
        engine.clear_recent()
        buffer.set_cursor(cursor)

        logger.info("Restored %d of %d fold(s) for %s", restored, len(spans), buffer.path)
        return restored > 0

    def stored_documents(self) -> Iterator[tuple[str, Path]]:
        """(document path, fold file) for every persisted set on disk."""
        if not self.root.is_dir():
            return
        escape = self.config.escape()
        for path in sorted(self.root.iterdir()):
            if path.is_file():
                yield pathcodec.decode(path.name, escape), path

    def prune(self) -> int:
        """Delete fold files whose document no longer exists. Returns count removed."""
        removed = 0
        for document_path, path in self.stored_documents():
            if Path(document_path).exists():
                continue
            try:
                path.unlink()
            except OSError as e:
                logger.warning("Cannot remove stale fold file %s: %s", path, e)
                continue
            logger.info("Pruned fold file for missing %s", document_path)
            removed += 1
        return removed
