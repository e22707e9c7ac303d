"""Line-oriented CLI host: edit the folds of one file interactively."""

from __future__ import annotations

import logging
import shlex
import sys
from collections.abc import Callable
from typing import TextIO

from foldkeep.buffer import Document
from foldkeep.core import HOOK_CLOSE, HOOK_EXIT, HOOK_OPEN, FoldKeeper
from foldkeep.errors import FoldError

logger = logging.getLogger(__name__)

HELP = """\
Commands:
  fold START END     fold the lines covering offsets START..END
  lines FIRST LAST   fold lines FIRST..LAST (0-based)
  occur TEXT         fold every line containing TEXT
  unfold [POS]       unfold at POS (default: cursor)
  unfold-all         unfold everything
  refold             refold what was last unfolded
  goto POS           move the cursor
  show               print the folded view
  list               list active folds
  save               write the fold set now
  quit               close the file (folds are saved)"""


class CLIHost:
    """Minimal editor host: owns lifecycle hooks and open documents."""

    def __init__(self, out: TextIO | None = None) -> None:
        self.out = out or sys.stdout
        self.hooks: dict[str, list[Callable]] = {}
        self.documents: list[Document] = []

    def add_hook(self, name: str, callback: Callable) -> None:
        self.hooks.setdefault(name, []).append(callback)

    def remove_hook(self, name: str, callback: Callable) -> None:
        if callback in self.hooks.get(name, []):
            self.hooks[name].remove(callback)

    def _run_hooks(self, name: str, *args) -> None:
        for callback in list(self.hooks.get(name, [])):
            callback(*args)

    def open(self, path: str) -> Document:
        doc = Document.open(path)
        self.documents.append(doc)
        self._run_hooks(HOOK_OPEN, doc)
        return doc

    def close(self, doc: Document) -> None:
        self._run_hooks(HOOK_CLOSE, doc)
        self.documents.remove(doc)

    def exit(self) -> None:
        self._run_hooks(HOOK_EXIT)
        self.documents.clear()

    def print(self, text: str) -> None:
        print(text, file=self.out)


def run_repl(keeper: FoldKeeper, path: str, stdin: TextIO | None = None,
             out: TextIO | None = None) -> None:
    """Open ``path``, run commands from ``stdin`` until quit or EOF, then close."""
    stdin = stdin or sys.stdin
    host = CLIHost(out)
    keeper.register(host)
    doc = host.open(path)
    restored = len(keeper.engine_for(doc).regions)
    host.print(f"{doc.path}: {len(doc)} chars, {restored} fold(s) restored. Type 'help'.")

    try:
        while True:
            if stdin is sys.stdin:
                host.out.write("fold> ")
                host.out.flush()
            line = stdin.readline()
            if not line:
                break
            try:
                words = shlex.split(line)
            except ValueError as e:
                host.print(f"error: {e}")
                continue
            if not words:
                continue
            if words[0] in ("quit", "exit"):
                break
            _dispatch(keeper, host, doc, words)
    except KeyboardInterrupt:
        host.print("")
    finally:
        host.close(doc)
        keeper.unregister(host)


def _dispatch(keeper: FoldKeeper, host: CLIHost, doc: Document, words: list[str]) -> None:
    cmd, args = words[0], words[1:]
    engine = keeper.engine_for(doc)
    try:
        if cmd == "fold" and len(args) == 2:
            result = keeper.fold_selection(doc, int(args[0]), int(args[1]))
        elif cmd == "lines" and len(args) == 2:
            result = keeper.fold_lines(doc, int(args[0]), int(args[1]))
        elif cmd == "occur" and args:
            created = engine.fold_all_occurrences(" ".join(args))
            host.print(f"Folded {len(created)} occurrence(s)")
            return
        elif cmd == "unfold":
            if args:
                doc.set_cursor(int(args[0]))
            result = keeper.unfold_at_point(doc)
        elif cmd == "unfold-all":
            result = keeper.unfold_all(doc)
        elif cmd == "refold":
            result = keeper.refold(doc)
        elif cmd == "goto" and len(args) == 1:
            doc.set_cursor(int(args[0]))
            host.print(f"cursor at {doc.cursor}")
            return
        elif cmd == "show":
            host.print(doc.render())
            return
        elif cmd == "list":
            for region in engine.regions:
                host.print(f"{region.start:>8} {region.end:>8}  {region.header}")
            return
        elif cmd == "save":
            ok = keeper.save_document(doc)
            host.print("saved" if ok else "save failed, see log")
            return
        elif cmd == "help":
            host.print(HELP)
            return
        else:
            host.print(f"unknown command: {' '.join(words)} (try 'help')")
            return
    except (ValueError, IndexError, FoldError) as e:
        host.print(f"error: {e}")
        return
    host.print(result.message)
