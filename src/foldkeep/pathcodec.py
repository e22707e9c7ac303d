"""Map a document path to the file holding its persisted folds.

Every path separator becomes the escape character, so
``/home/u/notes.txt`` is stored as ``<persist_dir>/!home!u!notes.txt``.
Paths that already contain the escape character can collide; ``decode``
cannot tell those apart either.
"""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_ESCAPE = "!"

_SEPARATORS = tuple(s for s in ("/", os.sep, os.altsep) if s)


def canonical_path(path: str | os.PathLike) -> str:
    """Resolve symlinks and relative parts. Apply once, before ``encode``."""
    return os.path.realpath(os.fspath(path))


def encode_name(document_path: str, escape: str = DEFAULT_ESCAPE) -> str:
    name = document_path
    for sep in _SEPARATORS:
        name = name.replace(sep, escape)
    return name


def encode(document_path: str, persist_dir: Path, escape: str = DEFAULT_ESCAPE) -> Path:
    return Path(persist_dir) / encode_name(document_path, escape)


def decode(filename: str, escape: str = DEFAULT_ESCAPE) -> str:
    return filename.replace(escape, "/")
