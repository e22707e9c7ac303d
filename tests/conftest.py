"""Shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from foldkeep.buffer import Document
from foldkeep.config import FoldConfig
from foldkeep.engine import FoldEngine

# Five lines. Offsets:
#   "alpha"   0-4   newline 5
#   "   "     6-8   newline 9
#   "gamma"  10-14  newline 15
#   "delta"  16-20  newline 21
#   "epsilon" 22-28 newline 29   (len 30)
TEXT = "alpha\n   \ngamma\ndelta\nepsilon\n"


@pytest.fixture
def config(tmp_path: Path) -> FoldConfig:
    return FoldConfig(persist_dir=tmp_path / "state" / "folds")


@pytest.fixture
def doc() -> Document:
    return Document(TEXT)


@pytest.fixture
def engine(doc: Document, config: FoldConfig) -> FoldEngine:
    return FoldEngine(doc, config)


@pytest.fixture
def notes(tmp_path: Path) -> Path:
    path = tmp_path / "notes.txt"
    path.write_text(TEXT, encoding="utf-8")
    return path
