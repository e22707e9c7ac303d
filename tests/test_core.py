"""Tests for the FoldKeeper hub."""

from __future__ import annotations

from pathlib import Path

import pytest

from foldkeep.buffer import Document
from foldkeep.config import FoldConfig
from foldkeep.connectors.cli import CLIHost
from foldkeep.core import HOOK_CLOSE, HOOK_EXIT, HOOK_OPEN, FoldKeeper
from foldkeep.engine import NOTHING_TO_REFOLD, NOTHING_TO_UNFOLD


@pytest.fixture
def keeper(config: FoldConfig) -> FoldKeeper:
    return FoldKeeper(config)


class TestSessions:
    def test_engine_per_document(self, keeper: FoldKeeper):
        a, b = Document("x\n"), Document("y\n")
        assert keeper.engine_for(a) is keeper.engine_for(a)
        assert keeper.engine_for(a) is not keeper.engine_for(b)
        assert keeper.documents == [a, b]


class TestHooks:
    def test_register_and_unregister(self, keeper: FoldKeeper):
        host = CLIHost()
        keeper.register(host)
        assert host.hooks[HOOK_OPEN] == [keeper.on_document_open]
        assert host.hooks[HOOK_CLOSE] == [keeper.on_document_close]
        assert host.hooks[HOOK_EXIT] == [keeper.on_process_exit]

        keeper.unregister(host)
        assert all(not callbacks for callbacks in host.hooks.values())

    def test_close_then_open_restores(self, keeper: FoldKeeper, notes: Path, config: FoldConfig):
        doc = Document.open(notes)
        keeper.fold_selection(doc, 10, 22)
        keeper.on_document_close(doc)
        assert keeper.documents == []

        other = FoldKeeper(config)
        reopened = Document.open(notes)
        assert other.on_document_open(reopened) is True
        assert other.engine_for(reopened).store.spans() == [(10, 21)]
        assert reopened.render() == "alpha\n   \n+ gamma\nepsilon\n"

    def test_open_without_folds(self, keeper: FoldKeeper, notes: Path):
        assert keeper.on_document_open(Document.open(notes)) is False

    def test_exit_saves_every_document(self, keeper: FoldKeeper, tmp_path: Path, notes: Path):
        second = tmp_path / "second.txt"
        second.write_text("one\ntwo\n")
        docs = [Document.open(notes), Document.open(second)]
        for doc in docs:
            keeper.fold_selection(doc, 0, 0)

        assert keeper.on_process_exit() == 0
        for doc in docs:
            assert keeper.persistence.target(doc.path).exists()

    def test_exit_isolates_failures(self, keeper: FoldKeeper, tmp_path: Path, notes: Path):
        second = tmp_path / "second.txt"
        second.write_text("one\ntwo\n")
        broken, fine = Document.open(notes), Document.open(second)
        keeper.fold_selection(broken, 0, 0)
        keeper.fold_selection(fine, 0, 0)
        # A directory where the fold file should go makes the write fail
        keeper.persistence.target(broken.path).mkdir(parents=True)

        assert keeper.on_process_exit() == 1
        assert keeper.persistence.target(fine.path).is_file()

    def test_close_survives_write_failure(self, tmp_path: Path, notes: Path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        keeper = FoldKeeper(FoldConfig(persist_dir=blocker / "folds"))
        doc = Document.open(notes)
        keeper.fold_selection(doc, 0, 0)
        keeper.on_document_close(doc)
        assert keeper.documents == []


class TestCommands:
    def test_fold_selection(self, keeper: FoldKeeper, doc: Document):
        result = keeper.fold_selection(doc, 12, 18)
        assert result.changed and not result.error
        assert result.regions[0].span == (10, 21)
        assert doc.messages[-1] == result.message

    def test_fold_lines(self, keeper: FoldKeeper, doc: Document):
        result = keeper.fold_lines(doc, 2, 1)
        assert result.changed
        assert result.regions[0].span == (6, 15)
        assert doc.messages[-1] == "Folded lines at 6-15"
        assert keeper.fold_lines(doc, 1, 1).error

    def test_rejections_are_results(self, keeper: FoldKeeper, doc: Document):
        keeper.fold_selection(doc, 10, 15)
        result = keeper.fold_selection(doc, 12, 12)
        assert result.error
        assert "overlaps" in result.message

        result = keeper.fold_selection(doc, 0, 100)
        assert result.error

    def test_unfold_and_refold_at_point(self, keeper: FoldKeeper, doc: Document):
        keeper.fold_selection(doc, 10, 15)
        assert doc.cursor == 10
        assert keeper.unfold_at_point(doc).changed
        assert keeper.unfold_at_point(doc).message == NOTHING_TO_UNFOLD
        assert keeper.refold(doc).changed
        assert keeper.refold(doc).message == NOTHING_TO_REFOLD

    def test_unfold_all(self, keeper: FoldKeeper, doc: Document):
        keeper.fold_selection(doc, 0, 0)
        keeper.fold_selection(doc, 22, 22)
        assert len(keeper.unfold_all(doc).regions) == 2
        assert doc.messages[-1] == "Unfolded 2 folds"
        assert keeper.unfold_all(doc).message == NOTHING_TO_UNFOLD
