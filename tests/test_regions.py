"""Tests for the region store."""

from __future__ import annotations

import pytest

from foldkeep.buffer import Document
from foldkeep.errors import OutOfRangeError, OverlapError
from foldkeep.regions import FoldRegion, RegionStore


@pytest.fixture
def store(doc: Document) -> RegionStore:
    return RegionStore(doc)


class TestNormalize:
    def test_whole_lines(self, store: RegionStore):
        assert store.normalize(12, 18) == (10, 21)

    def test_reversed_pair(self, store: RegionStore):
        for a, b in [(18, 12), (29, 0), (21, 6), (15, 10)]:
            assert store.normalize(a, b) == store.normalize(b, a)

    def test_trailing_newline_not_captured(self, store: RegionStore):
        # 22 is the first column of "epsilon": the selection ate the newline
        assert store.normalize(10, 22) == (10, 21)

    def test_point_covers_its_line(self, store: RegionStore):
        assert store.normalize(12, 12) == (10, 15)

    def test_empty_line_stays_empty(self):
        store = RegionStore(Document("a\n\nb"))
        assert store.normalize(2, 2) == (2, 2)

    def test_document_end(self, store: RegionStore):
        assert store.normalize(30, 30) == (30, 30)
        assert store.normalize(22, 30) == (22, 29)

    def test_line_snap_invariant(self, store: RegionStore, doc: Document):
        for a in range(0, 31, 3):
            for b in range(0, 31, 4):
                s, e = store.normalize(a, b)
                assert doc.line_start(s) == s
                assert e == len(doc) or doc.text[e] == "\n"

    def test_out_of_range(self, store: RegionStore):
        with pytest.raises(OutOfRangeError):
            store.normalize(0, 31)
        with pytest.raises(OutOfRangeError):
            store.normalize(-1, 4)


class TestStore:
    def test_insert_locks_text(self, store: RegionStore, doc: Document):
        store.insert(FoldRegion(10, 15, "gamma"))
        assert len(store) == 1
        assert doc.is_read_only(12)
        assert doc.is_read_only(9, 10)  # the newline before the fold
        assert not doc.is_read_only(16, 17)

    def test_overlap_rejected(self, store: RegionStore):
        store.insert(FoldRegion(10, 21, "gamma"))
        with pytest.raises(OverlapError):
            store.insert(FoldRegion(16, 29, "delta"))
        assert store.spans() == [(10, 21)]

    def test_adjacent_allowed(self, store: RegionStore):
        store.insert(FoldRegion(10, 15, "gamma"))
        store.insert(FoldRegion(16, 21, "delta"))
        assert store.spans() == [(10, 15), (16, 21)]

    def test_has_overlap_closed_interval(self, store: RegionStore):
        store.insert(FoldRegion(10, 15, "gamma"))
        assert store.has_overlap(15, 15)
        assert store.has_overlap(0, 10)
        assert not store.has_overlap(0, 9)
        assert not store.has_overlap(16, 29)

    def test_remove_at(self, store: RegionStore, doc: Document):
        store.insert(FoldRegion(10, 15, "gamma"))
        store.insert(FoldRegion(22, 29, "epsilon"))
        removed = store.remove_at(15)
        assert [r.span for r in removed] == [(10, 15)]
        assert store.spans() == [(22, 29)]
        assert not doc.is_read_only(12)

    def test_remove_at_miss(self, store: RegionStore):
        store.insert(FoldRegion(10, 15, "gamma"))
        assert store.remove_at(3) == []
        assert len(store) == 1

    def test_remove_all(self, store: RegionStore, doc: Document):
        store.insert(FoldRegion(0, 5, "alpha"))
        store.insert(FoldRegion(22, 29, "epsilon"))
        removed = store.remove_all()
        assert [r.span for r in removed] == [(0, 5), (22, 29)]
        assert len(store) == 0
        doc.insert(2, "x")
        doc.insert(26, "x")

    def test_region_at(self, store: RegionStore):
        region = FoldRegion(10, 15, "gamma")
        store.insert(region)
        assert store.region_at(10) == region
        assert store.region_at(16) is None

    def test_shift(self, store: RegionStore):
        store.insert(FoldRegion(10, 15, "gamma"))
        store.insert(FoldRegion(22, 29, "epsilon"))
        store.shift(16, 4)
        assert store.spans() == [(10, 15), (26, 33)]
