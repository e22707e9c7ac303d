"""Error taxonomy for fold operations and fold persistence."""

from __future__ import annotations


class FoldError(Exception):
    """Base class for every error raised by foldkeep."""


class FoldRejected(FoldError):
    """A fold request was refused. Nothing was changed."""


class EmptyRangeError(FoldRejected):
    def __init__(self, start: int, end: int) -> None:
        super().__init__(f"Nothing to fold: empty range at {start}")
        self.start = start
        self.end = end


class OverlapError(FoldRejected):
    def __init__(self, start: int, end: int) -> None:
        super().__init__(f"Range {start}-{end} overlaps an existing fold")
        self.start = start
        self.end = end


class OutOfRangeError(FoldRejected):
    def __init__(self, start: int, end: int, size: int) -> None:
        super().__init__(f"Range {start}-{end} is outside the document (size {size})")
        self.start = start
        self.end = end
        self.size = size


class ConfigError(FoldError):
    """Invalid configuration value, raised where the value is used."""


class PersistenceWriteError(FoldError):
    """A persisted fold set could not be written or removed."""


class PersistenceReadError(FoldError):
    """A persisted fold set could not be read or parsed."""


class ReadOnlyError(FoldError):
    """An edit touched folded (read-only) text."""
