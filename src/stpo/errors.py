from __future__ import annotations


class StpoError(Exception):
    """Base class for errors reported by stpo."""


class SourceTableError(StpoError):
    """The CSV string table cannot be used."""


class DuplicateKeyError(SourceTableError):
    def __init__(self, key: str, row: int, first_row: int) -> None:
        self.key = key
        self.row = row
        self.first_row = first_row
        super().__init__(
            f"duplicate key '{key}' at row {row} (already seen at row {first_row})"
        )


class OutputExistsError(StpoError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"file {path} already exists, use --force to overwrite")


class TranslationError(StpoError):
    """A translation provider failed or returned an unusable response."""


class BatchSizeMismatchError(TranslationError):
    def __init__(self, got: int, want: int) -> None:
        self.got = got
        self.want = want
        super().__init__(f"translation response size mismatch: got {got}, want {want}")
