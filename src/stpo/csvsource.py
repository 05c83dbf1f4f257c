"""The CSV string table: row 0 is the header, column 0 the key, column 1 the source text."""

from __future__ import annotations

import csv
import io
import os
from typing import Iterator, Sequence

import xxhash

from .errors import DuplicateKeyError, SourceTableError

_CHUNK_SIZE = 1 << 16


def load_rows(path: str | os.PathLike) -> list[list[str]]:
    """Read every row of the CSV file, rejecting duplicate keys in the first column."""
    with open(path, encoding="utf-8-sig", newline="") as f:
        rows = [row for row in csv.reader(f)]
    validate_unique_keys(rows)
    return rows


def validate_unique_keys(rows: Sequence[Sequence[str]]) -> None:
    seen: dict[str, int] = {}
    for row_number, row in enumerate(rows[1:], start=2):
        if not row:
            continue
        key = row[0]
        if key in seen:
            raise DuplicateKeyError(key, row_number, seen[key])
        seen[key] = row_number


def require_data_rows(rows: Sequence[Sequence[str]], path: str | os.PathLike) -> None:
    if len(rows) < 2:
        raise SourceTableError(f"{path}: CSV must have header and at least one data row")


def source_rows(rows: Sequence[Sequence[str]]) -> Iterator[tuple[int, str, str]]:
    """Yield ``(row_number, key, source)`` for data rows that carry both columns."""
    for row_number, row in enumerate(rows[1:], start=2):
        if len(row) < 2:
            continue
        yield row_number, row[0], row[1]


def column_index(rows: Sequence[Sequence[str]]) -> dict[str, int]:
    """Map header-row column names (e.g. language names) to their index."""
    if not rows:
        return {}
    return {name: idx for idx, name in enumerate(rows[0])}


def compute_source_fingerprint(path: str | os.PathLike) -> int:
    """xxhash64 of the raw CSV bytes."""
    h = xxhash.xxh64()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            h.update(chunk)
    return h.intdigest()


def format_rows(rows: Sequence[Sequence[str]]) -> str:
    """Render rows with every field double-quoted and followed by a comma."""
    buffer = io.StringIO()
    for row in rows:
        for value in row:
            escaped = value.replace('"', '""')
            buffer.write(f'"{escaped}",')
        buffer.write("\n")
    return buffer.getvalue()
