from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

from .errors import OutputExistsError
from .model import Document
from .parser import parse_stream, parse_text
from .serializer import serialize

logger = logging.getLogger(__name__)

PO_SUFFIX = ".po"
POT_SUFFIX = ".pot"


def pofile(filename: str | os.PathLike) -> Document:
    """Return a Document parsed from a PO/POT file on disk."""
    _validate_filename(filename)
    # LF-only splitting: a bare CR inside a quoted value is data, not a line break.
    with open(filename, encoding="utf-8", newline="\n") as stream:
        document = parse_stream(stream)
    logger.debug("parsed %s: %d entries", filename, len(document))
    return document


def pofile_from_text(text: str) -> Document:
    """Return a Document parsed from raw PO text."""
    return parse_text(text)


def language_of(path: str | os.PathLike) -> str:
    """Language name encoded in a catalog file name (``russian.po`` -> ``russian``)."""
    return Path(path).name.removesuffix(PO_SUFFIX)


def list_po_files(directory: str | os.PathLike) -> dict[str, Path]:
    """Map language name to ``<language>.po`` path for every catalog in directory."""
    return {language_of(path): path for path in sorted(Path(directory).glob(f"*{PO_SUFFIX}"))}


def load_po_directory(directory: str | os.PathLike) -> dict[str, Document]:
    return {lang: pofile(path) for lang, path in list_po_files(directory).items()}


def save_document(document: Document, path: str | os.PathLike) -> None:
    """Serialize a document and write it, creating parent directories."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(serialize(document), encoding="utf-8", newline="\n")
    logger.debug("wrote %s", target)


def write_output(path: Optional[str | os.PathLike], data: str, *, force: bool = False) -> None:
    """Write data to path, or to stdout when no path is given.

    An existing file is only replaced when ``force`` is set.
    """
    if not path:
        sys.stdout.write(data)
        return

    target = Path(path)
    if not force and target.exists():
        raise OutputExistsError(str(target))
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(data, encoding="utf-8", newline="\n")


def _validate_filename(filename: str | os.PathLike) -> bool:
    if not filename:
        raise ValueError("File path cannot be empty")

    if not os.path.exists(filename):
        raise FileNotFoundError(f"File not found: {filename}")

    if not str(filename).endswith((PO_SUFFIX, POT_SUFFIX)):
        raise ValueError(f"File type not supported: {filename}")

    return True
