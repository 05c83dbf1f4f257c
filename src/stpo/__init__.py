from .config import VERSION as __version__
from .errors import (
    BatchSizeMismatchError,
    DuplicateKeyError,
    OutputExistsError,
    SourceTableError,
    StpoError,
    TranslationError,
)
from .headers import content_fingerprint, stamp_source_fingerprint, update_build_headers
from .model import Document, Entry, EntryKey, has_exclusion_flag
from .parser import DocumentParser, parse_lines, parse_stream, parse_text
from .serializer import serialize
from .stpo import list_po_files, load_po_directory, pofile, pofile_from_text, save_document

__all__ = (
    "BatchSizeMismatchError",
    "Document",
    "DocumentParser",
    "DuplicateKeyError",
    "Entry",
    "EntryKey",
    "OutputExistsError",
    "SourceTableError",
    "StpoError",
    "TranslationError",
    "__version__",
    "content_fingerprint",
    "has_exclusion_flag",
    "list_po_files",
    "load_po_directory",
    "parse_lines",
    "parse_stream",
    "parse_text",
    "pofile",
    "pofile_from_text",
    "save_document",
    "serialize",
    "stamp_source_fingerprint",
    "update_build_headers",
)
