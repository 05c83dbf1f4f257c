"""Line-oriented PO/POT parser.

The parser is a small finite-state machine. Every input line is classified
into a :class:`LineKind`, and the pair ``(state, kind)`` selects a handler
from :attr:`DocumentParser.TRANSITIONS`. Unrecognized line shapes are
ignored; only I/O errors from the underlying stream propagate.
"""

from __future__ import annotations

import copy
import logging
import re
from enum import Enum
from typing import Iterable, Optional, TextIO

from .escape import extract_quoted
from .model import Document, Entry

logger = logging.getLogger(__name__)

HEADER_OPEN_TOKEN = 'msgid ""'

# A header buffer holds decoded values and raw comment lines; both real
# newlines and literal "\n" separate header fields.
_HEADER_SPLIT = re.compile(r"\\n|\n")


class State(Enum):
    SEEKING_ENTRY = "seeking-entry"
    IN_HEADER_BLOCK = "in-header-block"
    IN_HEADER_CONTINUATION = "in-header-continuation"
    IN_ENTRY_FIELD = "in-entry-field"
    IN_ENTRY_CONTINUATION = "in-entry-continuation"


class Field(Enum):
    CONTEXT = "msgctxt"
    SOURCE = "msgid"
    TARGET = "msgstr"


class LineKind(Enum):
    COMMENT = "comment"
    BLANK = "blank"
    HEADER_OPEN = "header-open"
    KEYWORD = "keyword"
    CONTINUATION = "continuation"
    OTHER = "other"


_ENTRY_ATTRIBUTES = {
    Field.CONTEXT: "context",
    Field.SOURCE: "source",
    Field.TARGET: "target",
}

_HEADER_STATES = frozenset({State.IN_HEADER_BLOCK, State.IN_HEADER_CONTINUATION})


def classify(trimmed: str) -> tuple[LineKind, Optional[Field]]:
    """Return the kind of a whitespace-trimmed line and the field it names, if any."""
    if trimmed.startswith("#"):
        return LineKind.COMMENT, None
    if not trimmed:
        return LineKind.BLANK, None
    if trimmed.startswith(HEADER_OPEN_TOKEN):
        return LineKind.HEADER_OPEN, Field.SOURCE
    for field in Field:
        if trimmed.startswith(field.value + " "):
            return LineKind.KEYWORD, field
    if trimmed.startswith('"'):
        return LineKind.CONTINUATION, None
    return LineKind.OTHER, None


def parse_header_line(document: Document, line: str) -> None:
    """Store one ``Key: Value`` header field; lines without a key are skipped."""
    line = line.strip()
    if not line:
        return
    line = line.removesuffix("\\n").strip()
    idx = line.find(":")
    if idx > 0:
        document.set_header(line[:idx].strip(), line[idx + 1:].strip())


class DocumentParser:
    """Incremental parser: call :meth:`feed` per line, then :meth:`close`."""

    def __init__(self) -> None:
        self.document = Document()
        self.state = State.SEEKING_ENTRY
        self.field: Optional[Field] = None
        self.linenum = 0
        self._entry: Optional[Entry] = None
        self._pending_comments: list[str] = []
        self._header_buffer: list[str] = []
        # True until the header block opens or the first entry starts.
        self._preamble = True

    def feed(self, line: str) -> None:
        self.linenum += 1
        raw = line.rstrip("\r\n")
        trimmed = raw.strip()
        kind, field = classify(trimmed)
        handler = self.TRANSITIONS[(self.state, kind)]
        handler(self, raw, trimmed, field)

    def close(self) -> Document:
        self._flush_entry()
        if self.state in _HEADER_STATES:
            self._flush_header()
        self.document.sync_language()
        return self.document

    # ======= Handlers =======
    def _ignore(self, raw: str, trimmed: str, field: Optional[Field]) -> None:
        pass

    def _buffer_comment(self, raw: str, trimmed: str, field: Optional[Field]) -> None:
        if self._preamble:
            return
        self._pending_comments.append(raw)

    def _open_header(self, raw: str, trimmed: str, field: Optional[Field]) -> None:
        self._preamble = False
        self.state = State.IN_HEADER_BLOCK
        self.field = None

    def _buffer_header_comment(self, raw: str, trimmed: str, field: Optional[Field]) -> None:
        self._header_buffer.append(trimmed + "\n")

    def _header_keyword(self, raw: str, trimmed: str, field: Optional[Field]) -> None:
        if field is Field.TARGET:
            self._header_buffer.append(extract_quoted(trimmed))
            self.state = State.IN_HEADER_CONTINUATION
            return
        self._flush_header()
        self._entry_keyword(raw, trimmed, field)

    def _header_line(self, raw: str, trimmed: str, field: Optional[Field]) -> None:
        parse_header_line(self.document, extract_quoted(trimmed))

    def _close_header(self, raw: str, trimmed: str, field: Optional[Field]) -> None:
        self._flush_header()
        self.state = State.SEEKING_ENTRY

    def _entry_keyword(self, raw: str, trimmed: str, field: Optional[Field]) -> None:
        if field is None:
            return
        self._preamble = False
        if field is Field.CONTEXT:
            self._flush_entry()
            self._start_entry()
        elif self._entry is None:
            self._start_entry()
        setattr(self._entry, _ENTRY_ATTRIBUTES[field], extract_quoted(trimmed))
        self.field = field
        self.state = State.IN_ENTRY_FIELD

    def _continue_field(self, raw: str, trimmed: str, field: Optional[Field]) -> None:
        if self._entry is None or self.field is None:
            return
        attribute = _ENTRY_ATTRIBUTES[self.field]
        setattr(self._entry, attribute, getattr(self._entry, attribute) + extract_quoted(trimmed))
        self.state = State.IN_ENTRY_CONTINUATION

    def _end_entry(self, raw: str, trimmed: str, field: Optional[Field]) -> None:
        if self._entry is None or not self._entry.source:
            return
        self._flush_entry()
        self._pending_comments = []
        self.state = State.SEEKING_ENTRY

    # ======= Helpers =======
    def _start_entry(self) -> None:
        self._entry = Entry(
            context="",
            source="",
            comments=copy.deepcopy(self._pending_comments),
            linenum=self.linenum,
        )
        self._pending_comments = []

    def _flush_entry(self) -> None:
        entry = self._entry
        self._entry = None
        self.field = None
        if entry is None:
            return
        if not entry.source:
            logger.debug("dropping entry without msgid at line %d", entry.linenum)
            return
        entry.refresh_flags()
        if self.document.get_entry(entry.context, entry.source) is not None:
            logger.debug("duplicate entry %r at line %d replaces earlier one", entry.key, entry.linenum)
        self.document.append(entry)

    def _flush_header(self) -> None:
        if not self._header_buffer:
            return
        for line in _HEADER_SPLIT.split("".join(self._header_buffer)):
            parse_header_line(self.document, line)
        self._header_buffer = []

    TRANSITIONS = {
        (State.SEEKING_ENTRY, LineKind.COMMENT): _buffer_comment,
        (State.SEEKING_ENTRY, LineKind.BLANK): _ignore,
        (State.SEEKING_ENTRY, LineKind.HEADER_OPEN): _open_header,
        (State.SEEKING_ENTRY, LineKind.KEYWORD): _entry_keyword,
        (State.SEEKING_ENTRY, LineKind.CONTINUATION): _ignore,
        (State.SEEKING_ENTRY, LineKind.OTHER): _ignore,
        (State.IN_HEADER_BLOCK, LineKind.COMMENT): _buffer_header_comment,
        (State.IN_HEADER_BLOCK, LineKind.BLANK): _close_header,
        (State.IN_HEADER_BLOCK, LineKind.HEADER_OPEN): _open_header,
        (State.IN_HEADER_BLOCK, LineKind.KEYWORD): _header_keyword,
        (State.IN_HEADER_BLOCK, LineKind.CONTINUATION): _header_line,
        (State.IN_HEADER_BLOCK, LineKind.OTHER): _ignore,
        (State.IN_HEADER_CONTINUATION, LineKind.COMMENT): _buffer_header_comment,
        (State.IN_HEADER_CONTINUATION, LineKind.BLANK): _close_header,
        (State.IN_HEADER_CONTINUATION, LineKind.HEADER_OPEN): _open_header,
        (State.IN_HEADER_CONTINUATION, LineKind.KEYWORD): _header_keyword,
        (State.IN_HEADER_CONTINUATION, LineKind.CONTINUATION): _header_line,
        (State.IN_HEADER_CONTINUATION, LineKind.OTHER): _ignore,
        # Inside an entry, 'msgid ""' starts a multi-line msgid.
        (State.IN_ENTRY_FIELD, LineKind.COMMENT): _buffer_comment,
        (State.IN_ENTRY_FIELD, LineKind.BLANK): _end_entry,
        (State.IN_ENTRY_FIELD, LineKind.HEADER_OPEN): _entry_keyword,
        (State.IN_ENTRY_FIELD, LineKind.KEYWORD): _entry_keyword,
        (State.IN_ENTRY_FIELD, LineKind.CONTINUATION): _continue_field,
        (State.IN_ENTRY_FIELD, LineKind.OTHER): _ignore,
        (State.IN_ENTRY_CONTINUATION, LineKind.COMMENT): _buffer_comment,
        (State.IN_ENTRY_CONTINUATION, LineKind.BLANK): _end_entry,
        (State.IN_ENTRY_CONTINUATION, LineKind.HEADER_OPEN): _entry_keyword,
        (State.IN_ENTRY_CONTINUATION, LineKind.KEYWORD): _entry_keyword,
        (State.IN_ENTRY_CONTINUATION, LineKind.CONTINUATION): _continue_field,
        (State.IN_ENTRY_CONTINUATION, LineKind.OTHER): _ignore,
    }


def parse_lines(lines: Iterable[str]) -> Document:
    parser = DocumentParser()
    for line in lines:
        parser.feed(line)
    return parser.close()


def parse_text(text: str) -> Document:
    return parse_lines(text.split("\n"))


def parse_stream(stream: TextIO) -> Document:
    """Parse an open text stream; read errors propagate to the caller."""
    return parse_lines(stream)
