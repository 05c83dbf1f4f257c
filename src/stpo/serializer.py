from __future__ import annotations

from .escape import quote_header_line, quote_value
from .model import Document, Entry

STANDARD_HEADERS = (
    "Project-Id-Version",
    "POT-Creation-Date",
    "PO-Revision-Date",
    "Last-Translator",
    "Language-Team",
    "Language",
    "MIME-Version",
    "Content-Type",
    "Content-Transfer-Encoding",
    "X-Generator",
)


def ordered_header_keys(headers: dict[str, str]) -> list[str]:
    """Standard keys in their fixed order, then any other keys sorted by name."""
    keys = [key for key in STANDARD_HEADERS if key in headers]
    keys.extend(sorted(key for key in headers if key not in STANDARD_HEADERS))
    return keys


def _entry_lines(entry: Entry) -> list[str]:
    lines = list(entry.comments)
    if entry.context != "":
        lines.append(f"msgctxt {quote_value(entry.context)}")
    lines.append(f"msgid {quote_value(entry.source)}")
    lines.append(f"msgstr {quote_value(entry.target)}")
    lines.append("")
    return lines


def serialize(document: Document) -> str:
    """Render a document as PO text (LF line endings, trailing blank line)."""
    lines = ['msgid ""', 'msgstr ""']
    for key in ordered_header_keys(document.headers):
        lines.append(quote_header_line(key, document.headers[key]))
    lines.append("")

    for entry in document:
        lines.extend(_entry_lines(entry))

    return "\n".join(lines) + "\n"
