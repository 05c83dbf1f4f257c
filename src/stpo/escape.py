from __future__ import annotations

import re

import polib

# Matches an opening quote and everything up to the first unescaped closing quote.
_QUOTED_PATTERN = re.compile(r'"((?:[^"\\]|\\.)*)')


def decode(raw: str) -> str:
    """Decode the escape pairs \\n \\t \\r \\\\ \\" and keep any other backslash literally."""
    return polib.unescape(raw)


def extract_quoted(line: str) -> str:
    """Return the decoded value of the first quoted field on a PO line.

    Text after the closing quote is ignored. A line without any quote yields
    an empty string.
    """
    match = _QUOTED_PATTERN.search(line)
    if match is None:
        return ""
    return decode(match.group(1))


def escape(segment: str) -> str:
    return polib.escape(segment)


def quote_value(value: str) -> str:
    """Render a field value as one or more quoted lines.

    Values with embedded newlines are split into one quoted line per segment,
    every segment except the last ending with an explicit ``\\n``.
    """
    if "\n" not in value:
        return f'"{escape(value)}"'

    segments = value.split("\n")
    lines = []
    for index, segment in enumerate(segments):
        suffix = "\\n" if index < len(segments) - 1 else ""
        lines.append(f'"{escape(segment)}{suffix}"')
    return "\n".join(lines)


def quote_header_line(key: str, value: str) -> str:
    """Render one header field as a self-contained ``"Key: Value\\n"`` line."""
    return f'"{escape(f"{key}: {value}")}\\n"'
