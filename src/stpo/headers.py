"""Header lifecycle: generator identity, project version and change-gated dates.

Dates are refreshed only when the content fingerprint differs from the one
stored in the document, so regenerating an unchanged catalog produces no diff.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

import xxhash

from .config import generator_identity
from .model import Document

logger = logging.getLogger(__name__)

PROJECT_HEADER = "Project-Id-Version"
GENERATOR_HEADER = "X-Generator"
CREATION_DATE_HEADER = "POT-Creation-Date"
REVISION_DATE_HEADER = "PO-Revision-Date"
CONTENT_HASH_HEADER = "X-Content-Hash"
SOURCE_HASH_HEADER = "X-CSV-Hash"

FINGERPRINT_EXCLUDED_HEADERS = frozenset({
    REVISION_DATE_HEADER,
    CREATION_DATE_HEADER,
    CONTENT_HASH_HEADER,
})

DATE_FORMAT = "%Y-%m-%d %H:%M+0000"


def content_fingerprint(document: Document) -> int:
    """64-bit xxhash over language, non-volatile headers and all entries in order."""
    h = xxhash.xxh64()

    def write(text: str) -> None:
        h.update(text.encode("utf-8"))

    write(document.language)
    write("\n")

    for key in sorted(k for k in document.headers if k not in FINGERPRINT_EXCLUDED_HEADERS):
        write(f"{key}:{document.headers[key]}\n")

    for entry in document:
        write(f"{entry.context}\n{entry.source}\n{entry.target}\n")
        for comment in entry.comments:
            write(f"{comment}\n")
        write("\n")

    return h.intdigest()


def format_fingerprint(value: int) -> str:
    return f"{value:016x}"


def parse_fingerprint(value: str) -> Optional[int]:
    if not value:
        return None
    try:
        return int(value, 16)
    except ValueError:
        return None


def format_timestamp(moment: Optional[datetime] = None) -> str:
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime(DATE_FORMAT)


def update_build_headers(
    document: Document,
    project_version: str = "",
    *,
    now: Optional[datetime] = None,
) -> bool:
    """Refresh generator/project headers and, if content changed, the date and hash.

    Templates update POT-Creation-Date unless an X-CSV-Hash header is present
    (then the date belongs to :func:`stamp_source_fingerprint`); translated
    catalogs update PO-Revision-Date. Returns True when content changed.
    """
    document.set_header(GENERATOR_HEADER, generator_identity())
    if project_version:
        document.set_header(PROJECT_HEADER, project_version)

    new_hash = content_fingerprint(document)
    old_hash = parse_fingerprint(document.get_header(CONTENT_HASH_HEADER))
    if old_hash == new_hash:
        logger.debug("content unchanged (%s), keeping dates", format_fingerprint(new_hash))
        return False

    stamp = format_timestamp(now)
    if document.is_template:
        if not document.get_header(SOURCE_HASH_HEADER):
            document.set_header(CREATION_DATE_HEADER, stamp)
    else:
        document.set_header(REVISION_DATE_HEADER, stamp)
    document.set_header(CONTENT_HASH_HEADER, format_fingerprint(new_hash))
    logger.debug("content changed, fingerprint %s", format_fingerprint(new_hash))
    return True


def stamp_source_fingerprint(
    document: Document,
    digest: int,
    *,
    now: Optional[datetime] = None,
) -> bool:
    """Record the source table fingerprint on a template, refreshing POT-Creation-Date if it changed."""
    changed = parse_fingerprint(document.get_header(SOURCE_HASH_HEADER)) != digest
    if changed:
        document.set_header(CREATION_DATE_HEADER, format_timestamp(now))
    document.set_header(SOURCE_HASH_HEADER, format_fingerprint(digest))
    return changed
