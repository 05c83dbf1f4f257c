from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional, Sequence

from .config import DEFAULT_LANGUAGES, order_languages
from .csvsource import (
    column_index,
    compute_source_fingerprint,
    format_rows,
    load_rows,
    require_data_rows,
    source_rows,
)
from .errors import StpoError
from .headers import stamp_source_fingerprint, update_build_headers
from .model import Document
from .serializer import serialize
from .stpo import (
    PO_SUFFIX,
    list_po_files,
    load_po_directory,
    pofile,
    save_document,
    write_output,
)
from .translate import Translator, count_pending, translate_document

logger = logging.getLogger(__name__)

NOTRANSLATE_COMMENT = "# notranslate"


def _rebuild_from_rows(
    rows: Sequence[Sequence[str]],
    previous: Optional[Document],
    *,
    keep_targets: bool = True,
) -> Document:
    """Build a document with one entry per CSV row, in CSV order.

    Headers come from ``previous``; for unchanged (key, source) pairs its
    comments and, if ``keep_targets``, its translation are carried over.
    Entries whose row disappeared are dropped.
    """
    document = Document()
    if previous is not None:
        for key, value in previous.headers.items():
            document.set_header(key, value)

    for _row_number, key, source in source_rows(rows):
        old = previous.get_entry(key, source) if previous is not None else None
        target = old.target if old is not None and keep_targets else ""
        entry = document.upsert(key, source, target)
        if old is not None and not entry.comments:
            entry.set_comments(old.comments)
    return document


def _make_pot(
    input_path: str,
    output: Optional[str],
    *,
    force: bool = False,
    project_version: str = "",
    now: Optional[datetime] = None,
) -> Iterator[str]:
    digest = compute_source_fingerprint(input_path)
    rows = load_rows(input_path)
    require_data_rows(rows, input_path)

    previous = None
    if output and Path(output).exists():
        try:
            previous = pofile(output)
        except (OSError, ValueError) as exc:
            logger.warning("ignoring unreadable template %s: %s", output, exc)

    pot = _rebuild_from_rows(rows, previous, keep_targets=False)
    # X-CSV-Hash is part of the content fingerprint, so it goes in first.
    stamp_source_fingerprint(pot, digest, now=now)
    update_build_headers(pot, project_version, now=now)

    write_output(output, serialize(pot), force=force)
    if output:
        yield f"pot: {output} ({len(pot)} entries)"


def _make_pos(
    input_path: str,
    podir: Optional[str],
    langs: Sequence[str],
    *,
    force: bool = False,
    project_version: str = "",
    now: Optional[datetime] = None,
) -> Iterator[str]:
    rows = load_rows(input_path)
    columns = column_index(rows)

    for lang in langs or DEFAULT_LANGUAGES:
        po = Document(language=lang)
        idx = columns.get(lang)
        for row_number, key, source in source_rows(rows):
            row = rows[row_number - 1]
            target = row[idx] if idx is not None and idx < len(row) else ""
            po.upsert(key, source, target)
        update_build_headers(po, project_version, now=now)

        if not podir:
            write_output(None, f"# {lang}{PO_SUFFIX}\n" + serialize(po))
            continue
        path = Path(podir) / f"{lang}{PO_SUFFIX}"
        write_output(path, serialize(po), force=force)
        yield f"po: {path} ({len(po)} entries)"


def _update_pos(
    input_path: str,
    podir: str,
    langs: Sequence[str],
    *,
    outdir: Optional[str] = None,
    project_version: str = "",
    now: Optional[datetime] = None,
) -> Iterator[str]:
    rows = load_rows(input_path)
    existing = load_po_directory(podir)
    target_dir = Path(outdir or podir)

    for lang in langs or order_languages(existing):
        previous = existing.get(lang)
        po = _rebuild_from_rows(rows, previous)
        if not po.language:
            po.language = lang
        changed = update_build_headers(po, project_version, now=now)
        path = target_dir / f"{lang}{PO_SUFFIX}"
        save_document(po, path)
        state = "updated" if changed else "unchanged"
        yield f"{state}: {path} ({len(po)} entries)"


def _make_csv(
    input_path: str,
    podir: str,
    output: Optional[str],
    *,
    force: bool = False,
) -> Iterator[str]:
    rows = load_rows(input_path)
    po_map = load_po_directory(podir)
    langs = order_languages(po_map)

    merged = [["Language", "original", *langs]]
    for _row_number, key, source in source_rows(rows):
        merged.append([key, source, *(po_map[lang].lookup(key, source) for lang in langs)])

    write_output(output, format_rows(merged), force=force)
    if output:
        yield f"csv: {output} ({len(merged) - 1} rows, languages: {', '.join(langs) or '-'})"


@dataclass
class UntranslatedItem:
    key: str
    original: str
    context: str
    po_file: str
    row: int
    po_line: int


@dataclass
class LangStats:
    language: str
    translated: int = 0
    total: int = 0
    percentage: float = 0.0
    remaining: int = 0
    untranslated: list[UntranslatedItem] = field(default_factory=list)


def select_languages(
    available: Iterable[str],
    include: Sequence[str] = (),
    exclude: Sequence[str] = (),
) -> list[str]:
    """Resolve the languages to process: requested ones (which must exist) or all, minus excludes."""
    available = list(available)
    if include:
        missing = [lang for lang in include if lang not in available]
        if missing:
            raise StpoError(f"language '{missing[0]}' not found in PO directory")
        langs = list(include)
    else:
        langs = order_languages(available)
    excluded = set(exclude)
    return [lang for lang in langs if lang not in excluded]


def calculate_stats(
    rows: Sequence[Sequence[str]],
    po_map: dict[str, Document],
    langs: Sequence[str],
    *,
    po_paths: Optional[dict[str, Path]] = None,
    verbose: bool = False,
    clear_only: bool = False,
) -> dict[str, LangStats]:
    """Count translated rows per language; notranslate entries count as done unless clear_only."""
    po_paths = po_paths or {}
    all_stats: dict[str, LangStats] = {}
    total = len(rows) - 1

    for lang in langs:
        po = po_map.get(lang)
        stats = LangStats(language=lang, total=total)
        for row_number, key, original in source_rows(rows):
            entry = po.get_entry(key, original) if po is not None else None
            done = entry is not None and (entry.translated or (entry.excluded and not clear_only))
            if done:
                stats.translated += 1
                continue
            stats.remaining += 1
            if verbose:
                path = po_paths.get(lang)
                stats.untranslated.append(UntranslatedItem(
                    key=key,
                    original=original,
                    context=key,
                    po_file=path.name if path else "",
                    row=row_number,
                    po_line=entry.linenum if entry is not None else 0,
                ))
        if stats.total > 0:
            stats.percentage = stats.translated / stats.total * 100.0
        all_stats[lang] = stats
    return all_stats


def _format_table(table: Sequence[Sequence[str]]) -> list[str]:
    widths = [max(len(row[col]) for row in table) for col in range(len(table[0]))]
    return [
        "  ".join(cell.ljust(width) for cell, width in zip(row, widths)).rstrip()
        for row in table
    ]


def _stats(
    input_path: str,
    podir: str,
    langs: Sequence[str] = (),
    *,
    verbose: bool = False,
    output_format: str = "text",
    clear_only: bool = False,
) -> Iterator[str]:
    rows = load_rows(input_path)
    require_data_rows(rows, input_path)
    po_paths = list_po_files(podir)
    po_map = {lang: pofile(path) for lang, path in po_paths.items()}

    selected = select_languages(po_map, langs)
    if not selected:
        raise StpoError(f"no PO files found in directory '{podir}'")

    all_stats = calculate_stats(
        rows, po_map, selected, po_paths=po_paths, verbose=verbose, clear_only=clear_only
    )

    if output_format == "json":
        languages = {}
        for lang, stats in all_stats.items():
            data = asdict(stats)
            del data["language"]
            if not verbose:
                del data["untranslated"]
            languages[lang] = data
        yield json.dumps({"languages": languages}, indent=2, ensure_ascii=False)
        return

    if verbose:
        for stats in all_stats.values():
            for item in stats.untranslated:
                yield f"{item.po_file}:{item.po_line}:{item.key}:{json.dumps(item.original, ensure_ascii=False)}"
        return

    table = [["Language", "Translated", "Total", "Percentage", "Remaining"]]
    for stats in all_stats.values():
        table.append([
            stats.language,
            str(stats.translated),
            str(stats.total),
            f"{stats.percentage:.1f}%",
            str(stats.remaining),
        ])
    yield from _format_table(table)


def clean_document(
    po: Document,
    *,
    clear_only: bool = False,
    valid_keys: Optional[set[tuple[str, str]]] = None,
) -> tuple[int, int]:
    """Clear targets that merely copy the source and optionally drop keys absent from the CSV.

    Returns ``(cleaned, removed)``.
    """
    cleaned = 0
    for entry in po:
        if entry.target and entry.target == entry.source:
            entry.target = ""
            cleaned += 1
            if not clear_only and not entry.excluded:
                entry.add_comment(NOTRANSLATE_COMMENT, prepend=True)

    removed = 0
    if valid_keys is not None:
        removed = po.remove_entries(lambda entry: tuple(entry.key) not in valid_keys)
    return cleaned, removed


def _clean(
    podir: str,
    langs: Sequence[str] = (),
    *,
    input_path: str = "",
    clear_only: bool = False,
    remove_unused: bool = False,
    now: Optional[datetime] = None,
) -> Iterator[str]:
    valid_keys = None
    if remove_unused:
        if not input_path:
            raise StpoError("--input is required when using --remove-unused")
        rows = load_rows(input_path)
        require_data_rows(rows, input_path)
        valid_keys = {(key, source) for _row_number, key, source in source_rows(rows)}

    po_paths = list_po_files(podir)
    if not po_paths:
        raise StpoError(f"no PO files found in {podir}")

    for lang in order_languages(po_paths):
        if langs and lang not in langs:
            continue
        path = po_paths[lang]
        po = pofile(path)
        cleaned, removed = clean_document(po, clear_only=clear_only, valid_keys=valid_keys)
        if not cleaned and not removed:
            continue
        update_build_headers(po, now=now)
        save_document(po, path)

        parts = []
        if cleaned:
            parts.append(f"{cleaned} cleaned")
        if removed:
            parts.append(f"{removed} removed")
        yield f"lang {lang}: {', '.join(parts)}"


def _translate(
    podir: str,
    translator: Translator,
    resolve_target: Callable[[str], str],
    *,
    langs: Sequence[str] = (),
    exclude: Sequence[str] = (),
    batch_size: int = 25,
    dry_run: bool = False,
    source_lang: str = "",
    now: Optional[datetime] = None,
) -> Iterator[str]:
    if batch_size <= 0:
        raise StpoError("batch size must be > 0")

    po_paths = list_po_files(podir)
    if not po_paths:
        raise StpoError(f"no PO files found in {podir}")

    selected = select_languages(po_paths, langs, exclude)
    if not selected:
        raise StpoError("no languages selected after filters")

    total = 0
    for lang in selected:
        path = po_paths[lang]
        po = pofile(path)
        target = resolve_target(lang)

        if dry_run:
            count, chars = count_pending(po)
            if count == 0:
                yield f"lang {lang} -> {target}: nothing to translate"
                continue
            yield f"lang {lang} -> {target}: strings {count}, chars {chars}"
            total += count
            continue

        translated = translate_document(
            po, translator, target, source_lang=source_lang, batch_size=batch_size
        )
        if translated:
            update_build_headers(po, now=now)
            save_document(po, path)
        yield f"lang {lang}: translated {translated}"
        total += translated

    if total == 0:
        yield "no untranslated entries found"

