from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Callable, Iterable, Sequence

from dotenv import load_dotenv

from .actions import (
    _clean,
    _make_csv,
    _make_pos,
    _make_pot,
    _stats,
    _translate,
    _update_pos,
    select_languages,
)
from .config import Settings, generator_identity, load_settings, split_languages
from .errors import StpoError
from .stpo import list_po_files
from .translate import (
    DeeplClient,
    GoogleClient,
    OpenAIClient,
    Translator,
    deepl_target_lang,
    google_target_lang,
    openai_target_lang,
)
from .translate.openai_compat import DEFAULT_MODEL
from .tui_helpers import _select_languages


def _run_cli_lines(lines: Iterable[str]) -> int:
    try:
        for line in lines:
            print(line)
    except (StpoError, OSError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    return 0


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _interactive_languages(podir: str, langs: Sequence[str], exclude: Sequence[str], title: str) -> list[str] | None:
    candidates = select_languages(list_po_files(podir), langs, exclude)
    return _select_languages(candidates, title)


def _build_translator(args: argparse.Namespace) -> tuple[Translator, Callable[[str], str], str]:
    if args.provider == "deepl":
        client = DeeplClient(
            args.auth_key,
            url=args.url,
            source_lang=args.source,
            formality=args.formality,
            split_sentences=args.split_sentences,
            preserve_formatting=args.preserve_formatting,
            use_free_api=args.api_free,
        )
        return client, deepl_target_lang, ""

    if args.provider == "google":
        client = GoogleClient(
            args.api_key,
            url=args.url,
            source_lang=args.source,
            text_format=args.format,
        )
        return client, google_target_lang, args.source

    client = OpenAIClient(
        args.api_key,
        base_url=args.url,
        model=args.model,
        temperature=args.temperature,
    )
    return client, openai_target_lang, args.source


def _run_translate(args: argparse.Namespace) -> int:
    if args.provider is None:
        print(
            "ERROR: missing provider: use 'translate deepl', 'translate openai', or 'translate google'",
            file=sys.stderr,
        )
        return 2

    langs = split_languages(args.lang)
    exclude = split_languages(args.exclude_lang)
    if args.interactive:
        try:
            chosen = _interactive_languages(args.podir, langs, exclude, "Languages to translate")
        except StpoError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1
        if not chosen:
            print("Nothing selected.")
            return 0
        langs, exclude = chosen, []

    translator, resolve_target, source_lang = _build_translator(args)
    return _run_cli_lines(
        _translate(
            args.podir,
            translator,
            resolve_target,
            langs=langs,
            exclude=exclude,
            batch_size=args.batch,
            dry_run=args.dry_run,
            source_lang=source_lang,
        )
    )


def _run_clean(args: argparse.Namespace) -> int:
    langs = split_languages(args.lang)
    if args.interactive:
        try:
            chosen = _interactive_languages(args.podir, langs, [], "Languages to clean")
        except StpoError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1
        if not chosen:
            print("Nothing selected.")
            return 0
        langs = chosen

    return _run_cli_lines(
        _clean(
            args.podir,
            langs,
            input_path=args.input if args.remove_unused else "",
            clear_only=args.clear_only,
            remove_unused=args.remove_unused,
        )
    )


def run_cli(args: argparse.Namespace) -> int:
    if args.command == "pot":
        return _run_cli_lines(
            _make_pot(args.input, args.output, force=args.force, project_version=args.project_version)
        )

    if args.command == "pos":
        return _run_cli_lines(
            _make_pos(
                args.input,
                args.podir,
                split_languages(args.langs),
                force=args.force,
                project_version=args.project_version,
            )
        )

    if args.command == "update":
        return _run_cli_lines(
            _update_pos(
                args.input,
                args.podir,
                split_languages(args.langs),
                outdir=args.outdir,
                project_version=args.project_version,
            )
        )

    if args.command == "make":
        return _run_cli_lines(_make_csv(args.input, args.podir, args.output, force=args.force))

    if args.command == "stats":
        return _run_cli_lines(
            _stats(
                args.input,
                args.podir,
                split_languages(args.lang),
                verbose=args.verbose_items,
                output_format=args.format,
                clear_only=args.clear_only,
            )
        )

    if args.command == "clean":
        return _run_clean(args)

    if args.command == "translate":
        return _run_translate(args)

    return 1


def _add_input(sub: argparse.ArgumentParser, settings: Settings) -> None:
    sub.add_argument("-i", "--input", default=settings.input, help="CSV input file")


def _add_podir(sub: argparse.ArgumentParser, settings: Settings) -> None:
    sub.add_argument("-d", "--podir", default=settings.podir, help="Directory for PO files")


def _build_parser(settings: Settings | None = None) -> argparse.ArgumentParser:
    settings = settings or Settings()
    parser = argparse.ArgumentParser(prog="stpo", description="CSV string table <-> PO/POT helper")
    parser.add_argument("--version", action="version", version=generator_identity())
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    sub = subparsers.add_parser("pot", help="Generate POT template from CSV")
    _add_input(sub, settings)
    sub.add_argument("-o", "--output", default="", help="POT output file (stdout if empty)")
    sub.add_argument(
        "-P",
        "--project-version",
        default=settings.project_version,
        help="Set Project-Id-Version header (project name and version)",
    )
    sub.add_argument("-f", "--force", action="store_true", help="Overwrite existing file")

    sub = subparsers.add_parser("pos", help="Generate PO files from CSV per language")
    _add_input(sub, settings)
    _add_podir(sub, settings)
    sub.add_argument("-l", "--langs", action="append", help="Comma-separated languages (default all)")
    sub.add_argument("-P", "--project-version", default=settings.project_version, help="Set Project-Id-Version header")
    sub.add_argument("-f", "--force", action="store_true", help="Overwrite existing files")

    sub = subparsers.add_parser("update", help="Update existing PO files with new CSV records")
    _add_input(sub, settings)
    _add_podir(sub, settings)
    sub.add_argument("-o", "--outdir", default=None, help="Where to write updated PO (defaults to --podir)")
    sub.add_argument("-l", "--langs", action="append", help="Comma-separated languages (all if empty)")
    sub.add_argument("-P", "--project-version", default=settings.project_version, help="Set Project-Id-Version header")

    sub = subparsers.add_parser("make", help="Make a merged CSV from the original CSV and PO files")
    _add_input(sub, settings)
    _add_podir(sub, settings)
    sub.add_argument("-o", "--output", default="", help="Merged CSV output (stdout if empty)")
    sub.add_argument("-f", "--force", action="store_true", help="Overwrite existing file")

    sub = subparsers.add_parser("stats", help="Show translation statistics")
    _add_input(sub, settings)
    _add_podir(sub, settings)
    sub.add_argument("-l", "--lang", action="append", help="Filter by language (repeatable)")
    sub.add_argument("-f", "--format", choices=("text", "json"), default="text", help="Output format")
    sub.add_argument(
        "-V",
        "--verbose-items",
        action="store_true",
        help="List untranslated strings (file:line:key:\"original\")",
    )
    sub.add_argument(
        "-c",
        "--clear-only",
        action="store_true",
        help="Do not count notranslate entries as translated",
    )

    sub = subparsers.add_parser("clean", help="Clear msgstr equal to msgid in PO files")
    _add_podir(sub, settings)
    _add_input(sub, settings)
    sub.add_argument("-l", "--lang", action="append", help="Filter by language (repeatable)")
    sub.add_argument("-c", "--clear-only", action="store_true", help="Don't add notranslate comment, just clear msgstr")
    sub.add_argument("-u", "--remove-unused", action="store_true", help="Remove entries not present in CSV file")
    sub.add_argument("--interactive", action="store_true", help="Pick languages interactively")

    sub = subparsers.add_parser("translate", help="Translate PO files using machine translation providers")
    _add_podir(sub, settings)
    sub.add_argument("-l", "--lang", action="append", help="Filter by language (repeatable)")
    sub.add_argument("-e", "--exclude-lang", action="append", help="Exclude language (repeatable)")
    sub.add_argument("-b", "--batch", type=int, default=settings.batch, help="Strings per request batch")
    sub.add_argument("-D", "--dry-run", action="store_true", help="Show what would be translated without calling providers")
    sub.add_argument("--interactive", action="store_true", help="Pick languages interactively")
    providers = sub.add_subparsers(dest="provider")

    deepl = providers.add_parser("deepl", help="Translate using DeepL")
    deepl.add_argument("--auth-key", default=os.environ.get("DEEPL_AUTH_KEY", ""), help="DeepL API auth key")
    deepl.add_argument("--url", default=os.environ.get("DEEPL_API_URL", ""), help="DeepL API URL")
    deepl.add_argument("--source", default="", help="Override source language code (e.g. EN)")
    deepl.add_argument("--formality", choices=("default", "less", "more"), default="", help="Tone, if supported")
    deepl.add_argument("--split-sentences", choices=("0", "1", "nonewlines"), default="", help="Sentence splitting")
    deepl.add_argument("--api-free", action="store_true", help="Use api-free.deepl.com endpoint")
    deepl.add_argument("--preserve-formatting", action="store_true", help="Preserve formatting")

    google = providers.add_parser("google", help="Translate using Google Translate")
    google.add_argument("--api-key", default=os.environ.get("GOOGLE_TRANSLATE_API_KEY", ""), help="Google Translate API key")
    google.add_argument("--url", default=os.environ.get("GOOGLE_TRANSLATE_API_URL", ""), help="Google Translate API URL")
    google.add_argument("--source", default="", help="Override source language code (e.g. en)")
    google.add_argument("--format", choices=("text", "html"), default="text", help="Text format")

    openai = providers.add_parser("openai", help="Translate using an OpenAI-compatible API")
    openai.add_argument("--api-key", default=os.environ.get("OPENAI_API_KEY", ""), help="OpenAI-compatible API key")
    openai.add_argument("--url", default=os.environ.get("OPENAI_BASE_URL", ""), help="OpenAI-compatible base URL")
    openai.add_argument("--model", default=DEFAULT_MODEL, help="Model name")
    openai.add_argument("--source", default="", help="Override source language (for prompt)")
    openai.add_argument("--temperature", type=float, default=0.0, help="Sampling temperature")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    parser = _build_parser(load_settings(Path.cwd()))
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    if args.command is None:
        parser.print_help()
        return 2
    return run_cli(args)


if __name__ == "__main__":
    raise SystemExit(main())
