"""Tool identity, static language tables and ``stpo.toml`` defaults."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping

logger = logging.getLogger(__name__)

TOOL_NAME = "stringtable-po"
VERSION = "0.4.0"

CONFIG_FILENAME = "stpo.toml"
DEFAULT_INPUT = "stringtable.csv"
DEFAULT_PO_DIR = "l18n"
DEFAULT_BATCH_SIZE = 25

# Column order used by the game's stringtable.csv.
DEFAULT_LANGUAGES = (
    "english",
    "czech",
    "german",
    "russian",
    "polish",
    "hungarian",
    "italian",
    "spanish",
    "french",
    "chinese",
    "japanese",
    "portuguese",
    "chinesesimp",
)

DEEPL_LANGUAGES: Mapping[str, str] = MappingProxyType({
    "english": "EN",
    "czech": "CS",
    "german": "DE",
    "russian": "RU",
    "polish": "PL",
    "hungarian": "HU",
    "italian": "IT",
    "spanish": "ES",
    "french": "FR",
    "chinese": "ZH",
    "chinesesimp": "ZH",
    "japanese": "JA",
    "portuguese": "PT",
})

GOOGLE_LANGUAGES: Mapping[str, str] = MappingProxyType({
    "english": "en",
    "czech": "cs",
    "german": "de",
    "russian": "ru",
    "polish": "pl",
    "hungarian": "hu",
    "italian": "it",
    "spanish": "es",
    "french": "fr",
    "chinese": "zh",
    "chinesesimp": "zh-CN",
    "japanese": "ja",
    "portuguese": "pt",
})

OPENAI_LANGUAGES: Mapping[str, str] = MappingProxyType({
    "english": "English",
    "czech": "Czech",
    "german": "German",
    "russian": "Russian",
    "polish": "Polish",
    "hungarian": "Hungarian",
    "italian": "Italian",
    "spanish": "Spanish",
    "french": "French",
    "chinese": "Chinese",
    "chinesesimp": "Simplified Chinese",
    "japanese": "Japanese",
    "portuguese": "Portuguese",
})


def generator_identity() -> str:
    """Value written to the X-Generator header."""
    return f"{TOOL_NAME} {VERSION}"


def order_languages(languages: Iterable[str]) -> list[str]:
    """Default languages first (in column order), then the rest sorted by name."""
    available = set(languages)
    ordered = [lang for lang in DEFAULT_LANGUAGES if lang in available]
    ordered.extend(sorted(available.difference(DEFAULT_LANGUAGES)))
    return ordered


def split_languages(items: Iterable[str] | None) -> list[str]:
    """Flatten repeated and comma-separated language options, dropping blanks."""
    result: list[str] = []
    for item in items or ():
        for part in item.split(","):
            part = part.strip()
            if part:
                result.append(part)
    return result


@dataclass(frozen=True)
class Settings:
    input: str = DEFAULT_INPUT
    podir: str = DEFAULT_PO_DIR
    batch: int = DEFAULT_BATCH_SIZE
    project_version: str = ""


def load_settings(base_dir: Path) -> Settings:
    """Load stpo.toml from base_dir if present; an unreadable file is ignored."""

    path = base_dir / CONFIG_FILENAME
    if not path.exists():
        return Settings()

    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.warning("ignoring %s: %s", path, exc)
        return Settings()

    defaults = Settings()
    batch = data.get("batch", defaults.batch)
    if not isinstance(batch, int) or isinstance(batch, bool):
        logger.warning("ignoring non-integer batch=%r in %s", batch, path)
        batch = defaults.batch
    return Settings(
        input=str(data.get("input", defaults.input)),
        podir=str(data.get("podir", defaults.podir)),
        batch=batch,
        project_version=str(data.get("project_version", defaults.project_version)),
    )
