from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence

import requests

from ..errors import BatchSizeMismatchError, TranslationError
from ..model import Document

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60


@dataclass(frozen=True)
class TranslationRequest:
    texts: Sequence[str]
    target_lang: str
    source_lang: str = ""


class Translator(Protocol):
    def translate(self, request: TranslationRequest) -> list[str]:
        ...


def count_pending(document: Document) -> tuple[int, int]:
    """Return (number of strings, number of characters) still waiting for a translation."""
    pending = document.pending_entries()
    return len(pending), sum(len(entry.source) for entry in pending)


def translate_document(
    document: Document,
    translator: Translator,
    target_lang: str,
    *,
    source_lang: str = "",
    batch_size: int = 25,
) -> int:
    """Translate pending entries batch by batch and store the results as targets.

    A batch is applied only after the provider returned exactly one string per
    input; otherwise the error propagates and that batch leaves no trace.
    Returns the number of entries translated.
    """
    if batch_size <= 0:
        raise ValueError("batch size must be > 0")

    pending = document.pending_entries()
    translated = 0
    for start in range(0, len(pending), batch_size):
        batch = pending[start:start + batch_size]
        texts = [entry.source for entry in batch]
        logger.info("translating %d strings into %s", len(texts), target_lang)
        results = translator.translate(
            TranslationRequest(texts=texts, target_lang=target_lang, source_lang=source_lang)
        )
        if len(results) != len(texts):
            raise BatchSizeMismatchError(len(results), len(texts))
        for entry, text in zip(batch, results):
            entry.target = text
        translated += len(batch)
    return translated


def parse_json_array(content: str) -> list[str]:
    """Extract a JSON array of strings, tolerating text around the array."""
    candidates = [content]
    start = content.find("[")
    end = content.rfind("]")
    if start >= 0 and end > start:
        candidates.append(content[start:end + 1])

    for candidate in candidates:
        try:
            value = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(value, list) and all(isinstance(item, str) for item in value):
            return value

    raise TranslationError(f"expected JSON array, got: {content}")


class HttpTranslator:
    """Shared plumbing for providers that take a JSON POST."""

    name = "http"

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._session = session or requests.Session()
        self.timeout = timeout

    def _check_request(self, request: TranslationRequest, credential: str, credential_name: str) -> None:
        if not credential:
            raise TranslationError(f"{self.name} {credential_name} is required")
        if not request.target_lang:
            raise TranslationError(f"{self.name} target language is required")
        if not request.texts:
            raise TranslationError(f"{self.name} translation request is empty")

    def _post(
        self,
        url: str,
        payload: dict[str, Any],
        *,
        headers: Optional[dict[str, str]] = None,
        params: Optional[dict[str, str]] = None,
    ) -> Any:
        try:
            response = self._session.post(
                url,
                json=payload,
                headers=headers,
                params=params,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise TranslationError(f"{self.name} request failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise TranslationError(
                f"{self.name} response {response.status_code}: {response.text.strip()}"
            )
        try:
            return response.json()
        except ValueError as exc:
            raise TranslationError(f"{self.name} parse response: {exc}") from exc

    def _expect_count(self, got: int, want: int) -> None:
        if got != want:
            raise BatchSizeMismatchError(got, want)

    def _reply_texts(self, items: Any, field: str, want: int) -> list[str]:
        """Pull ``field`` out of each reply item; anything but a list of objects with a string is an error."""
        if not isinstance(items, list):
            raise TranslationError(f"{self.name} malformed response: {items!r}")
        self._expect_count(len(items), want)
        texts = []
        for item in items:
            value = item.get(field) if isinstance(item, dict) else None
            if not isinstance(value, str):
                raise TranslationError(f"{self.name} malformed response item: {item!r}")
            texts.append(value)
        return texts
