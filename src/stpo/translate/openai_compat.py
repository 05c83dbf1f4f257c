from __future__ import annotations

import json
from typing import Any, Mapping, Optional

import requests

from ..config import OPENAI_LANGUAGES
from ..errors import TranslationError
from .base import DEFAULT_TIMEOUT, HttpTranslator, TranslationRequest, parse_json_array

OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o-mini"

PROMPT_PRESERVE = "Preserve punctuation, spacing, and placeholders like {name}, %s, {0}, or <tag>."
PROMPT_JSON_ONLY = "Return ONLY a JSON array of strings in the same order."


def openai_target_lang(lang: str, languages: Mapping[str, str] = OPENAI_LANGUAGES) -> str:
    """Map a catalog language name to a prompt-friendly name, passing unknown names through."""
    return languages.get(lang.lower(), lang)


def build_system_prompt(source_lang: str, target_lang: str) -> str:
    if source_lang:
        return (
            f"Translate the following strings from {source_lang} to {target_lang}. "
            f"{PROMPT_PRESERVE} {PROMPT_JSON_ONLY}"
        )
    return f"Translate the following strings into {target_lang}. {PROMPT_PRESERVE} {PROMPT_JSON_ONLY}"


class OpenAIClient(HttpTranslator):
    """Chat-completions client for OpenAI and compatible servers."""

    name = "openai"

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "",
        model: str = DEFAULT_MODEL,
        temperature: float = 0.0,
        source_lang: str = "",
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        super().__init__(session=session, timeout=timeout)
        self.api_key = api_key
        self.base_url = (base_url or OPENAI_BASE_URL).rstrip("/")
        self.model = model or DEFAULT_MODEL
        self.temperature = temperature
        self.source_lang = source_lang

    def translate(self, request: TranslationRequest) -> list[str]:
        self._check_request(request, self.api_key, "api key")

        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {
                    "role": "system",
                    "content": build_system_prompt(
                        request.source_lang or self.source_lang, request.target_lang
                    ),
                },
                {"role": "user", "content": json.dumps(list(request.texts), ensure_ascii=False)},
            ],
        }
        if self.temperature:
            payload["temperature"] = self.temperature

        data = self._post(
            f"{self.base_url}/chat/completions",
            payload,
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list) or not choices:
            raise TranslationError("openai response missing choices")

        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise TranslationError(f"openai malformed response choice: {choices[0]!r}")
        content = content.strip()
        translations = parse_json_array(content)
        self._expect_count(len(translations), len(request.texts))
        return translations
