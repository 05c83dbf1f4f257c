from __future__ import annotations

from typing import Any, Mapping, Optional

import requests

from ..config import GOOGLE_LANGUAGES
from .base import DEFAULT_TIMEOUT, HttpTranslator, TranslationRequest

GOOGLE_URL = "https://translation.googleapis.com/language/translate/v2"


def google_target_lang(lang: str, languages: Mapping[str, str] = GOOGLE_LANGUAGES) -> str:
    """Map a catalog language name to a Google code, passing unknown names through."""
    return languages.get(lang.lower(), lang)


class GoogleClient(HttpTranslator):
    name = "google"

    def __init__(
        self,
        api_key: str,
        *,
        url: str = "",
        source_lang: str = "",
        text_format: str = "text",
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        super().__init__(session=session, timeout=timeout)
        self.api_key = api_key
        self.url = url or GOOGLE_URL
        self.source_lang = source_lang
        self.text_format = text_format

    def translate(self, request: TranslationRequest) -> list[str]:
        self._check_request(request, self.api_key, "api key")

        payload: dict[str, Any] = {
            "q": list(request.texts),
            "target": request.target_lang,
        }
        source = request.source_lang or self.source_lang
        if source:
            payload["source"] = source
        if self.text_format:
            payload["format"] = self.text_format

        data = self._post(self.url, payload, params={"key": self.api_key})
        body = data.get("data") if isinstance(data, dict) else None
        translations = body.get("translations") if isinstance(body, dict) else None
        return self._reply_texts(translations, "translatedText", len(request.texts))
