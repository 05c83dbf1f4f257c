from __future__ import annotations

from typing import Any, Mapping, Optional

import requests

from ..config import DEEPL_LANGUAGES
from ..errors import TranslationError
from .base import DEFAULT_TIMEOUT, HttpTranslator, TranslationRequest

DEEPL_PAID_URL = "https://api.deepl.com/v2/translate"
DEEPL_FREE_URL = "https://api-free.deepl.com/v2/translate"


def deepl_target_lang(lang: str, languages: Mapping[str, str] = DEEPL_LANGUAGES) -> str:
    """Map a catalog language name to a DeepL target code; unknown names are an error."""
    try:
        return languages[lang.lower()]
    except KeyError:
        raise TranslationError(f"unsupported language for deepl: {lang}") from None


class DeeplClient(HttpTranslator):
    name = "deepl"

    def __init__(
        self,
        auth_key: str,
        *,
        url: str = "",
        source_lang: str = "",
        formality: str = "",
        split_sentences: str = "",
        preserve_formatting: bool = False,
        use_free_api: bool = False,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        super().__init__(session=session, timeout=timeout)
        self.auth_key = auth_key
        self.url = url
        self.source_lang = source_lang
        self.formality = formality
        self.split_sentences = split_sentences
        self.preserve_formatting = preserve_formatting
        self.use_free_api = use_free_api

    @property
    def endpoint(self) -> str:
        if self.url:
            return self.url
        return DEEPL_FREE_URL if self.use_free_api else DEEPL_PAID_URL

    def translate(self, request: TranslationRequest) -> list[str]:
        self._check_request(request, self.auth_key, "auth key")

        payload: dict[str, Any] = {
            "text": list(request.texts),
            "target_lang": request.target_lang,
        }
        source = request.source_lang or self.source_lang
        if source:
            payload["source_lang"] = source
        if self.formality:
            payload["formality"] = self.formality
        if self.split_sentences:
            payload["split_sentences"] = self.split_sentences
        if self.preserve_formatting:
            payload["preserve_formatting"] = 1

        data = self._post(
            self.endpoint,
            payload,
            headers={"Authorization": f"DeepL-Auth-Key {self.auth_key}"},
        )
        translations = data.get("translations") if isinstance(data, dict) else None
        return self._reply_texts(translations, "text", len(request.texts))
