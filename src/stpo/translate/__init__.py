from .base import (
    HttpTranslator,
    TranslationRequest,
    Translator,
    count_pending,
    parse_json_array,
    translate_document,
)
from .deepl import DeeplClient, deepl_target_lang
from .google import GoogleClient, google_target_lang
from .openai_compat import OpenAIClient, openai_target_lang

__all__ = (
    "DeeplClient",
    "GoogleClient",
    "HttpTranslator",
    "OpenAIClient",
    "TranslationRequest",
    "Translator",
    "count_pending",
    "deepl_target_lang",
    "google_target_lang",
    "openai_target_lang",
    "parse_json_array",
    "translate_document",
)
