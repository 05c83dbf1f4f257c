import json
import unittest
from unittest import mock

import requests

from stpo.errors import BatchSizeMismatchError, TranslationError
from stpo.model import Document, Entry
from stpo.translate import (
    DeeplClient,
    GoogleClient,
    OpenAIClient,
    TranslationRequest,
    count_pending,
    deepl_target_lang,
    google_target_lang,
    openai_target_lang,
    parse_json_array,
    translate_document,
)


class UpperTranslator:
    def __init__(self):
        self.requests = []

    def translate(self, request):
        self.requests.append(request)
        return [text.upper() for text in request.texts]


class ShortTranslator:
    def translate(self, request):
        return list(request.texts)[:-1]


def _document() -> Document:
    document = Document(language="german")
    document.upsert("a", "one", "")
    document.upsert("b", "two", "zwei")
    document.upsert("c", "three", "")
    document.append(Entry("d", "four", comments=["#, notranslate"]))
    document.upsert("e", "five", "")
    return document


def _response(status=200, payload=None, text=""):
    response = mock.Mock()
    response.status_code = status
    response.text = text
    response.json.return_value = payload
    return response


class TestTranslateDocument(unittest.TestCase):
    def test_translates_pending_in_batches(self):
        document = _document()
        translator = UpperTranslator()

        translated = translate_document(document, translator, "DE", source_lang="EN", batch_size=2)

        self.assertEqual(3, translated)
        self.assertEqual([["one", "three"], ["five"]], [list(r.texts) for r in translator.requests])
        self.assertEqual("EN", translator.requests[0].source_lang)
        self.assertEqual("ONE", document.lookup("a", "one"))
        self.assertEqual("zwei", document.lookup("b", "two"))
        self.assertEqual("", document.lookup("d", "four"))

    def test_size_mismatch_leaves_batch_untouched(self):
        document = _document()

        with self.assertRaises(BatchSizeMismatchError) as ctx:
            translate_document(document, ShortTranslator(), "DE", batch_size=5)

        self.assertEqual((2, 3), (ctx.exception.got, ctx.exception.want))
        self.assertEqual(3, len(document.pending_entries()))

    def test_rejects_non_positive_batch_size(self):
        with self.assertRaises(ValueError):
            translate_document(_document(), UpperTranslator(), "DE", batch_size=0)

    def test_count_pending(self):
        self.assertEqual((3, len("one") + len("three") + len("five")), count_pending(_document()))


class TestLanguageTables(unittest.TestCase):
    def test_deepl(self):
        self.assertEqual("RU", deepl_target_lang("Russian"))
        with self.assertRaises(TranslationError):
            deepl_target_lang("klingon")

    def test_google_and_openai_pass_unknown_through(self):
        self.assertEqual("zh-CN", google_target_lang("chinesesimp"))
        self.assertEqual("klingon", google_target_lang("klingon"))
        self.assertEqual("Simplified Chinese", openai_target_lang("chinesesimp"))
        self.assertEqual("klingon", openai_target_lang("klingon"))


class TestParseJsonArray(unittest.TestCase):
    def test_plain_array(self):
        self.assertEqual(["a", "b"], parse_json_array('["a", "b"]'))

    def test_array_wrapped_in_text(self):
        self.assertEqual(["a"], parse_json_array('Here you go:\n```json\n["a"]\n```'))

    def test_not_an_array(self):
        with self.assertRaises(TranslationError):
            parse_json_array('{"a": 1}')


class TestDeeplClient(unittest.TestCase):
    def test_request_payload_and_result(self):
        session = mock.Mock()
        session.post.return_value = _response(payload={"translations": [{"text": "Eins"}, {"text": "Zwei"}]})
        client = DeeplClient("secret", use_free_api=True, formality="less", session=session)

        result = client.translate(TranslationRequest(["One", "Two"], "DE", source_lang="EN"))

        self.assertEqual(["Eins", "Zwei"], result)
        args, kwargs = session.post.call_args
        self.assertEqual("https://api-free.deepl.com/v2/translate", args[0])
        self.assertEqual("DeepL-Auth-Key secret", kwargs["headers"]["Authorization"])
        self.assertEqual(
            {"text": ["One", "Two"], "target_lang": "DE", "source_lang": "EN", "formality": "less"},
            kwargs["json"],
        )

    def test_missing_key(self):
        client = DeeplClient("", session=mock.Mock())

        with self.assertRaises(TranslationError):
            client.translate(TranslationRequest(["One"], "DE"))

    def test_http_error_status(self):
        session = mock.Mock()
        session.post.return_value = _response(status=403, text="Forbidden")
        client = DeeplClient("secret", session=session)

        with self.assertRaisesRegex(TranslationError, "403"):
            client.translate(TranslationRequest(["One"], "DE"))

    def test_transport_error(self):
        session = mock.Mock()
        session.post.side_effect = requests.ConnectionError("boom")
        client = DeeplClient("secret", session=session)

        with self.assertRaises(TranslationError):
            client.translate(TranslationRequest(["One"], "DE"))

    def test_count_mismatch(self):
        session = mock.Mock()
        session.post.return_value = _response(payload={"translations": [{"text": "Eins"}]})
        client = DeeplClient("secret", session=session)

        with self.assertRaises(BatchSizeMismatchError):
            client.translate(TranslationRequest(["One", "Two"], "DE"))

    def test_malformed_items(self):
        for payload in ({"translations": ["Eins"]}, {"translations": [{"text": None}]}, {"translations": None}):
            with self.subTest(payload=payload):
                session = mock.Mock()
                session.post.return_value = _response(payload=payload)
                client = DeeplClient("secret", session=session)

                with self.assertRaisesRegex(TranslationError, "deepl malformed"):
                    client.translate(TranslationRequest(["One"], "DE"))


class TestGoogleClient(unittest.TestCase):
    def test_request_payload_and_result(self):
        session = mock.Mock()
        session.post.return_value = _response(
            payload={"data": {"translations": [{"translatedText": "Hola"}]}}
        )
        client = GoogleClient("key", session=session)

        result = client.translate(TranslationRequest(["Hello"], "es"))

        self.assertEqual(["Hola"], result)
        _args, kwargs = session.post.call_args
        self.assertEqual({"key": "key"}, kwargs["params"])
        self.assertEqual({"q": ["Hello"], "target": "es", "format": "text"}, kwargs["json"])

    def test_malformed_reply(self):
        payloads = ({"data": None}, {"data": {"translations": [42]}}, {"data": {"translations": [{}]}})
        for payload in payloads:
            with self.subTest(payload=payload):
                session = mock.Mock()
                session.post.return_value = _response(payload=payload)
                client = GoogleClient("key", session=session)

                with self.assertRaisesRegex(TranslationError, "google malformed"):
                    client.translate(TranslationRequest(["Hello"], "es"))


class TestOpenAIClient(unittest.TestCase):
    def test_request_payload_and_result(self):
        session = mock.Mock()
        session.post.return_value = _response(
            payload={"choices": [{"message": {"content": '["Привет", "Пока"]'}}]}
        )
        client = OpenAIClient("key", base_url="http://localhost:8080/v1/", model="local", session=session)

        result = client.translate(TranslationRequest(["Hello", "Bye"], "Russian"))

        self.assertEqual(["Привет", "Пока"], result)
        args, kwargs = session.post.call_args
        self.assertEqual("http://localhost:8080/v1/chat/completions", args[0])
        self.assertEqual("Bearer key", kwargs["headers"]["Authorization"])
        self.assertEqual("local", kwargs["json"]["model"])
        self.assertIn("into Russian", kwargs["json"]["messages"][0]["content"])
        self.assertEqual(["Hello", "Bye"], json.loads(kwargs["json"]["messages"][1]["content"]))

    def test_missing_choices(self):
        session = mock.Mock()
        session.post.return_value = _response(payload={"choices": []})
        client = OpenAIClient("key", session=session)

        with self.assertRaises(TranslationError):
            client.translate(TranslationRequest(["Hello"], "Russian"))

    def test_malformed_choice(self):
        for choice in ("text", {"message": None}, {"message": {"content": 7}}):
            with self.subTest(choice=choice):
                session = mock.Mock()
                session.post.return_value = _response(payload={"choices": [choice]})
                client = OpenAIClient("key", session=session)

                with self.assertRaisesRegex(TranslationError, "openai malformed"):
                    client.translate(TranslationRequest(["Hello"], "Russian"))


if __name__ == "__main__":
    unittest.main()
