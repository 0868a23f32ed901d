import unittest

import requests

from advisor.config import Settings
from advisor.domain import ConversationTurn, Role
from advisor.errors import SummarizerError
from advisor.summarizers import GeminiClient, OllamaClient, build_summarizer
from advisor.summarizers import gemini_client, ollama_client
from advisor.summarizers.gemini_client import extract_text, to_gemini_contents


class DummyResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text
        # mimic requests.Response.elapsed
        self.elapsed = type("Elapsed", (), {"total_seconds": lambda self: 0.123})()

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


HISTORY = [
    ConversationTurn(role=Role.USER, text="서울 날씨?"),
    ConversationTurn(role=Role.ASSISTANT, text="맑아요"),
    ConversationTurn(role=Role.USER, text="내일은?"),
]


class TestGeminiClient(unittest.TestCase):
    def setUp(self):
        self._orig_post = gemini_client.requests.post

    def tearDown(self):
        gemini_client.requests.post = self._orig_post

    def test_contents_use_model_role(self):
        contents = to_gemini_contents(HISTORY)
        self.assertEqual([c["role"] for c in contents], ["user", "model", "user"])
        self.assertEqual(contents[1]["parts"], [{"text": "맑아요"}])

    def test_extract_text_handles_missing_candidates(self):
        self.assertEqual(extract_text({}), "")
        self.assertEqual(extract_text({"candidates": [{"content": {"parts": [{"text": "hi"}]}}]}), "hi")

    def test_generate_success(self):
        seen = {}

        def fake_post(url, params=None, json=None, timeout=None):
            seen.update(url=url, params=params, json=json)
            return DummyResponse(200, {"candidates": [{"content": {"parts": [{"text": "좋아요"}]}}]})

        gemini_client.requests.post = fake_post
        client = GeminiClient(api_key="k", model="gemini-test", base_url="https://example.test/v1beta", timeout=5)

        self.assertEqual(client.generate(HISTORY), "좋아요")
        self.assertEqual(seen["url"], "https://example.test/v1beta/models/gemini-test:generateContent")
        self.assertEqual(seen["params"], {"key": "k"})
        self.assertEqual(len(seen["json"]["contents"]), 3)

    def test_error_status_is_carried(self):
        gemini_client.requests.post = lambda url, params=None, json=None, timeout=None: DummyResponse(
            429, {"error": {"message": "Resource exhausted"}}, text="quota"
        )
        client = GeminiClient(api_key="k", model="m", base_url="https://example.test", timeout=5)
        with self.assertRaises(SummarizerError) as ctx:
            client.generate(HISTORY)
        self.assertEqual(ctx.exception.status_code, 429)
        self.assertEqual(ctx.exception.message, "Resource exhausted")

    def test_timeout_maps_to_504(self):
        def fake_post(url, params=None, json=None, timeout=None):
            raise requests.exceptions.Timeout("slow")

        gemini_client.requests.post = fake_post
        client = GeminiClient(api_key="k", model="m", base_url="https://example.test", timeout=5)
        with self.assertRaises(SummarizerError) as ctx:
            client.generate(HISTORY)
        self.assertEqual(ctx.exception.status_code, 504)


class TestOllamaClient(unittest.TestCase):
    def setUp(self):
        self._orig_post = ollama_client.requests.post

    def tearDown(self):
        ollama_client.requests.post = self._orig_post

    def test_generate_success(self):
        seen = {}

        def fake_post(url, json=None, timeout=None):
            seen["json"] = json
            return DummyResponse(200, {"message": {"content": "hi"}}, text="ok")

        ollama_client.requests.post = fake_post
        self.assertEqual(OllamaClient().generate(HISTORY), "hi")
        self.assertEqual([m["role"] for m in seen["json"]["messages"]], ["user", "assistant", "user"])

    def test_non_200_raises_with_status(self):
        ollama_client.requests.post = lambda url, json=None, timeout=None: DummyResponse(500, text="err")
        with self.assertRaises(SummarizerError) as ctx:
            OllamaClient().generate(HISTORY)
        self.assertEqual(ctx.exception.status_code, 500)


class TestFactory(unittest.TestCase):
    def test_gemini_default(self):
        self.assertIsInstance(build_summarizer(Settings(summarizer_backend="gemini")), GeminiClient)

    def test_ollama(self):
        self.assertIsInstance(build_summarizer(Settings(summarizer_backend="ollama")), OllamaClient)

    def test_unknown_backend(self):
        with self.assertRaises(ValueError):
            build_summarizer(Settings(summarizer_backend="nope"))


if __name__ == "__main__":
    unittest.main()
