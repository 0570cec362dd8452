import unittest

import requests

from locator.errors import OracleUnavailableError
from locator.oracle_client import OracleClient


class DummyResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else str(payload)
        # mimic requests.Response.elapsed
        self.elapsed = type("Elapsed", (), {"total_seconds": lambda self: 0.123})()

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def _chat(content):
    return {"choices": [{"message": {"content": content}}]}


class TestOracleClient(unittest.TestCase):
    def setUp(self):
        from locator import oracle_client as oc
        self._orig_post = oc.requests.post
        self.calls = []

    def tearDown(self):
        from locator import oracle_client as oc
        oc.requests.post = self._orig_post

    def _install(self, responder):
        from locator import oracle_client as oc

        def fake_post(url, json=None, timeout=None):
            self.calls.append((url, json, timeout))
            return responder(url)

        oc.requests.post = fake_post

    def _client(self, **kwargs):
        defaults = dict(open_webui_url="http://webui", ollama_base_url="http://ollama:11434", model="tinyllama",
                        request_timeout=10, max_retries=0)
        defaults.update(kwargs)
        return OracleClient(**defaults)

    def test_primary_success(self):
        self._install(lambda url: DummyResponse(200, _chat("Halo!")))
        out = self._client().complete("hi")
        self.assertEqual(out, "Halo!")
        url, body, timeout = self.calls[0]
        self.assertEqual(url, "http://webui/api/v1/chat/completions")
        self.assertEqual(body["messages"], [{"role": "user", "content": "hi"}])
        self.assertFalse(body["stream"])
        self.assertEqual(timeout, 10)
        self.assertEqual(len(self.calls), 1)

    def test_falls_back_to_secondary_on_error_status(self):
        def responder(url):
            if "webui" in url:
                return DummyResponse(502, text="bad gateway")
            return DummyResponse(200, {"response": "dari ollama"})

        self._install(responder)
        out = self._client().complete("hi")
        self.assertEqual(out, "dari ollama")
        self.assertEqual(self.calls[1][0], "http://ollama:11434/api/generate")
        self.assertEqual(self.calls[1][1]["prompt"], "hi")

    def test_falls_back_on_connection_error(self):
        def responder(url):
            if "webui" in url:
                raise requests.exceptions.ConnectionError("refused")
            return DummyResponse(200, {"response": "ok"})

        self._install(responder)
        self.assertEqual(self._client().complete("hi"), "ok")

    def test_malformed_primary_body_falls_back(self):
        def responder(url):
            if "webui" in url:
                return DummyResponse(200, {"unexpected": True})
            return DummyResponse(200, {"response": "ok"})

        self._install(responder)
        self.assertEqual(self._client().complete("hi"), "ok")

    def test_null_primary_content_falls_back_to_secondary(self):
        def responder(url):
            if "webui" in url:
                return DummyResponse(200, _chat(None))
            return DummyResponse(200, {"response": "Halo dari ollama"})

        self._install(responder)
        self.assertEqual(self._client().complete("hi"), "Halo dari ollama")
        self.assertEqual(len(self.calls), 2)

    def test_non_text_secondary_response_is_unavailable(self):
        self._install(lambda url: DummyResponse(200, {"response": {"text": "nested"}}))
        with self.assertRaises(OracleUnavailableError):
            self._client(open_webui_url="").complete("hi")

    def test_both_failing_raises(self):
        self._install(lambda url: DummyResponse(500, text="err"))
        with self.assertRaises(OracleUnavailableError):
            self._client().complete("hi")
        self.assertEqual(len(self.calls), 2)

    def test_without_primary_only_secondary_is_called(self):
        self._install(lambda url: DummyResponse(200, {"response": "ok"}))
        self.assertEqual(self._client(open_webui_url="").complete("hi"), "ok")
        self.assertEqual([c[0] for c in self.calls], ["http://ollama:11434/api/generate"])

    def test_retries_connection_errors_before_giving_up(self):
        def responder(url):
            raise requests.exceptions.ConnectionError("refused")

        self._install(responder)
        client = self._client(open_webui_url="", max_retries=1)
        client.retry_backoff_sec = 0
        with self.assertRaises(OracleUnavailableError):
            client.complete("hi")
        self.assertEqual(len(self.calls), 2)


if __name__ == "__main__":
    unittest.main()
