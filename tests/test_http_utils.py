import http.client
import io
import json
import os
import sys
import unittest
import urllib.error
from email.message import Message
from unittest import mock


sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))


from grn.http_utils import HttpClient, HttpResponse  # noqa: E402


class _FakeResponse:
    """
    模拟 urllib.request.urlopen 返回的 response 对象（支持 context manager）。
    """

    def __init__(self, *, status: int, body: bytes, url: str) -> None:
        self.status = status
        self._body = body
        self._url = url
        self.headers = Message()
        self.headers["Content-Type"] = "application/json"

    def read(self) -> bytes:
        return self._body

    def geturl(self) -> str:
        return self._url

    def __enter__(self) -> "_FakeResponse":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        return None


class TestHttpClient(unittest.TestCase):
    def test_post_json_sends_body_and_headers(self) -> None:
        captured = {}

        def _fake_urlopen(req, **kwargs):  # noqa: ANN001
            captured["req"] = req
            captured["kwargs"] = kwargs
            return _FakeResponse(status=200, body=b'{"ok": true}', url=req.full_url)

        with mock.patch("urllib.request.urlopen", _fake_urlopen):
            resp = HttpClient(timeout_seconds=3).post_json(
                "https://example.com/hook", {"text": "héllo"}, headers={"X-Token": "t"}
            )

        req = captured["req"]
        self.assertEqual(req.get_method(), "POST")
        self.assertEqual(json.loads(req.data.decode("utf-8")), {"text": "héllo"})
        self.assertEqual(req.get_header("Content-type"), "application/json; charset=utf-8")
        self.assertEqual(req.get_header("X-token"), "t")
        self.assertIn("github-releases-notifier", req.get_header("User-agent"))
        self.assertEqual(captured["kwargs"]["timeout"], 3)
        self.assertIn("context", captured["kwargs"])
        self.assertTrue(resp.ok)
        self.assertEqual(resp.json(), {"ok": True})

    def test_http_error_is_returned_as_response(self) -> None:
        def _fake_urlopen(req, **kwargs):  # noqa: ANN001, ARG001
            raise urllib.error.HTTPError(req.full_url, 502, "Bad Gateway", Message(), io.BytesIO(b"upstream down"))

        with mock.patch("urllib.request.urlopen", _fake_urlopen):
            resp = HttpClient().request("GET", "https://example.com/x")

        self.assertEqual(resp.status, 502)
        self.assertFalse(resp.ok)
        self.assertEqual(resp.text(), "upstream down")

    def test_network_error_propagates(self) -> None:
        def _fake_urlopen(req, **kwargs):  # noqa: ANN001, ARG001
            raise urllib.error.URLError("connection refused")

        with mock.patch("urllib.request.urlopen", _fake_urlopen):
            with self.assertRaises(urllib.error.URLError):
                HttpClient().request("GET", "https://example.com/x")


    def test_truncated_body_is_raised_as_url_error(self) -> None:
        class _TruncatedResponse(_FakeResponse):
            def read(self) -> bytes:
                raise http.client.IncompleteRead(b"{", 10)

        def _fake_urlopen(req, **kwargs):  # noqa: ANN001, ARG001
            return _TruncatedResponse(status=200, body=b"", url=req.full_url)

        with mock.patch("urllib.request.urlopen", _fake_urlopen):
            with self.assertRaises(urllib.error.URLError) as ctx:
                HttpClient().post_json("https://example.com/hook", {})

        self.assertIsInstance(ctx.exception.__cause__, http.client.IncompleteRead)

    def test_bad_status_line_is_raised_as_url_error(self) -> None:
        def _fake_urlopen(req, **kwargs):  # noqa: ANN001, ARG001
            raise http.client.BadStatusLine("garbage")

        with mock.patch("urllib.request.urlopen", _fake_urlopen):
            with self.assertRaises(urllib.error.URLError):
                HttpClient().request("GET", "https://example.com/x")


class TestHttpResponse(unittest.TestCase):
    def test_ok_range(self) -> None:
        self.assertTrue(HttpResponse(status=204, url="u", headers={}, body=b"").ok)
        self.assertFalse(HttpResponse(status=301, url="u", headers={}, body=b"").ok)
        self.assertFalse(HttpResponse(status=404, url="u", headers={}, body=b"").ok)
