from __future__ import annotations

import http.client
import json
import ssl
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any, Mapping


DEFAULT_USER_AGENT = "github-releases-notifier/0"


@dataclass(frozen=True, slots=True)
class HttpResponse:
    status: int
    url: str
    headers: Mapping[str, str]
    body: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def text(self, encoding: str = "utf-8") -> str:
        return self.body.decode(encoding, errors="replace")

    def json(self) -> Any:
        return json.loads(self.body.decode("utf-8"))


class HttpClient:
    """
    轻量 HTTP 客户端（仅依赖标准库），上游查询与各个 sink 共用。

    约定：
    - 每次调用只发一次请求，不做重试；重试节奏由 Checker 的轮询间隔决定
    - 非 2xx 不抛异常，而是原样返回 HttpResponse，由调用方判断成功与否
    - 网络错误 / 超时以 urllib.error.URLError / TimeoutError 形式向上抛出；
      读响应时的 http.client.HTTPException（IncompleteRead 等）也包装成 URLError
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = 20.0,
        user_agent: str = DEFAULT_USER_AGENT,
        verify_ssl: bool = True,
    ) -> None:
        self._timeout_seconds = timeout_seconds
        self._user_agent = user_agent
        self._ssl_context = ssl.create_default_context() if verify_ssl else ssl._create_unverified_context()

    def post_json(self, url: str, payload: Any, *, headers: Mapping[str, str] | None = None) -> HttpResponse:
        data = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        request_headers = {
            "Content-Type": "application/json; charset=utf-8",
            "Accept": "application/json",
        }
        if headers:
            request_headers.update(dict(headers))
        return self.request("POST", url, headers=request_headers, data=data)

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        data: bytes | None = None,
    ) -> HttpResponse:
        request_headers = {"User-Agent": self._user_agent}
        if headers:
            request_headers.update(dict(headers))

        req = urllib.request.Request(url=url, data=data, headers=request_headers, method=method)
        try:
            with urllib.request.urlopen(req, timeout=self._timeout_seconds, context=self._ssl_context) as resp:  # noqa: S310
                return HttpResponse(
                    status=getattr(resp, "status", 200),
                    url=resp.geturl() if hasattr(resp, "geturl") else url,
                    headers={k: v for k, v in resp.headers.items()} if hasattr(resp, "headers") else {},
                    body=resp.read(),
                )
        except urllib.error.HTTPError as e:
            # urllib 对 >= 400 直接抛 HTTPError，这里转换回普通响应。
            try:
                body = e.read()
            except (OSError, http.client.HTTPException):
                body = b""
            return HttpResponse(
                status=e.code,
                url=e.geturl() or url,
                headers={k: v for k, v in e.headers.items()} if e.headers else {},
                body=body or b"",
            )
        except http.client.HTTPException as e:
            raise urllib.error.URLError(f"malformed HTTP response: {e!r}") from e
