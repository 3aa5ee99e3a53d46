from __future__ import annotations

import urllib.error
from dataclasses import dataclass

from ..http_utils import HttpClient
from ..models import Repository
from .base import Sink, SinkError
from .formatter import format_slack_text


@dataclass(slots=True)
class SlackSink(Sink):
    """
    Slack incoming webhook 通知。

    说明：
    - POST JSON：username/icon_emoji/text
    - 仅 2xx 视为成功，不重试
    """

    hook_url: str
    http: HttpClient
    username: str = "GitHub Releases"
    icon_emoji: str = ":github:"

    def name(self) -> str:
        return "slack"

    def send(self, repository: Repository) -> None:
        payload = self._build_payload(repository)
        try:
            resp = self.http.post_json(self.hook_url, payload)
        except (urllib.error.URLError, TimeoutError, OSError) as e:
            raise SinkError(f"Slack webhook request failed: {e}") from e
        if not resp.ok:
            raise SinkError(f"Slack webhook failed: status={resp.status}, body={resp.body[:200]!r}")

    def _build_payload(self, repository: Repository) -> dict[str, object]:
        return {
            "username": self.username,
            "icon_emoji": self.icon_emoji,
            "text": format_slack_text(repository),
        }
