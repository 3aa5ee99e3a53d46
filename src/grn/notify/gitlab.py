from __future__ import annotations

import logging
import urllib.error
import urllib.parse
from dataclasses import dataclass

from ..http_utils import HttpClient
from ..models import Repository
from .base import Sink, SinkError
from .formatter import format_issue_description, format_issue_title


logger = logging.getLogger(__name__)


def normalize_labels(labels: str | None) -> str:
    """逗号分隔的标签：去掉空白与空项后重新拼接。"""
    parts = [p.strip() for p in (labels or "").split(",")]
    return ",".join(p for p in parts if p)


@dataclass(slots=True)
class GitLabSink(Sink):
    """
    GitLab issue 通知：每个新 Release 在指定项目里创建一个 issue。

    成功条件：2xx 且响应中能解析出 issue 编号（iid，退而求其次 id）。
    """

    hostname: str
    api_token: str
    project_id: int
    http: HttpClient
    labels: str = ""

    def name(self) -> str:
        return "gitlab"

    def issues_url(self) -> str:
        host = self.hostname.strip().rstrip("/")
        if "://" in host:
            host = urllib.parse.urlparse(host).netloc or host
        return f"https://{host}/api/v4/projects/{self.project_id}/issues"

    def send(self, repository: Repository) -> None:
        url = self.issues_url()
        try:
            resp = self.http.post_json(
                url,
                self._build_payload(repository),
                headers={"PRIVATE-TOKEN": self.api_token},
            )
        except (urllib.error.URLError, TimeoutError, OSError) as e:
            raise SinkError(f"GitLab request failed: {e}") from e
        if not resp.ok:
            raise SinkError(f"GitLab create issue failed: status={resp.status}, body={resp.body[:200]!r}")

        try:
            data = resp.json()
        except (ValueError, UnicodeDecodeError) as e:
            raise SinkError(f"GitLab invalid JSON response: {resp.body[:200]!r}") from e

        issue_id = self._issue_id(data)
        if issue_id is None:
            raise SinkError(f"GitLab response without issue id: {resp.body[:200]!r}")
        logger.info(
            "gitlab issue created: project_id=%d iid=%d repository=%s release=%s",
            self.project_id,
            issue_id,
            repository.full_name,
            repository.release.name,
        )

    def _build_payload(self, repository: Repository) -> dict[str, object]:
        return {
            "title": format_issue_title(repository),
            "description": format_issue_description(repository),
            "labels": normalize_labels(self.labels),
        }

    @staticmethod
    def _issue_id(data: object) -> int | None:
        if not isinstance(data, dict):
            return None
        for key in ("iid", "id"):
            v = data.get(key)
            if isinstance(v, bool):
                continue
            if isinstance(v, int):
                return v
            if isinstance(v, str) and v.isdigit():
                return int(v)
        return None
