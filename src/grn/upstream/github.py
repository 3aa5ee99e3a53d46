from __future__ import annotations

import urllib.error
from dataclasses import dataclass
from typing import Any, Mapping

from ..http_utils import HttpClient, HttpResponse
from ..models import Repository
from .base import FatalAuthError, ReleaseNotFound, TransientUpstreamError


GITHUB_GRAPHQL_URL = "https://api.github.com/graphql"

LATEST_RELEASE_QUERY = """
query LatestRelease($owner: String!, $name: String!) {
  repository(owner: $owner, name: $name) {
    nameWithOwner
    url
    releases(first: 1, orderBy: {field: CREATED_AT, direction: DESC}) {
      nodes {
        name
        tagName
        url
        publishedAt
      }
    }
  }
}
""".strip()


def _snippet(body: bytes, limit: int = 200) -> str:
    return repr(body[:limit])


@dataclass(slots=True)
class GitHubReleaseClient:
    """
    基于 GitHub GraphQL API 的最新 Release 查询。

    错误映射：
    - 401 -> FatalAuthError
    - 403/429/5xx、网络错误、响应无法解析 -> TransientUpstreamError
    - NOT_FOUND、repository 为 null、没有任何 Release -> ReleaseNotFound
    """

    http: HttpClient
    token: str
    endpoint: str = GITHUB_GRAPHQL_URL

    def _headers(self) -> Mapping[str, str]:
        return {
            "Authorization": f"bearer {self.token}",
            "Accept": "application/json",
        }

    def latest_release(self, owner: str, name: str) -> Repository:
        payload = {"query": LATEST_RELEASE_QUERY, "variables": {"owner": owner, "name": name}}
        try:
            resp = self.http.post_json(self.endpoint, payload, headers=self._headers())
        except (urllib.error.URLError, TimeoutError, OSError) as e:
            raise TransientUpstreamError(f"request failed for {owner}/{name}: {e}") from e

        data = self._decode(resp, owner, name)
        self._raise_for_graphql_errors(data, owner, name)

        repo = (data.get("data") or {}).get("repository")
        if not isinstance(repo, dict):
            raise ReleaseNotFound(f"repository {owner}/{name} not found")

        releases = repo.get("releases") or {}
        nodes = releases.get("nodes") if isinstance(releases, dict) else None
        if not nodes:
            raise ReleaseNotFound(f"repository {owner}/{name} has no releases")

        try:
            return Repository.from_query(repo)
        except ValueError as e:
            raise TransientUpstreamError(f"unexpected response for {owner}/{name}: {e}") from e

    def _decode(self, resp: HttpResponse, owner: str, name: str) -> Mapping[str, Any]:
        if resp.status == 401:
            raise FatalAuthError(f"GitHub rejected credentials: status=401, body={_snippet(resp.body)}")
        if not resp.ok:
            raise TransientUpstreamError(
                f"GitHub query failed for {owner}/{name}: status={resp.status}, body={_snippet(resp.body)}"
            )
        try:
            data = resp.json()
        except (ValueError, UnicodeDecodeError) as e:
            raise TransientUpstreamError(f"GitHub invalid JSON response: {_snippet(resp.body)}") from e
        if not isinstance(data, dict):
            raise TransientUpstreamError(f"GitHub expected object, got {type(data)}")
        return data

    def _raise_for_graphql_errors(self, data: Mapping[str, Any], owner: str, name: str) -> None:
        errors = data.get("errors")
        if not errors or not isinstance(errors, list):
            return
        types = {str(e.get("type") or "") for e in errors if isinstance(e, dict)}
        messages = "; ".join(str(e.get("message") or "") for e in errors if isinstance(e, dict))
        if "NOT_FOUND" in types:
            raise ReleaseNotFound(f"repository {owner}/{name} not found: {messages}")
        raise TransientUpstreamError(
            f"GitHub GraphQL errors for {owner}/{name}: types={','.join(sorted(t for t in types if t)) or '-'} {messages}"
        )

