from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Iterable, Mapping


logger = logging.getLogger(__name__)

# 子串判定：剥掉前导 v 之后，包含任一标记即视为非稳定版本。
NONSTABLE_MARKERS: tuple[str, ...] = ("rc", "alpha", "beta", "pre", "dev", "snapshot")


def parse_rfc3339_datetime(value: str) -> datetime:
    """
    解析常见的 RFC3339/ISO8601 时间串为带 tzinfo 的 UTC datetime。

    兼容：
    - 2026-02-10T12:34:56Z
    - 2026-02-10T12:34:56+00:00
    - 2026-02-10T12:34:56.123Z
    """
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def is_nonstable(tag: str) -> bool:
    """
    版本稳定性分类（纯函数，只依赖 tag 字符串）。

    采用子串规则而不是严格 semver 解析：
    - 去掉一个前导 v/V
    - 大小写不敏感地查找 rc/alpha/beta/pre/dev/snapshot
    例如 v1.1.0-rc.1、2.0.0-beta、1.0.0.dev3 都是非稳定版本。
    """
    t = (tag or "").strip()
    if t[:1] in ("v", "V"):
        t = t[1:]
    t = t.lower()
    return any(marker in t for marker in NONSTABLE_MARKERS)


@dataclass(frozen=True, slots=True)
class Release:
    """
    一次发布的快照，构造后不可变。

    name 为展示用名称（如 v1.4.0），tag 为底层 git tag。
    """

    name: str
    tag: str
    published_at: datetime | None
    url: str

    def is_nonstable(self) -> bool:
        return is_nonstable(self.tag)


@dataclass(frozen=True, slots=True, eq=False)
class Repository:
    """
    被监控的仓库，以及其最新一次 Release。

    仓库身份由 (owner, name) 决定且大小写不敏感：相等与哈希都只看 key()，
    不比较 url 与 release。
    """

    owner: str
    name: str
    url: str
    release: Release

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def key(self) -> tuple[str, str]:
        return (self.owner.casefold(), self.name.casefold())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Repository):
            return NotImplemented
        return self.key() == other.key()

    def __hash__(self) -> int:
        return hash(self.key())

    @classmethod
    def from_query(cls, node: Mapping[str, Any]) -> Repository:
        """
        从上游查询结果构造 Repository。

        node 形如：
        {
          "nameWithOwner": "octocat/hello-world",
          "url": "https://github.com/octocat/hello-world",
          "releases": {"nodes": [{"name": ..., "tagName": ..., "url": ..., "publishedAt": ...}]}
        }
        """
        name_with_owner = str(node.get("nameWithOwner") or "")
        owner, sep, name = name_with_owner.partition("/")
        if not sep or not owner or not name:
            raise ValueError(f"unexpected nameWithOwner: {name_with_owner!r}")

        releases = node.get("releases") or {}
        nodes = releases.get("nodes") if isinstance(releases, dict) else None
        if not isinstance(nodes, list) or not nodes or not isinstance(nodes[0], dict):
            raise ValueError(f"no release node for {name_with_owner}")
        rel = nodes[0]

        tag = str(rel.get("tagName") or "")
        if not tag:
            raise ValueError(f"release without tagName for {name_with_owner}")
        published_s = rel.get("publishedAt")
        published_at = parse_rfc3339_datetime(published_s) if isinstance(published_s, str) and published_s else None

        return cls(
            owner=owner,
            name=name,
            url=str(node.get("url") or f"https://github.com/{name_with_owner}"),
            release=Release(
                name=str(rel.get("name") or tag),
                tag=tag,
                published_at=published_at,
                url=str(rel.get("url") or ""),
            ),
        )


def parse_watch_entry(entry: str) -> tuple[str, str]:
    """
    解析 "owner/name" 形式的监控项，两侧空白会被去掉。
    """
    text = (entry or "").strip()
    if text.count("/") != 1:
        raise ValueError(f"expected owner/name, got {entry!r}")
    owner, name = (part.strip() for part in text.split("/"))
    if not owner or not name:
        raise ValueError(f"expected owner/name, got {entry!r}")
    return owner, name


def parse_watch_spec(entries: Iterable[str]) -> list[tuple[str, str]]:
    """
    解析监控列表：保持首次出现的顺序，大小写不敏感去重，非法项记录 error 后跳过。
    """
    result: list[tuple[str, str]] = []
    seen: set[tuple[str, str]] = set()
    for entry in entries:
        try:
            owner, name = parse_watch_entry(entry)
        except ValueError as e:
            logger.error("invalid repository entry skipped: entry=%r err=%s", entry, e)
            continue
        key = (owner.casefold(), name.casefold())
        if key in seen:
            logger.debug("duplicate repository entry ignored: repository=%s/%s", owner, name)
            continue
        seen.add(key)
        result.append((owner, name))
    return result
