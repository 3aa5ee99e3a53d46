from __future__ import annotations

import argparse
import math
import os
import re
from dataclasses import dataclass
from typing import Mapping, Sequence

from .upstream.github import GITHUB_GRAPHQL_URL


DEFAULT_INTERVAL_SECONDS = 3600.0
DEFAULT_HTTP_TIMEOUT_SECONDS = 20.0
DEFAULT_LOG_LEVEL = "info"

_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}
_TRUE_VALUES = ("1", "true", "yes", "on", "y", "t")
_FALSE_VALUES = ("0", "false", "no", "off", "n", "f", "")


class ConfigError(Exception):
    """
    启动期配置错误，进程以 exit_code 退出：
    - 1：缺少必需凭证 / 没有任何仓库
    - 2：配置值无法解析
    """

    def __init__(self, message: str, *, exit_code: int = 2) -> None:
        super().__init__(message)
        self.exit_code = exit_code


def parse_duration(value: str) -> float:
    """
    解析 Go 风格的时长字符串，返回秒数。

    支持 1h、15m、90s、500ms、1h30m，以及纯数字（按秒计）。
    """
    text = (value or "").strip().lower()
    if not text:
        raise ConfigError("empty duration")
    try:
        seconds = float(text)
    except ValueError:
        pos = 0
        seconds = 0.0
        for m in _DURATION_PART_RE.finditer(text):
            if m.start() != pos:
                break
            seconds += float(m.group(1)) * _DURATION_UNITS[m.group(2)]
            pos = m.end()
        if pos != len(text):
            raise ConfigError(f"invalid duration: {value!r}") from None
    if not math.isfinite(seconds) or seconds <= 0:
        raise ConfigError(f"duration must be positive: {value!r}")
    return seconds


def parse_bool(value: str | None, *, name: str) -> bool:
    v = (value or "").strip().lower()
    if v in _TRUE_VALUES:
        return True
    if v in _FALSE_VALUES:
        return False
    raise ConfigError(f"invalid boolean for {name}: {value!r}")


def _parse_int(value: str | None, *, name: str) -> int:
    v = (value or "").strip()
    if not v:
        return 0
    try:
        return int(v)
    except ValueError:
        raise ConfigError(f"invalid integer for {name}: {value!r}") from None


@dataclass(frozen=True, slots=True)
class SlackConfig:
    """
    Slack incoming webhook 配置；hook_url 非空即启用。
    """

    hook_url: str


@dataclass(frozen=True, slots=True)
class GitLabConfig:
    """
    GitLab issue 配置。

    hostname / api_token / project_id 三者齐全且 project_id > 0 时才启用。
    labels 为逗号分隔的标签列表（可选）。
    """

    hostname: str
    api_token: str
    project_id: int
    labels: str = ""

    @property
    def enabled(self) -> bool:
        return bool(self.hostname and self.api_token and self.project_id > 0)


@dataclass(frozen=True, slots=True)
class AppConfig:
    """
    应用总配置，启动时读取一次，此后只读。

    interval_seconds:
      - 轮询间隔，默认 1 小时
    repositories:
      - "owner/name" 列表，原样保留顺序，去重与校验由 Checker 完成
    """

    github_token: str
    repositories: tuple[str, ...]
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS
    log_level: str = DEFAULT_LOG_LEVEL
    ignore_nonstable: bool = False
    github_graphql_url: str = GITHUB_GRAPHQL_URL
    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    slack: SlackConfig | None = None
    gitlab: GitLabConfig | None = None


def build_arg_parser(environ: Mapping[str, str] | None = None) -> argparse.ArgumentParser:
    """
    命令行参数；每个选项的默认值取自同名环境变量（环境变量名为准）。
    """
    env = os.environ if environ is None else environ
    p = argparse.ArgumentParser(
        prog="github-releases-notifier",
        description="Watch GitHub repositories and notify Slack / GitLab about new releases",
    )
    p.add_argument("repositories", nargs="*", metavar="OWNER/NAME", help="Repository to watch")
    p.add_argument(
        "-r",
        "--repository",
        dest="repository_flags",
        action="append",
        default=[],
        metavar="OWNER/NAME",
        help="Repository to watch (repeatable)",
    )
    p.add_argument("--github-token", default=env.get("GITHUB_TOKEN"), help="GitHub token [env GITHUB_TOKEN]")
    p.add_argument(
        "--github-graphql-url",
        default=env.get("GITHUB_GRAPHQL_URL") or GITHUB_GRAPHQL_URL,
        help="GitHub GraphQL endpoint [env GITHUB_GRAPHQL_URL]",
    )
    p.add_argument("--gitlab-api-token", default=env.get("GITLAB_API_TOKEN"), help="[env GITLAB_API_TOKEN]")
    p.add_argument("--gitlab-hostname", default=env.get("GITLAB_HOSTNAME"), help="[env GITLAB_HOSTNAME]")
    p.add_argument("--gitlab-project-id", default=env.get("GITLAB_PROJECT_ID"), help="[env GITLAB_PROJECT_ID]")
    p.add_argument("--gitlab-labels", default=env.get("GITLAB_LABELS"), help="Comma separated [env GITLAB_LABELS]")
    p.add_argument("--slack-hook", default=env.get("SLACK_HOOK"), help="Slack incoming webhook URL [env SLACK_HOOK]")
    p.add_argument(
        "--interval",
        default=env.get("INTERVAL") or "1h",
        help="Poll interval, e.g. 1h, 15m [env INTERVAL, default 1h]",
    )
    p.add_argument(
        "--log-level",
        default=env.get("LOG_LEVEL") or DEFAULT_LOG_LEVEL,
        help="debug/info/warn/error [env LOG_LEVEL, default info]",
    )
    p.add_argument(
        "--ignore-nonstable",
        action="store_const",
        const="true",
        default=env.get("IGNORE_NONSTABLE"),
        help="Do not notify about pre-release versions [env IGNORE_NONSTABLE]",
    )
    p.add_argument(
        "--http-timeout",
        default=env.get("HTTP_TIMEOUT") or "20s",
        help="Timeout for each HTTP request [env HTTP_TIMEOUT, default 20s]",
    )
    return p


def load_config(argv: Sequence[str] | None = None, environ: Mapping[str, str] | None = None) -> AppConfig:
    """
    解析命令行与环境变量为 AppConfig。

    argparse 自身的用法错误会以 SystemExit(2) 退出；其余问题抛 ConfigError。
    """
    args = build_arg_parser(environ).parse_intermixed_args(argv)

    repositories = tuple(r for r in [*args.repository_flags, *args.repositories] if r and r.strip())
    interval_seconds = parse_duration(args.interval)
    http_timeout_seconds = parse_duration(args.http_timeout)
    ignore_nonstable = parse_bool(args.ignore_nonstable, name="IGNORE_NONSTABLE")
    project_id = _parse_int(args.gitlab_project_id, name="GITLAB_PROJECT_ID")

    github_token = (args.github_token or "").strip()
    if not github_token:
        raise ConfigError("GITHUB_TOKEN is required", exit_code=1)
    if not repositories:
        raise ConfigError("no repositories to watch", exit_code=1)

    slack_hook = (args.slack_hook or "").strip()
    gitlab = GitLabConfig(
        hostname=(args.gitlab_hostname or "").strip(),
        api_token=(args.gitlab_api_token or "").strip(),
        project_id=project_id,
        labels=(args.gitlab_labels or "").strip(),
    )

    return AppConfig(
        github_token=github_token,
        repositories=repositories,
        interval_seconds=interval_seconds,
        log_level=(args.log_level or DEFAULT_LOG_LEVEL).strip().lower(),
        ignore_nonstable=ignore_nonstable,
        github_graphql_url=(args.github_graphql_url or GITHUB_GRAPHQL_URL).strip(),
        http_timeout_seconds=http_timeout_seconds,
        slack=SlackConfig(hook_url=slack_hook) if slack_hook else None,
        gitlab=gitlab if (gitlab.hostname or gitlab.api_token or gitlab.project_id) else None,
    )
