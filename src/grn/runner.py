from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass

from .checker import Checker
from .config import AppConfig
from .dispatcher import Dispatcher
from .http_utils import HttpClient
from .models import Repository, parse_watch_spec
from .notify.base import Sink
from .notify.gitlab import GitLabSink
from .notify.slack import SlackSink
from .upstream.github import GitHubReleaseClient


logger = logging.getLogger(__name__)

# 停止时等待轮询线程退出的上限（秒）；轮询线程是 daemon，超时后随进程结束。
_CHECKER_JOIN_TIMEOUT_SECONDS = 5.0


@dataclass(slots=True)
class Runner:
    """
    进程内的两条执行线：
    - 后台线程：Checker 轮询，把新 Release 放入有界队列
    - 调用线程（主线程）：Dispatcher 消费队列并投递到各个 sink

    队列有界，sink 卡住时 Checker 会在 put 上阻塞，内存不会无限增长。
    """

    checker: Checker
    dispatcher: Dispatcher
    repositories: tuple[str, ...]
    interval_seconds: float
    queue_size: int = 1

    def run(self, stop: threading.Event) -> None:
        releases: queue.Queue[Repository] = queue.Queue(maxsize=max(1, self.queue_size))
        checker_thread = threading.Thread(
            target=self.checker.run,
            args=(self.interval_seconds, self.repositories, releases, stop),
            name="checker",
            daemon=True,
        )
        checker_thread.start()
        try:
            self.dispatcher.run(releases, stop)
        finally:
            stop.set()
            checker_thread.join(timeout=_CHECKER_JOIN_TIMEOUT_SECONDS)
            if checker_thread.is_alive():
                logger.warning("checker still busy on shutdown; abandoning in-flight poll")


def build_sinks(config: AppConfig, http: HttpClient) -> tuple[Sink, ...]:
    """
    按固定顺序组装启用的 sink：Slack 在前，GitLab 在后。
    """
    sinks: list[Sink] = []
    if config.slack and config.slack.hook_url:
        sinks.append(SlackSink(hook_url=config.slack.hook_url, http=http))

    if config.gitlab:
        if config.gitlab.enabled:
            sinks.append(
                GitLabSink(
                    hostname=config.gitlab.hostname,
                    api_token=config.gitlab.api_token,
                    project_id=config.gitlab.project_id,
                    labels=config.gitlab.labels,
                    http=http,
                )
            )
        else:
            logger.warning(
                "gitlab sink disabled: hostname, api token and a positive project id are all required (project_id=%d)",
                config.gitlab.project_id,
            )
    return tuple(sinks)


def build_runner(config: AppConfig) -> Runner:
    """
    根据配置构建可运行的 Runner。

    设计取舍：
    - 统一在这里做“配置 -> 实例”的装配，Checker / Dispatcher 内只关注流程
    - 监控列表在这里解析一次（非法项只报一次 error，重复项去掉），
      队列容量取解析后的仓库数，一轮内检测到的所有变化都能放进去而不阻塞
    """
    watched = tuple(f"{owner}/{name}" for owner, name in parse_watch_spec(config.repositories))
    http = HttpClient(timeout_seconds=config.http_timeout_seconds)
    client = GitHubReleaseClient(http=http, token=config.github_token, endpoint=config.github_graphql_url)

    return Runner(
        checker=Checker(client=client),
        dispatcher=Dispatcher(sinks=build_sinks(config, http), ignore_nonstable=config.ignore_nonstable),
        repositories=watched,
        interval_seconds=config.interval_seconds,
        queue_size=len(watched),
    )
