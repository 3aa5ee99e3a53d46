from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Iterable

from .models import Repository, parse_watch_spec
from .upstream.base import FatalAuthError, ReleaseClient, ReleaseNotFound, TransientUpstreamError


logger = logging.getLogger(__name__)

# put 阻塞期间检查 stop 的周期（秒）。
_PUBLISH_POLL_SECONDS = 0.5


@dataclass(slots=True)
class TickReport:
    duration_ms: int = 0
    polled: int = 0
    primed: int = 0
    unchanged: int = 0
    emitted: int = 0
    repeated: int = 0
    not_found: int = 0
    errors: int = 0


@dataclass(slots=True)
class Checker:
    """
    轮询引擎：把幂等的“查询最新 Release”转换为边沿触发的“新 Release”事件流。

    每个仓库的状态记录在 _seen（坐标 -> 最近一次观测到的 tag）：
    - 首次观测只记录基线，不发事件（priming）
    - tag 与记录相同：无动作
    - tag 变化：先更新 _seen，再把 Repository 放入输出队列
    - tag 变回曾经记录或发出过的值（Release 被删后重建、上游在两个 tag 间抖动）：
      只更新 _seen，不再发事件；同一 (owner, name, tag) 在进程生命周期内最多发一次
    - NotFound / 错误：只记日志，不修改 _seen

    _seen 只由轮询线程读写，不对外暴露。
    """

    client: ReleaseClient
    _seen: dict[tuple[str, str], str] = field(default_factory=dict, init=False, repr=False)
    _known_tags: dict[tuple[str, str], set[str]] = field(default_factory=dict, init=False, repr=False)

    def seen(self, owner: str, name: str) -> str | None:
        """只读访问基线 tag（测试与排查用）。"""
        return self._seen.get((owner.casefold(), name.casefold()))

    def run(
        self,
        interval: float,
        watch_spec: Iterable[str],
        out: queue.Queue[Repository],
        stop: threading.Event | None = None,
    ) -> None:
        """
        阻塞运行：启动后立即做一次基线轮询，之后每 interval 秒轮询一次。

        stop 未被 set 时永不返回；单轮内按监控列表顺序串行查询，
        因此一轮耗时上限约为 len(watch_spec) * 单次查询延迟。
        """
        stop = stop or threading.Event()
        repositories = parse_watch_spec(watch_spec)
        if not repositories:
            logger.error("checker has no valid repositories to watch")
        logger.info(
            "checker started: repositories=%d interval_seconds=%g",
            len(repositories),
            interval,
        )

        tick_id = 0
        while not stop.is_set():
            tick_id += 1
            try:
                report = self.tick(repositories, out, stop)
            except Exception:  # noqa: BLE001
                logger.exception("tick crashed: id=%d", tick_id)
            else:
                logger.info(
                    "tick summary: id=%d duration_ms=%d polled=%d primed=%d unchanged=%d emitted=%d repeated=%d not_found=%d errors=%d",
                    tick_id,
                    report.duration_ms,
                    report.polled,
                    report.primed,
                    report.unchanged,
                    report.emitted,
                    report.repeated,
                    report.not_found,
                    report.errors,
                )
            if stop.wait(max(0.0, interval)):
                break
        logger.info("checker stopped")

    def tick(
        self,
        repositories: Iterable[tuple[str, str]],
        out: queue.Queue[Repository],
        stop: threading.Event | None = None,
    ) -> TickReport:
        """
        执行一轮轮询（单次），按顺序处理每个仓库。
        """
        start_t = time.monotonic()
        report = TickReport()
        for owner, name in repositories:
            if stop is not None and stop.is_set():
                break
            report.polled += 1
            self._poll_one(owner, name, out, stop, report)
        report.duration_ms = int((time.monotonic() - start_t) * 1000)
        return report

    def _poll_one(
        self,
        owner: str,
        name: str,
        out: queue.Queue[Repository],
        stop: threading.Event | None,
        report: TickReport,
    ) -> None:
        key = (owner.casefold(), name.casefold())
        try:
            repository = self.client.latest_release(owner, name)
        except ReleaseNotFound as e:
            report.not_found += 1
            logger.debug("no release found: repository=%s/%s err=%s", owner, name, e)
            return
        except TransientUpstreamError as e:
            report.errors += 1
            logger.warning("failed to query latest release: repository=%s/%s err=%s", owner, name, e)
            return
        except FatalAuthError as e:
            report.errors += 1
            logger.error("upstream rejected credentials: repository=%s/%s err=%s", owner, name, e)
            return
        except Exception:  # noqa: BLE001
            report.errors += 1
            logger.exception("release query crashed: repository=%s/%s", owner, name)
            return

        tag = repository.release.tag
        previous = self._seen.get(key)
        known = self._known_tags.setdefault(key, set())
        if previous is None:
            self._seen[key] = tag
            known.add(tag)
            report.primed += 1
            logger.debug("baseline recorded: repository=%s/%s tag=%s", owner, name, tag)
            return
        if previous == tag:
            report.unchanged += 1
            return

        self._seen[key] = tag
        if tag in known:
            report.repeated += 1
            logger.debug(
                "release tag reappeared, not emitting again: repository=%s previous_tag=%s tag=%s",
                repository.full_name,
                previous,
                tag,
            )
            return
        known.add(tag)
        report.emitted += 1
        logger.info(
            "new release detected: repository=%s previous_tag=%s tag=%s url=%s",
            repository.full_name,
            previous,
            tag,
            repository.release.url,
        )
        self._publish(repository, out, stop)

    def _publish(
        self,
        repository: Repository,
        out: queue.Queue[Repository],
        stop: threading.Event | None,
    ) -> None:
        # 队列满时阻塞（背压），但仍响应 stop，避免消费者卡死时无法退出。
        while True:
            try:
                out.put(repository, timeout=_PUBLISH_POLL_SECONDS)
                return
            except queue.Full:
                if stop is not None and stop.is_set():
                    logger.warning(
                        "release dropped on shutdown: repository=%s tag=%s",
                        repository.full_name,
                        repository.release.tag,
                    )
                    return
