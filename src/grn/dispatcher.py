from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Sequence

from .models import Repository
from .notify.base import Sink, SinkError


logger = logging.getLogger(__name__)

# get 阻塞期间检查 stop 的周期（秒）。
_RECEIVE_POLL_SECONDS = 0.5


@dataclass(slots=True)
class Dispatcher:
    """
    消费 Checker 的事件流，按固定顺序投递给所有启用的 sink。

    策略：
    - ignore_nonstable 打开时，非稳定版本直接丢弃，不调用任何 sink
    - 某个 sink 失败后跳过该事件剩余的 sink（first-failure-stops），继续处理下一个事件
    - 不做去重，去重由 Checker 负责
    """

    sinks: Sequence[Sink]
    ignore_nonstable: bool = False

    def dispatch(self, repository: Repository) -> bool:
        """
        投递单个事件；全部 sink 成功（或被过滤/无 sink）返回 True。
        """
        release = repository.release
        if self.ignore_nonstable and release.is_nonstable():
            logger.debug(
                "not notifying about non-stable version: repository=%s version=%s",
                repository.full_name,
                release.name,
            )
            return True

        for sink in self.sinks:
            sink_name = sink.name()
            try:
                sink.send(repository)
            except SinkError as e:
                logger.warning(
                    "failed to send release to sink: sink=%s repository=%s release=%s err=%s",
                    sink_name,
                    repository.full_name,
                    release.name,
                    e,
                )
                return False
            except Exception:  # noqa: BLE001
                logger.exception(
                    "sink crashed: sink=%s sink_type=%s repository=%s release=%s",
                    sink_name,
                    type(sink).__name__,
                    repository.full_name,
                    release.name,
                )
                return False
            logger.debug(
                "release delivered: sink=%s repository=%s release=%s",
                sink_name,
                repository.full_name,
                release.name,
            )
        return True

    def run(self, releases: queue.Queue[Repository], stop: threading.Event | None = None) -> None:
        """
        阻塞消费队列，直到 stop 被 set。
        """
        stop = stop or threading.Event()
        logger.info("waiting for new releases")
        while not stop.is_set():
            try:
                repository = releases.get(timeout=_RECEIVE_POLL_SECONDS)
            except queue.Empty:
                continue
            try:
                self.dispatch(repository)
            except Exception:  # noqa: BLE001
                logger.exception("dispatch crashed: repository=%s", repository.full_name)
            finally:
                releases.task_done()
        logger.info("dispatcher stopped")
