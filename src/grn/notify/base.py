from __future__ import annotations

from typing import Protocol

from ..models import Repository


class SinkError(Exception):
    """投递失败（网络错误或服务端返回非成功），对 Dispatcher 来说是不透明的。"""


class Sink(Protocol):
    """
    通知接口：把一次新 Release 投递到某个下游渠道。

    v0 约定：
    - send 失败抛 SinkError，由 Dispatcher 统一捕获并记录
    - name() 用于日志标注
    - sink 无状态，每次 send 只发一个请求，不重试
    """

    def name(self) -> str: ...

    def send(self, repository: Repository) -> None: ...
