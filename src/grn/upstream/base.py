from __future__ import annotations

from typing import Protocol

from ..models import Repository


class UpstreamError(Exception):
    """上游查询失败的基类。"""


class ReleaseNotFound(UpstreamError):
    """仓库不存在，或者仓库存在但从未发布过 Release。"""


class TransientUpstreamError(UpstreamError):
    """网络错误、限流、5xx 等暂时性失败，下一轮轮询会自动重试。"""


class FatalAuthError(UpstreamError):
    """凭证被拒绝；需要修正配置后重启进程。"""


class ReleaseClient(Protocol):
    """
    上游适配器接口：给定仓库坐标，返回带最新 Release 的 Repository。

    v0 约定：
    - 每次调用对应一次网络往返，不做缓存
    - 失败通过 UpstreamError 的子类表达，由 Checker 统一处理
    """

    def latest_release(self, owner: str, name: str) -> Repository: ...
