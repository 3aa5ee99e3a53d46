from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import IO


_LEVEL_ALIASES = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def resolve_log_level(value: str | None) -> int:
    """debug/info/warn/error（大小写不敏感），无法识别时回退到 INFO。"""
    v = (value or "").strip().lower()
    return _LEVEL_ALIASES.get(v, logging.INFO)


class JsonFormatter(logging.Formatter):
    """
    每条日志输出为一行 JSON：ts（UTC）、level、caller、logger、msg，
    有异常时附带 exc。
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname.lower(),
            "caller": f"{record.filename}:{record.lineno}",
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        if record.stack_info:
            entry["stack"] = self.formatStack(record.stack_info)
        return json.dumps(entry, ensure_ascii=False)


def configure_logging(level_name: str | None, *, stream: IO[str] | None = None) -> None:
    """
    安装唯一的 stdout handler（JSON 格式），替换 root logger 上已有的 handler。

    logging 模块自带锁，可以在 Checker / Dispatcher 两个线程里并发使用。
    """
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonFormatter())
    logging.basicConfig(level=resolve_log_level(level_name), handlers=[handler], force=True)
