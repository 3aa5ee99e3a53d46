from __future__ import annotations

import logging
import signal
import sys
import threading
from pathlib import Path

from dotenv import load_dotenv

from .config import ConfigError, load_config
from .logging_utils import configure_logging
from .runner import Runner, build_runner


def _sinks_summary(runner: Runner) -> str:
    parts = [f"{type(s).__name__}({s.name()})" for s in runner.dispatcher.sinks]
    return "; ".join(parts) if parts else "<none>"


def _install_signal_handlers(stop: threading.Event, received: list[int]) -> None:
    def _handle(signum, _frame) -> None:  # noqa: ANN001
        received.append(signum)
        stop.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, _handle)


def main(argv: list[str] | None = None) -> int:
    # 工作目录下的 .env 只用于补充环境变量，不覆盖已有值；文件不存在不算错误。
    load_dotenv(Path.cwd() / ".env", override=False)

    try:
        config = load_config(argv)
    except ConfigError as e:
        configure_logging("info")
        logging.getLogger("grn").error("invalid configuration: %s", e)
        return e.exit_code

    configure_logging(config.log_level)
    logger = logging.getLogger("grn")

    runner = build_runner(config)
    logger.info(
        "start: repositories=%s interval_seconds=%g ignore_nonstable=%s",
        ",".join(config.repositories),
        config.interval_seconds,
        config.ignore_nonstable,
    )
    logger.info("sinks: %s", _sinks_summary(runner))
    if not runner.dispatcher.sinks:
        logger.warning("no sinks configured; new releases will only be logged")

    stop = threading.Event()
    received: list[int] = []
    _install_signal_handlers(stop, received)

    runner.run(stop)

    signum = received[0] if received else signal.SIGTERM
    logger.info("shutdown: signal=%s", signal.Signals(signum).name)
    return 128 + int(signum)


if __name__ == "__main__":
    sys.exit(main())
