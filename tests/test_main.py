import os
import signal
from dataclasses import dataclass, field

import pytest

from grn import main as main_mod


_ENV_NAMES = (
    "GITHUB_TOKEN",
    "GITLAB_API_TOKEN",
    "GITLAB_HOSTNAME",
    "GITLAB_PROJECT_ID",
    "GITLAB_LABELS",
    "SLACK_HOOK",
    "INTERVAL",
    "LOG_LEVEL",
    "IGNORE_NONSTABLE",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path):  # noqa: ANN001, ANN201
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(main_mod, "_install_signal_handlers", lambda stop, received: None)
    monkeypatch.setattr(main_mod, "configure_logging", lambda *a, **k: None)
    return tmp_path


@dataclass
class _FakeDispatcher:
    sinks: tuple = ()


@dataclass
class _FakeRunner:
    dispatcher: _FakeDispatcher = field(default_factory=_FakeDispatcher)
    ran: bool = False

    def run(self, stop) -> None:  # noqa: ANN001
        self.ran = True
        stop.set()


def test_missing_token_exits_1(clean_env) -> None:  # noqa: ANN001, ARG001
    assert main_mod.main(["octocat/hello-world"]) == 1


def test_no_repositories_exits_1(clean_env, monkeypatch: pytest.MonkeyPatch) -> None:  # noqa: ANN001, ARG001
    monkeypatch.setenv("GITHUB_TOKEN", "t")
    assert main_mod.main([]) == 1


def test_malformed_interval_exits_2(clean_env, monkeypatch: pytest.MonkeyPatch) -> None:  # noqa: ANN001, ARG001
    monkeypatch.setenv("GITHUB_TOKEN", "t")
    monkeypatch.setenv("INTERVAL", "often")
    assert main_mod.main(["a/b"]) == 2


def test_dotenv_file_seeds_environment(clean_env, monkeypatch: pytest.MonkeyPatch) -> None:  # noqa: ANN001
    (clean_env / ".env").write_text("GITHUB_TOKEN=from-dotenv\nINTERVAL=10m\n", encoding="utf-8")
    captured = {}
    runner = _FakeRunner()

    def _build(config):  # noqa: ANN001, ANN202
        captured["config"] = config
        return runner

    monkeypatch.setattr(main_mod, "build_runner", _build)
    try:
        code = main_mod.main(["a/b"])
    finally:
        os.environ.pop("GITHUB_TOKEN", None)
        os.environ.pop("INTERVAL", None)

    assert runner.ran is True
    assert captured["config"].github_token == "from-dotenv"
    assert captured["config"].interval_seconds == 600
    assert code == 128 + int(signal.SIGTERM)
