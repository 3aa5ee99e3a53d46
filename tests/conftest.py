import os
import sys
from datetime import UTC, datetime

import pytest


PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_DIR = os.path.join(PROJECT_ROOT, "src")

if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)


from grn.models import Release, Repository  # noqa: E402


def make_repository(tag: str, owner: str = "octocat", name: str = "hello-world", release_name: str | None = None) -> Repository:
    return Repository(
        owner=owner,
        name=name,
        url=f"https://github.com/{owner}/{name}",
        release=Release(
            name=release_name or tag,
            tag=tag,
            published_at=datetime(2026, 2, 10, 12, 0, tzinfo=UTC),
            url=f"https://github.com/{owner}/{name}/releases/tag/{tag}",
        ),
    )


@pytest.fixture
def repository_factory():  # noqa: ANN201
    return make_repository
