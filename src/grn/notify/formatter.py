from __future__ import annotations

from ..models import Repository


def _published(repository: Repository) -> str:
    published_at = repository.release.published_at
    return published_at.strftime("%Y-%m-%d %H:%M:%S UTC") if published_at else "-"


def format_slack_text(repository: Repository) -> str:
    """
    Slack 消息正文，使用 <url|text> 链接语法。
    """
    release = repository.release
    repo_link = f"<{repository.url}|{repository.full_name}>"
    release_link = f"<{release.url}|{release.name}>" if release.url else release.name
    return f"{repo_link}: {release_link} released\npublished: {_published(repository)}"


def format_issue_title(repository: Repository) -> str:
    return f"New release: {repository.full_name} {repository.release.name}"


def format_issue_description(repository: Repository) -> str:
    """
    GitLab issue 描述（Markdown）。
    """
    release = repository.release
    lines = [
        f"[{repository.full_name}]({repository.url}) published a new release.",
        "",
        f"- release: [{release.name}]({release.url})" if release.url else f"- release: {release.name}",
        f"- tag: `{release.tag}`",
        f"- published: {_published(repository)}",
    ]
    return "\n".join(lines)
