"""
GitHub Releases Notifier (grn)

轮询一组 GitHub 仓库的最新 Release，检测到新版本时通知到 Slack / GitLab。
数据流：Checker -> 有界队列 -> Dispatcher -> [SlackSink, GitLabSink]
"""

from .models import Release, Repository, is_nonstable

__all__ = [
    "Release",
    "Repository",
    "is_nonstable",
]
