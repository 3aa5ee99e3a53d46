from .base import Sink, SinkError
from .formatter import format_issue_description, format_issue_title, format_slack_text
from .gitlab import GitLabSink
from .slack import SlackSink

__all__ = [
    "GitLabSink",
    "Sink",
    "SinkError",
    "SlackSink",
    "format_issue_description",
    "format_issue_title",
    "format_slack_text",
]
