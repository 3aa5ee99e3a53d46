from .base import FatalAuthError, ReleaseClient, ReleaseNotFound, TransientUpstreamError, UpstreamError
from .github import GitHubReleaseClient

__all__ = [
    "FatalAuthError",
    "GitHubReleaseClient",
    "ReleaseClient",
    "ReleaseNotFound",
    "TransientUpstreamError",
    "UpstreamError",
]
