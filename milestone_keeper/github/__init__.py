"""GitHub collaborator for Milestone Keeper."""

from milestone_keeper.github.client import GitHubAPIError, GitHubClient

__all__ = [
    "GitHubAPIError",
    "GitHubClient",
]
