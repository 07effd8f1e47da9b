"""Source adapters for GitHub and npm."""

from pkgscore.adapters.base import BaseAdapter, classify_url, parse_ssh_vcs_url
from pkgscore.adapters.github import GitHubAdapter
from pkgscore.adapters.npm import NpmAdapter
from pkgscore.adapters.resolver import resolve_github_adapter

__all__ = [
    "BaseAdapter",
    "GitHubAdapter",
    "NpmAdapter",
    "classify_url",
    "parse_ssh_vcs_url",
    "resolve_github_adapter",
]
