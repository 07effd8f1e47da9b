"""Link an npm package to the GitHub repository it declares."""

import logging

from pkgscore.adapters.base import GITHUB_HOST, BaseAdapter, classify_url, parse_ssh_vcs_url
from pkgscore.adapters.github import GitHubAdapter
from pkgscore.adapters.npm import NpmAdapter
from pkgscore.models.schemas import RepositoryIdentity, SourceKind

logger = logging.getLogger(__name__)


def github_identity_from_repository_url(url: str | None) -> RepositoryIdentity | None:
    """Turn an npm ``repository.url`` value into a GitHub identity.

    Handles:
    - git+ssh://git@github.com/owner/repo.git
    - git+https://github.com/owner/repo.git
    - https://github.com/owner/repo

    Returns:
        RepositoryIdentity for the GitHub repository, or None if the URL does
        not point at GitHub.
    """
    if not url:
        return None

    owner, repo = parse_ssh_vcs_url(url)
    if owner and repo:
        return RepositoryIdentity(
            source=SourceKind.GITHUB,
            owner=owner,
            repo=repo,
            original_url=f"https://{GITHUB_HOST}/{owner}/{repo}",
        )

    cleaned = url.strip().removeprefix("git+").removesuffix(".git")
    if GITHUB_HOST not in cleaned.lower():
        logger.debug(f"Repository URL is not on GitHub: {url}")
        return None

    # git://github.com/... and ssh://git@github.com/... share the same path layout
    scheme, sep, rest = cleaned.partition("://")
    if sep and scheme in ("git", "ssh"):
        cleaned = "https://" + rest.removeprefix("git@")

    identity = classify_url(cleaned)
    if identity.source != SourceKind.GITHUB or not identity.is_resolved:
        logger.debug(f"Could not extract owner/repo from {url}")
        return None
    return identity


async def resolve_github_adapter(adapter: BaseAdapter) -> GitHubAdapter | None:
    """Find the GitHub adapter for an npm package's linked repository.

    The linked adapter shares the npm adapter's HTTP client and config, and is
    memoized on the npm adapter so every calculator sees the same instance.
    Only npm adapters are resolved; resolution never recurses.

    Args:
        adapter: The npm adapter to resolve from.

    Returns:
        GitHubAdapter for the linked repository, or None if there is none.
    """
    if not isinstance(adapter, NpmAdapter):
        logger.debug(f"Not resolving a linked repository for a {adapter.source.value} adapter")
        return None

    async def _resolve() -> GitHubAdapter | None:
        metadata = await adapter.fetch_repository_metadata()
        if metadata is None:
            return None

        identity = github_identity_from_repository_url(metadata.repository_url)
        if identity is None:
            logger.info(f"No GitHub repository linked from npm package {metadata.name}")
            return None

        logger.debug(f"Resolved {metadata.name} to {identity.owner}/{identity.repo}")
        return GitHubAdapter(identity, client=adapter.client, config=adapter.config)

    return await adapter.memoize("github_link", _resolve)
