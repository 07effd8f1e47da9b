"""Abstract base class for source adapters, plus URL classification."""

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any, TypeVar

import httpx

from pkgscore.config import ScoringConfig
from pkgscore.models.schemas import (
    Contributor,
    Issue,
    RepositoryIdentity,
    SourceKind,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

GITHUB_HOST = "github.com"
NPM_HOST = "www.npmjs.com"

# git+ssh://git@github.com/owner/repo.git
SSH_VCS_PATTERN = re.compile(r"^git\+ssh://git@github\.com/([^/]+)/([^/]+?)\.git$")


def classify_url(url: str) -> RepositoryIdentity:
    """Classify a package or repository URL.

    Splits on ``/`` and inspects the host segment. Unknown hosts and URLs with
    fewer than five segments classify as ``SourceKind.UNKNOWN``; this never
    raises.

    Args:
        url: Raw input URL, e.g. ``https://github.com/owner/repo`` or
            ``https://www.npmjs.com/package/name``.

    Returns:
        RepositoryIdentity for the URL.
    """
    segments = url.strip().split("/")
    if len(segments) < 5:
        return RepositoryIdentity(source=SourceKind.UNKNOWN, original_url=url)

    host = segments[2].lower()
    owner, repo = segments[3], segments[4]

    if host == GITHUB_HOST:
        return RepositoryIdentity(
            source=SourceKind.GITHUB,
            owner=owner,
            repo=repo.removesuffix(".git"),
            original_url=url,
        )

    if host == NPM_HOST:
        # Scoped packages span two segments: /package/@scope/name
        if repo.startswith("@") and len(segments) > 5 and segments[5]:
            repo = f"{repo}/{segments[5]}"
        return RepositoryIdentity(
            source=SourceKind.NPM,
            owner=owner,
            repo=repo,
            original_url=url,
        )

    return RepositoryIdentity(source=SourceKind.UNKNOWN, original_url=url)


def parse_ssh_vcs_url(url: str) -> tuple[str, str]:
    """Extract owner and repo from an npm ``git+ssh://`` repository URL.

    Only the ``git+ssh://git@github.com/{owner}/{repo}.git`` shape is accepted.

    Returns:
        ``(owner, repo)``, or ``("", "")`` if the URL has any other shape.
    """
    match = SSH_VCS_PATTERN.match(url.strip())
    if not match:
        logger.debug(f"Not a git+ssh GitHub URL: {url}")
        return "", ""
    return match.group(1), match.group(2)


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp as returned by GitHub and npm."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


class BaseAdapter(ABC):
    """Base class for source adapters.

    Each adapter presents one upstream source (GitHub or npm) as the same read
    surface. Fetches are memoized for the adapter's lifetime, and transport
    failures are logged and turned into empty results rather than raised.
    """

    def __init__(
        self,
        identity: RepositoryIdentity,
        client: httpx.AsyncClient | None = None,
        config: ScoringConfig | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            identity: Identity of the package or repository to read.
            client: Optional shared httpx client. If not provided, a client is
                created per request.
            config: Run configuration. Defaults to ``ScoringConfig()``.
        """
        self.identity = identity
        self.config = config or ScoringConfig()
        self.last_return_code: int = 0
        self._client = client
        self._cache: dict[str, Any] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    @abstractmethod
    def source(self) -> SourceKind:
        """Return the source this adapter reads from."""
        ...

    @property
    def owner(self) -> str:
        return self.identity.owner

    @property
    def repo(self) -> str:
        return self.identity.repo

    @property
    def client(self) -> httpx.AsyncClient | None:
        """The shared HTTP client, if one was provided."""
        return self._client

    def ensure_identity(self) -> RepositoryIdentity:
        """Fill in owner and repo from the original URL if they are missing."""
        if not self.identity.is_resolved and self.identity.original_url:
            logger.warning(
                f"No owner or repo provided, resolving from {self.identity.original_url}"
            )
            parsed = classify_url(self.identity.original_url)
            self.identity = self.identity.model_copy(
                update={
                    "owner": self.identity.owner or parsed.owner,
                    "repo": self.identity.repo or parsed.repo,
                }
            )
        return self.identity

    async def memoize(self, key: str, loader: Callable[[], Awaitable[T]]) -> T:
        """Return the memoized result for ``key``, loading it at most once."""
        if key in self._cache:
            return self._cache[key]

        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            if key not in self._cache:
                self._cache[key] = await loader()
        return self._cache[key]

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create an HTTP client."""
        if self._client is not None:
            return self._client
        return httpx.AsyncClient(
            timeout=self.config.request_timeout, follow_redirects=True
        )

    async def _get(
        self,
        url: str,
        params: dict | None = None,
        headers: dict | None = None,
    ) -> httpx.Response:
        """Issue a GET request and record its status code."""
        client = await self._get_client()
        try:
            response = await client.get(url, params=params, headers=headers or {})
        except httpx.HTTPError:
            self.last_return_code = 0
            raise
        finally:
            if self._client is None:
                await client.aclose()

        self.last_return_code = response.status_code
        return response

    @abstractmethod
    async def fetch_repository_metadata(self) -> Any | None:
        """Fetch source metadata.

        Returns:
            GitHubRepoData or NpmPackageData, or None if the fetch failed.
        """
        ...

    @abstractmethod
    async def fetch_contributors(self) -> list[Contributor]:
        """Fetch contributors in upstream order. Empty on failure."""
        ...

    @abstractmethod
    async def fetch_readme(self) -> str | None:
        """Fetch README text, or None if absent or on failure."""
        ...

    @abstractmethod
    async def fetch_issues(self, limit: int = 50) -> list[Issue]:
        """Fetch up to ``limit`` issues in any state. Empty on failure."""
        ...

    @abstractmethod
    async def fetch_issue_comments(self, issue_number: int) -> list[datetime]:
        """Fetch comment timestamps for an issue (first page). Empty on failure."""
        ...

    @abstractmethod
    async def fetch_license_id(self) -> str | None:
        """Return the license identifier the source reports, if any."""
        ...
