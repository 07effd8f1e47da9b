"""GitHub source adapter."""

import base64
import logging
from datetime import datetime, timezone
from urllib.parse import quote

import httpx

from pkgscore.adapters.base import BaseAdapter, parse_timestamp
from pkgscore.config import ScoringConfig
from pkgscore.models.schemas import (
    Contributor,
    GitHubRepoData,
    Issue,
    RepositoryIdentity,
    SourceKind,
)

logger = logging.getLogger(__name__)

# Failures converted to empty results at the adapter boundary
FETCH_ERRORS = (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError)


class GitHubAdapter(BaseAdapter):
    """Reads repository data from the GitHub REST API.

    A token raises the rate limit from 60 to 5000 requests per hour; without
    one the adapter still works unauthenticated.

    Data sources:
    - Repository metadata: /repos/{owner}/{repo}
    - Contributors: /repos/{owner}/{repo}/contributors
    - Issues and comments: /repos/{owner}/{repo}/issues
    - File probes: /repos/{owner}/{repo}/contents/{path}
    - Closed issue count: /search/issues
    """

    # Remaining-request count below which a warning is logged
    RATE_LIMIT_THRESHOLD = 50

    def __init__(
        self,
        identity: RepositoryIdentity,
        client: httpx.AsyncClient | None = None,
        config: ScoringConfig | None = None,
    ) -> None:
        super().__init__(identity, client, config)

        # Rate limit tracking
        self.rate_limit_remaining: int = 5000
        self.rate_limit_total: int = 5000
        self.rate_limit_reset: datetime | None = None
        self._rate_limit_warned = False

    @property
    def source(self) -> SourceKind:
        return SourceKind.GITHUB

    @property
    def base_url(self) -> str:
        return self.config.github_api_url.rstrip("/")

    def _headers(self) -> dict[str, str]:
        """Get headers for GitHub API requests."""
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.config.github_token:
            headers["Authorization"] = f"Bearer {self.config.github_token}"
        return headers

    def _update_rate_limits(self, response: httpx.Response) -> None:
        """Extract and store rate limit info from response headers."""
        remaining = response.headers.get("X-RateLimit-Remaining")
        limit = response.headers.get("X-RateLimit-Limit")
        reset = response.headers.get("X-RateLimit-Reset")

        if remaining is not None:
            self.rate_limit_remaining = int(remaining)
        if limit is not None:
            self.rate_limit_total = int(limit)
        if reset is not None:
            self.rate_limit_reset = datetime.fromtimestamp(int(reset), tz=timezone.utc)

        if self.rate_limit_remaining < self.RATE_LIMIT_THRESHOLD and not self._rate_limit_warned:
            self._rate_limit_warned = True
            logger.warning(
                f"GitHub rate limit nearly exhausted: {self.rate_limit_remaining}/"
                f"{self.rate_limit_total} remaining, resets at {self.rate_limit_reset}"
            )

    def _repo_path(self, suffix: str = "") -> str:
        """Build the /repos/{owner}/{repo} path for this adapter."""
        identity = self.ensure_identity()
        if not identity.is_resolved:
            raise ValueError(f"Owner and repo are required, got {identity.original_url!r}")
        return f"/repos/{identity.owner}/{identity.repo}{suffix}"

    async def _fetch(self, path: str, params: dict | None = None) -> dict | list | None:
        """Fetch from GitHub API.

        Returns None on 404 or an empty body, raises on other errors.
        """
        response = await self._get(f"{self.base_url}{path}", params=params, headers=self._headers())
        self._update_rate_limits(response)
        if response.status_code == 404:
            return None
        response.raise_for_status()
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def fetch_repository_metadata(self) -> GitHubRepoData | None:
        return await self.memoize("metadata", self._fetch_repo_info)

    async def _fetch_repo_info(self) -> GitHubRepoData | None:
        """Fetch basic repository information."""
        try:
            data = await self._fetch(self._repo_path())
            if not isinstance(data, dict):
                logger.warning(f"Repository {self.owner}/{self.repo} not found")
                return None

            license_info = data.get("license") or {}
            return GitHubRepoData(
                owner=self.owner,
                name=self.repo,
                stars=data.get("stargazers_count") or 0,
                forks=data.get("forks_count") or 0,
                open_issues=data.get("open_issues_count") or 0,
                watchers=data.get("watchers_count") or 0,
                has_wiki=bool(data.get("has_wiki")),
                has_pages=bool(data.get("has_pages")),
                has_discussions=bool(data.get("has_discussions")),
                license=license_info.get("spdx_id") or license_info.get("key"),
            )
        except FETCH_ERRORS as e:
            logger.error(f"Error fetching repository {self.owner}/{self.repo}: {e}")
            return None

    async def fetch_contributors(self) -> list[Contributor]:
        return await self.memoize("contributors", self._fetch_contributors)

    async def _fetch_contributors(self) -> list[Contributor]:
        """Fetch the first page (up to 100) of contributors."""
        try:
            data = await self._fetch(self._repo_path("/contributors"), params={"per_page": 100})
            contributors = [
                Contributor(login=c.get("login") or "unknown", contributions=c.get("contributions") or 0)
                for c in data or []
            ]
        except FETCH_ERRORS as e:
            logger.error(f"Error fetching contributors for {self.owner}/{self.repo}: {e}")
            return []

        logger.debug(f"Fetched {len(contributors)} contributors for {self.owner}/{self.repo}")
        return contributors

    async def fetch_readme(self) -> str | None:
        return await self.memoize("readme", self._fetch_readme)

    async def _fetch_readme(self) -> str | None:
        """Fetch the README content, whatever its file name."""
        try:
            readme = await self._fetch(self._repo_path("/readme"))
        except FETCH_ERRORS as e:
            logger.error(f"Error fetching README for {self.owner}/{self.repo}: {e}")
            return None
        return self._decode_content(readme)

    async def fetch_issues(self, limit: int = 50) -> list[Issue]:
        limit = max(1, min(limit, 100))
        return await self.memoize(f"issues:{limit}", lambda: self._fetch_issues(limit))

    async def _fetch_issues(self, limit: int) -> list[Issue]:
        """Fetch one page of issues and pull requests in any state."""
        try:
            data = await self._fetch(
                self._repo_path("/issues"),
                params={"state": "all", "per_page": limit},
            )
            issues = []
            for item in data or []:
                created_at = parse_timestamp(item.get("created_at"))
                if created_at is None:
                    continue
                issues.append(
                    Issue(
                        number=item["number"],
                        created_at=created_at,
                        closed_at=parse_timestamp(item.get("closed_at")),
                        is_pull_request="pull_request" in item,
                        comment_count=item.get("comments") or 0,
                    )
                )
        except FETCH_ERRORS as e:
            logger.error(f"Error fetching issues for {self.owner}/{self.repo}: {e}")
            return []
        return issues

    async def fetch_issue_comments(self, issue_number: int) -> list[datetime]:
        """Fetch the earliest comment timestamp for an issue."""
        try:
            comments = await self._fetch(
                self._repo_path(f"/issues/{issue_number}/comments"),
                params={"per_page": 1},
            )
            timestamps = []
            for comment in comments or []:
                created_at = parse_timestamp(comment.get("created_at"))
                if created_at is not None:
                    timestamps.append(created_at)
        except FETCH_ERRORS as e:
            logger.error(f"Error fetching comments for issue #{issue_number}: {e}")
            return []
        return timestamps

    async def fetch_license_id(self) -> str | None:
        metadata = await self.fetch_repository_metadata()
        return metadata.license if metadata else None

    # --- GitHub-only reads ---

    async def path_exists(self, path: str) -> bool:
        """Check whether a file or directory exists at the repository root.

        Any failure, including 404, counts as absent.
        """
        try:
            data = await self._fetch(self._repo_path(f"/contents/{quote(path, safe='/')}"))
        except FETCH_ERRORS as e:
            logger.debug(f"Probe for {path} in {self.owner}/{self.repo} failed: {e}")
            return False
        return data is not None

    async def fetch_file_text(self, path: str) -> str | None:
        """Fetch and decode a single file from the default branch."""
        try:
            data = await self._fetch(self._repo_path(f"/contents/{quote(path, safe='/')}"))
        except FETCH_ERRORS as e:
            logger.debug(f"Could not fetch {path} from {self.owner}/{self.repo}: {e}")
            return None
        return self._decode_content(data)

    async def fetch_last_commit_date(self) -> datetime | None:
        return await self.memoize("last_commit", self._fetch_last_commit_date)

    async def _fetch_last_commit_date(self) -> datetime | None:
        """Fetch the committer date of the most recent commit."""
        try:
            commits = await self._fetch(self._repo_path("/commits"), params={"per_page": 1})
            if not commits or not isinstance(commits, list):
                return None
            commit = commits[0].get("commit") or {}
            committer = commit.get("committer") or {}
            return parse_timestamp(committer.get("date"))
        except FETCH_ERRORS as e:
            logger.error(f"Error fetching last commit date for {self.owner}/{self.repo}: {e}")
            return None

    async def fetch_closed_issue_count(self) -> int:
        return await self.memoize("closed_issues", self._fetch_closed_issue_count)

    async def _fetch_closed_issue_count(self) -> int:
        """Count closed issues (pull requests excluded) through the search API."""
        try:
            self._repo_path()
            data = await self._fetch(
                "/search/issues",
                params={
                    "q": f"repo:{self.owner}/{self.repo} type:issue state:closed",
                    "per_page": 1,
                },
            )
        except FETCH_ERRORS as e:
            logger.error(f"Error fetching closed issues count for {self.owner}/{self.repo}: {e}")
            return 0

        if not isinstance(data, dict):
            return 0
        return data.get("total_count") or 0

    @staticmethod
    def _decode_content(payload: dict | list | None) -> str | None:
        """Decode the base64 ``content`` field of a contents API response."""
        if not payload or not isinstance(payload, dict):
            return None

        content = payload.get("content", "")
        if not content:
            return None
        try:
            return base64.b64decode(content).decode("utf-8", errors="replace")
        except ValueError:
            return None
