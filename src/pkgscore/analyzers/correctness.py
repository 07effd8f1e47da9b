"""Correctness metric: signals that a project is tested, maintained and linted."""

import asyncio
import logging
import math
from datetime import datetime, timezone

from pkgscore.adapters.base import BaseAdapter
from pkgscore.adapters.github import GitHubAdapter
from pkgscore.adapters.npm import NpmAdapter
from pkgscore.analyzers.base import MetricCalculator, clamp

logger = logging.getLogger(__name__)

TEST_PATHS = ["test", "tests"]
CI_PATHS = [".travis.yml", ".circleci/config.yml", "Jenkinsfile", ".github/workflows"]
DOC_PATHS = ["README.md", "README"]
LINTER_PATHS = [".eslintrc", ".eslintrc.js", ".eslint.json", ".tslint.json"]
LINTER_PACKAGES = ["eslint", "tslint"]

RECENCY_WINDOW_DAYS = 365


class CorrectnessCalculator(MetricCalculator):
    """Weighted sum of six presence and health factors.

    Factor weights (total 1.0):
    - Test presence: 0.25
    - Inverse open-issue ratio: 0.20
    - Recency of last commit or publish: 0.20
    - CI presence: 0.15
    - Documentation presence: 0.10
    - Linter presence: 0.10

    npm packages have no issue tracker, so the open-issue factor is 1.0 for
    them; they have no CI files either, so CI presence is 0.0.
    """

    name = "correctness"

    WEIGHTS = {
        "test_presence": 0.25,
        "open_issue_ratio": 0.20,
        "recency": 0.20,
        "ci_presence": 0.15,
        "documentation_presence": 0.10,
        "linter_presence": 0.10,
    }

    async def compute(self, adapter: BaseAdapter) -> float:
        if isinstance(adapter, GitHubAdapter):
            factors = await self.github_factors(adapter)
        elif isinstance(adapter, NpmAdapter):
            factors = await self.npm_factors(adapter)
        else:
            return 0.0

        logger.debug(f"Correctness factors for {adapter.identity.original_url}: {factors}")
        return self.combine(factors)

    def combine(self, factors: dict[str, float]) -> float:
        """Weight the factors and clamp the sum to [0, 1]."""
        total = sum(self.WEIGHTS[key] * clamp(factors.get(key, 0.0)) for key in self.WEIGHTS)
        return clamp(total)

    async def github_factors(self, adapter: GitHubAdapter) -> dict[str, float]:
        """Compute every factor for a GitHub repository.

        All file probes and API reads run concurrently.
        """
        probe_paths = TEST_PATHS + CI_PATHS + DOC_PATHS + LINTER_PATHS
        results = await asyncio.gather(
            adapter.fetch_repository_metadata(),
            adapter.fetch_closed_issue_count(),
            adapter.fetch_last_commit_date(),
            *(adapter.path_exists(path) for path in probe_paths),
            return_exceptions=True,
        )
        metadata, closed_count, last_commit = results[:3]
        found = {
            path
            for path, exists in zip(probe_paths, results[3:])
            if exists is True
        }

        open_count = 0
        if not isinstance(metadata, BaseException) and metadata is not None:
            open_count = metadata.open_issues
        if isinstance(closed_count, BaseException):
            closed_count = 0
        if isinstance(last_commit, BaseException):
            last_commit = None

        return {
            "test_presence": _presence(found, TEST_PATHS),
            "open_issue_ratio": inverse_open_issue_ratio(open_count, closed_count),
            "recency": recency_score(last_commit),
            "ci_presence": _presence(found, CI_PATHS),
            "documentation_presence": _presence(found, DOC_PATHS),
            "linter_presence": _presence(found, LINTER_PATHS),
        }

    async def npm_factors(self, adapter: NpmAdapter) -> dict[str, float]:
        """Compute every factor for an npm package from its registry document."""
        metadata = await adapter.fetch_repository_metadata()
        if metadata is None:
            return {}

        last_publish = await adapter.fetch_last_publish_date()
        has_linter = any(name in metadata.dev_dependencies for name in LINTER_PACKAGES)

        return {
            "test_presence": 1.0 if metadata.scripts.get("test") else 0.0,
            "open_issue_ratio": 1.0,
            "recency": recency_score(last_publish),
            "ci_presence": 0.0,
            "documentation_presence": 1.0 if metadata.readme else 0.0,
            "linter_presence": 1.0 if has_linter else 0.0,
        }


def _presence(found: set[str], paths: list[str]) -> float:
    return 1.0 if any(path in found for path in paths) else 0.0


def inverse_open_issue_ratio(open_count: int, closed_count: int) -> float:
    """Return ``1 - open / (open + closed)``, or 0 when there are no issues."""
    total = open_count + closed_count
    if total <= 0:
        return 0.0
    return 1 - open_count / total


def recency_score(last_activity: datetime | None, now: datetime | None = None) -> float:
    """Score how recent the last commit or publish was, linearly over a year."""
    if last_activity is None:
        return 0.0

    now = now or datetime.now(timezone.utc)
    if last_activity.tzinfo is None:
        last_activity = last_activity.replace(tzinfo=timezone.utc)

    days = math.ceil(abs((now - last_activity).total_seconds()) / 86400)
    return max(0.0, (RECENCY_WINDOW_DAYS - days) / RECENCY_WINDOW_DAYS)
