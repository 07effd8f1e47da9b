"""Ramp-up metric: how quickly a newcomer could get productive."""

import logging

from pkgscore.adapters.base import BaseAdapter
from pkgscore.adapters.github import GitHubAdapter
from pkgscore.adapters.npm import NpmAdapter
from pkgscore.adapters.resolver import resolve_github_adapter
from pkgscore.analyzers.base import NOT_COMPUTABLE, MetricCalculator, normalize_log
from pkgscore.models.schemas import GitHubRepoData, NpmPackageData

logger = logging.getLogger(__name__)

# Normalization caps
STARS_CAP = 10000
FORKS_CAP = 10000
OPEN_ISSUES_CAP = 1000
WATCHERS_CAP = 3000
README_LINES_CAP = 400
VERSIONS_CAP = 500
MAINTAINERS_CAP = 10
DEPENDENCIES_CAP = 20

# Share of the blended npm score taken from the linked GitHub repository
GITHUB_BLEND_WEIGHT = 0.7


class RampUpCalculator(MetricCalculator):
    """Weighted, log-normalized popularity and documentation signals.

    Scores above 1 are possible for very popular repositories and are not
    capped.
    """

    name = "ramp_up"

    GITHUB_WEIGHTS = {
        "stars": 0.10,
        "forks": 0.10,
        "open_issues": 0.15,
        "watchers": 0.05,
        "wiki": 0.15,
        "pages": 0.10,
        "discussions": 0.10,
        "readme_length": 0.25,
    }

    NPM_WEIGHTS = {
        "versions": 0.15,
        "maintainers": 0.30,
        "dependencies": 0.25,
        "github_repository": 0.30,
    }

    async def compute(self, adapter: BaseAdapter) -> float:
        if isinstance(adapter, GitHubAdapter):
            return await self._compute_github(adapter)
        if isinstance(adapter, NpmAdapter):
            return await self._compute_npm(adapter)
        return NOT_COMPUTABLE

    async def _compute_github(self, adapter: GitHubAdapter) -> float:
        metadata = await adapter.fetch_repository_metadata()
        if metadata is None:
            return NOT_COMPUTABLE
        readme = await adapter.fetch_readme()
        return self.github_score(metadata, readme)

    async def _compute_npm(self, adapter: NpmAdapter) -> float:
        metadata = await adapter.fetch_repository_metadata()
        if metadata is None:
            return NOT_COMPUTABLE

        npm_score = self.npm_score(metadata)
        if not has_github_repository(metadata):
            return npm_score

        linked = await resolve_github_adapter(adapter)
        if linked is None:
            return npm_score

        github_score = await self._compute_github(linked)
        if github_score == NOT_COMPUTABLE:
            logger.info(f"Linked repository for {metadata.name} unavailable, using npm signals only")
            return npm_score

        return blend(npm_score, github_score)

    def github_score(self, metadata: GitHubRepoData, readme: str | None) -> float:
        """Score a GitHub repository from its metadata and README."""
        readme_lines = len(readme.splitlines()) if readme else 0
        factors = {
            "stars": normalize_log(metadata.stars, STARS_CAP),
            "forks": normalize_log(metadata.forks, FORKS_CAP),
            "open_issues": 1 - normalize_log(metadata.open_issues, OPEN_ISSUES_CAP),
            "watchers": normalize_log(metadata.watchers, WATCHERS_CAP),
            "wiki": 1.0 if metadata.has_wiki else 0.0,
            "pages": 1.0 if metadata.has_pages else 0.0,
            "discussions": 1.0 if metadata.has_discussions else 0.0,
            "readme_length": normalize_log(readme_lines, README_LINES_CAP),
        }
        return sum(self.GITHUB_WEIGHTS[key] * value for key, value in factors.items())

    def npm_score(self, metadata: NpmPackageData) -> float:
        """Score an npm package from its registry document alone."""
        factors = {
            "versions": normalize_log(len(metadata.versions), VERSIONS_CAP),
            "maintainers": normalize_log(len(metadata.maintainers), MAINTAINERS_CAP),
            "dependencies": 1 - normalize_log(len(metadata.dependencies), DEPENDENCIES_CAP),
            "github_repository": 1.0 if has_github_repository(metadata) else 0.0,
        }
        return sum(self.NPM_WEIGHTS[key] * value for key, value in factors.items())


def has_github_repository(metadata: NpmPackageData) -> bool:
    return bool(metadata.repository_url and "github" in metadata.repository_url.lower())


def blend(npm_score: float, github_score: float) -> float:
    """Combine npm and linked GitHub scores, weighted toward GitHub."""
    return npm_score * (1 - GITHUB_BLEND_WEIGHT) + github_score * GITHUB_BLEND_WEIGHT
