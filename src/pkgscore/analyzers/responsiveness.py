"""Responsiveness metric: how quickly maintainers react to issues."""

import asyncio
import logging
from datetime import datetime

from pkgscore.adapters.base import BaseAdapter
from pkgscore.adapters.github import GitHubAdapter
from pkgscore.adapters.npm import NpmAdapter
from pkgscore.adapters.resolver import resolve_github_adapter
from pkgscore.analyzers.base import NOT_COMPUTABLE, MetricCalculator
from pkgscore.models.schemas import Issue

logger = logging.getLogger(__name__)

ISSUE_LIMIT = 100

# Response windows, in hours, that count as fully unresponsive
ISSUE_RESPONSE_WINDOW = 7 * 24
PULL_REQUEST_RESPONSE_WINDOW = 15 * 24


class ResponsivenessCalculator(MetricCalculator):
    """Scores ``1 - mean(delay)`` over recent issues and pull requests.

    Per item, the delay is the time to first comment, or failing that the
    time to close, as a fraction of the response window (capped at 1). Open
    items nobody has commented on count as fully unresponsive.
    """

    name = "responsiveness"

    async def compute(self, adapter: BaseAdapter) -> float:
        if isinstance(adapter, GitHubAdapter):
            return await self._compute_github(adapter)

        if isinstance(adapter, NpmAdapter):
            linked = await resolve_github_adapter(adapter)
            if linked is None:
                logger.info(f"No linked repository for {adapter.package_name}, responsiveness not computable")
                return NOT_COMPUTABLE
            return await self._compute_github(linked)

        return NOT_COMPUTABLE

    async def _compute_github(self, adapter: GitHubAdapter) -> float:
        issues = select_issues(await adapter.fetch_issues(limit=ISSUE_LIMIT))
        if not issues:
            logger.info(f"No issues found for {adapter.owner}/{adapter.repo}")
            return NOT_COMPUTABLE

        semaphore = asyncio.Semaphore(max(1, adapter.config.max_concurrent_requests))

        async def _first_comment(issue: Issue) -> datetime | None:
            if issue.comment_count == 0:
                return None
            async with semaphore:
                timestamps = await adapter.fetch_issue_comments(issue.number)
            return min(timestamps) if timestamps else None

        first_comments = await asyncio.gather(
            *(_first_comment(issue) for issue in issues),
            return_exceptions=True,
        )

        delays = []
        for issue, first_comment in zip(issues, first_comments):
            if isinstance(first_comment, BaseException):
                logger.warning(f"Comment lookup failed for issue #{issue.number}: {first_comment}")
                first_comment = None
            delays.append(issue_delay(issue, first_comment))

        return 1 - sum(delays) / len(delays)


def select_issues(issues: list[Issue], limit: int = ISSUE_LIMIT) -> list[Issue]:
    """Take items in order until ``limit`` non-pull-request issues are counted."""
    selected = []
    counted = 0
    for issue in issues:
        selected.append(issue)
        if not issue.is_pull_request:
            counted += 1
            if counted >= limit:
                break
    return selected


def issue_delay(issue: Issue, first_comment: datetime | None) -> float:
    """Response delay for one item as a fraction of its window, capped at 1."""
    if first_comment is not None:
        hours = _hours_between(issue.created_at, first_comment)
        return min(hours / ISSUE_RESPONSE_WINDOW, 1.0)

    if issue.closed_at is not None:
        window = PULL_REQUEST_RESPONSE_WINDOW if issue.is_pull_request else ISSUE_RESPONSE_WINDOW
        hours = _hours_between(issue.created_at, issue.closed_at)
        return min(hours / window, 1.0)

    return 1.0


def _hours_between(start: datetime, end: datetime) -> float:
    return abs((end - start).total_seconds()) / 3600
