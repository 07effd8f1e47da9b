"""Bus factor metric: how widely the work is spread across contributors."""

import logging

from pkgscore.adapters.base import BaseAdapter
from pkgscore.analyzers.base import MetricCalculator, MissingPreconditionError
from pkgscore.models.schemas import Contributor, SourceKind

logger = logging.getLogger(__name__)

# Share of total contributions the key contributors must cover
KEY_CONTRIBUTOR_SHARE = 0.5


class BusFactorCalculator(MetricCalculator):
    """Scores ``1 - k/n``, where ``k`` contributors cover half of all work.

    A high score means many people are needed to account for half of the
    contributions; a low score means a small group dominates.
    """

    name = "bus_factor"

    async def compute(self, adapter: BaseAdapter) -> float:
        if adapter.source == SourceKind.GITHUB:
            identity = adapter.ensure_identity()
            if not identity.is_resolved:
                raise MissingPreconditionError(
                    f"Owner and repo are required for GitHub sources, got {identity.original_url!r}"
                )

        contributors = await adapter.fetch_contributors()
        return self.score(contributors, label=adapter.identity.original_url)

    def score(self, contributors: list[Contributor], label: str = "") -> float:
        """Compute the bus factor for a list of contributors.

        Order of the input does not matter; ties keep their original order.
        """
        if not contributors:
            logger.warning(f"No contributors found for {label or 'package'}, bus factor is 0")
            return 0.0

        ranked = sorted(contributors, key=lambda c: c.contributions, reverse=True)
        total = sum(c.contributions for c in ranked)
        if total <= 0:
            logger.warning(f"Contributors for {label or 'package'} report no contributions, bus factor is 0")
            return 0.0

        cumulative = 0
        key_contributors = 0
        for contributor in ranked:
            cumulative += contributor.contributions
            key_contributors += 1
            if cumulative >= total * KEY_CONTRIBUTOR_SHARE:
                break

        return 1 - key_contributors / len(ranked)
