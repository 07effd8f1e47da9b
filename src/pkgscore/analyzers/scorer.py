"""NetScore calculator combining per-metric results."""

from pkgscore.analyzers.base import clamp
from pkgscore.models.schemas import MetricResult


class NetScorer:
    """Combines metric scores into a single license-gated NetScore.

    Scoring weights (total 100%):
    - Responsiveness: 30%
    - Bus Factor: 25%
    - Correctness: 25%
    - Ramp-Up: 20%

    License is not weighted; the weighted sum is multiplied by the license
    verdict, so an incompatible license always yields 0.
    """

    WEIGHTS = {
        "responsiveness": 30,
        "bus_factor": 25,
        "correctness": 25,
        "ramp_up": 20,
    }

    def combine(self, results: dict[str, MetricResult]) -> float:
        """Calculate the NetScore.

        Args:
            results: Metric results keyed by calculator name.

        Returns:
            NetScore in [0, 1].
        """
        license_result = results.get("license")
        verdict = 1 if license_result is not None and license_result.score >= 1 else 0
        if verdict == 0:
            return 0.0

        weighted = sum(
            self._component(results.get(name)) * weight for name, weight in self.WEIGHTS.items()
        ) / 100

        return clamp(weighted * verdict)

    @staticmethod
    def _component(result: MetricResult | None) -> float:
        """Score a component contributes; not-computable results count as 0."""
        if result is None or not result.is_computable:
            return 0.0
        return clamp(result.score)
