"""Shared pieces for metric calculators."""

import math
from abc import ABC, abstractmethod

from pkgscore.adapters.base import BaseAdapter
from pkgscore.models.schemas import NOT_COMPUTABLE

__all__ = [
    "NOT_COMPUTABLE",
    "MetricCalculator",
    "MissingPreconditionError",
    "clamp",
    "normalize_log",
]


class MissingPreconditionError(Exception):
    """Raised when a calculator is missing an input it cannot do without."""


def normalize_log(value: float, cap: float) -> float:
    """Compress a heavy-tailed count with ``ln(value + 1) / ln(cap + 1)``.

    Values above ``cap`` yield more than 1 and are left uncapped.
    """
    if value <= 0:
        return 0.0
    return math.log(value + 1) / math.log(cap + 1)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


class MetricCalculator(ABC):
    """A single scoring algorithm over one source adapter."""

    name: str = ""

    @abstractmethod
    async def compute(self, adapter: BaseAdapter) -> float:
        """Compute the metric for the adapter's package.

        Returns:
            Score in [0, 1], or ``NOT_COMPUTABLE`` when there is nothing to
            score.
        """
        ...
