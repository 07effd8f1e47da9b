"""End-to-end scoring pipeline for package URLs."""

import asyncio
import logging
import time
from typing import Any

import httpx

from pkgscore.adapters.base import BaseAdapter, classify_url
from pkgscore.adapters.github import GitHubAdapter
from pkgscore.adapters.npm import NpmAdapter
from pkgscore.analyzers.base import NOT_COMPUTABLE, MetricCalculator, MissingPreconditionError
from pkgscore.analyzers.bus_factor import BusFactorCalculator
from pkgscore.analyzers.correctness import CorrectnessCalculator
from pkgscore.analyzers.license import LicenseCalculator
from pkgscore.analyzers.ramp_up import RampUpCalculator
from pkgscore.analyzers.responsiveness import ResponsivenessCalculator
from pkgscore.analyzers.scorer import NetScorer
from pkgscore.config import ScoringConfig
from pkgscore.models.schemas import (
    MetricResult,
    PackageScoreRecord,
    RepositoryIdentity,
    SourceKind,
)

logger = logging.getLogger(__name__)

# Failure code logged for URLs that are neither GitHub nor npm
UNKNOWN_SOURCE_CODE = 404

LATENCY_PRECISION = 3


class MetricTimer:
    """Context manager measuring wall-clock time with ``perf_counter``."""

    def __init__(self) -> None:
        self.start_time: float | None = None
        self.elapsed: float = 0.0

    def __enter__(self) -> "MetricTimer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.start_time is not None:
            self.elapsed = time.perf_counter() - self.start_time


class ScoringPipeline:
    """Orchestrates scoring for package URLs.

    Pipeline stages, per URL:
    1. Classify the URL and build a source adapter
    2. Run the five metric calculators concurrently, timing each one
    3. Combine the results into a NetScore
    4. Build the output record

    Use as an async context manager so every adapter shares one HTTP client.
    """

    def __init__(
        self,
        config: ScoringConfig | None = None,
        calculators: list[MetricCalculator] | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            config: Run configuration. Defaults to ``ScoringConfig()``.
            calculators: Metric calculators to run. Defaults to the five
                standard metrics.
        """
        self.config = config or ScoringConfig()
        self.calculators = calculators or [
            RampUpCalculator(),
            CorrectnessCalculator(),
            BusFactorCalculator(),
            ResponsivenessCalculator(),
            LicenseCalculator(),
        ]
        self.scorer = NetScorer()
        self._http_client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "ScoringPipeline":
        """Set up shared HTTP client."""
        self._http_client = httpx.AsyncClient(
            timeout=self.config.request_timeout,
            follow_redirects=True,
        )
        return self

    async def __aexit__(self, *args) -> None:
        """Clean up HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    def build_adapter(self, identity: RepositoryIdentity) -> BaseAdapter | None:
        """Build the adapter for a classified URL, or None for unknown sources."""
        if identity.source == SourceKind.GITHUB:
            return GitHubAdapter(identity, client=self._http_client, config=self.config)
        if identity.source == SourceKind.NPM:
            return NpmAdapter(identity, client=self._http_client, config=self.config)
        return None

    async def score_url(self, url: str) -> PackageScoreRecord:
        """Score a single package or repository URL.

        Args:
            url: GitHub repository or npm package URL.

        Returns:
            PackageScoreRecord for the URL. Unsupported URLs get
            not-computable metrics and a NetScore of 0.
        """
        url = url.strip()
        identity = classify_url(url)
        adapter = self.build_adapter(identity)
        if adapter is None:
            logger.error(f"Unsupported URL {url!r} (code {UNKNOWN_SOURCE_CODE})")
            return self._unscored_record(url)

        logger.info(f"Scoring {url}")
        with MetricTimer() as timer:
            results = await asyncio.gather(
                *(self._timed_metric(calculator, adapter) for calculator in self.calculators)
            )
            by_name = {result.metric_name: result for result in results}
            net_score = self.scorer.combine(by_name)

        logger.info(f"NetScore for {url}: {net_score:.3f} in {timer.elapsed:.2f}s")
        return self._build_record(url, net_score, timer.elapsed, by_name)

    async def score_urls(self, urls: list[str]) -> list[PackageScoreRecord]:
        """Score URLs one package at a time, best NetScore first.

        Ties keep their input order.
        """
        records = []
        for url in urls:
            records.append(await self.score_url(url))
        return sorted(records, key=lambda record: record.net_score, reverse=True)

    async def _timed_metric(self, calculator: MetricCalculator, adapter: BaseAdapter) -> MetricResult:
        """Run one calculator, timing it and converting failures to its sentinel."""
        with MetricTimer() as timer:
            try:
                score = await calculator.compute(adapter)
            except MissingPreconditionError as e:
                logger.warning(f"{calculator.name} not computable: {e}")
                score = self._failure_score(calculator.name)
            except Exception as e:
                logger.error(f"{calculator.name} failed for {adapter.identity.original_url}: {e}")
                score = self._failure_score(calculator.name)

        logger.debug(f"{calculator.name}: {score} in {timer.elapsed:.3f}s")
        return MetricResult(
            metric_name=calculator.name,
            score=score,
            latency_seconds=timer.elapsed,
        )

    @staticmethod
    def _failure_score(metric_name: str) -> float:
        return 0 if metric_name == "license" else NOT_COMPUTABLE

    def _build_record(
        self,
        url: str,
        net_score: float,
        net_latency: float,
        results: dict[str, MetricResult],
    ) -> PackageScoreRecord:
        """Assemble the output record from metric results."""

        def score(name: str) -> float:
            result = results.get(name)
            return result.score if result is not None else self._failure_score(name)

        def latency(name: str) -> float:
            result = results.get(name)
            return round(result.latency_seconds, LATENCY_PRECISION) if result is not None else 0.0

        return PackageScoreRecord(
            url=url,
            net_score=net_score,
            net_score_latency=round(net_latency, LATENCY_PRECISION),
            ramp_up=score("ramp_up"),
            ramp_up_latency=latency("ramp_up"),
            correctness=score("correctness"),
            correctness_latency=latency("correctness"),
            bus_factor=score("bus_factor"),
            bus_factor_latency=latency("bus_factor"),
            responsiveness=score("responsiveness"),
            responsiveness_latency=latency("responsiveness"),
            license=int(score("license")),
            license_latency=latency("license"),
        )

    def _unscored_record(self, url: str) -> PackageScoreRecord:
        return self._build_record(url, 0.0, 0.0, {})
