"""Pydantic models for package data and scores."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Score reported when a metric cannot be computed at all
NOT_COMPUTABLE = -1.0


class SourceKind(str, Enum):
    """Upstream data sources a URL can point at."""

    GITHUB = "github"
    NPM = "npm"
    UNKNOWN = "unknown"


class RepositoryIdentity(BaseModel):
    """Canonical identity of a package or repository parsed from a URL."""

    model_config = ConfigDict(frozen=True)

    source: SourceKind
    owner: str = ""
    repo: str = ""
    original_url: str = ""

    @property
    def is_resolved(self) -> bool:
        return bool(self.owner and self.repo)


class Contributor(BaseModel):
    """A contributor and their contribution volume."""

    login: str
    contributions: int = 0


# --- Source metadata ---


class GitHubRepoData(BaseModel):
    """Basic GitHub repository data."""

    owner: str
    name: str
    stars: int = 0
    forks: int = 0
    open_issues: int = 0
    watchers: int = 0
    has_wiki: bool = False
    has_pages: bool = False
    has_discussions: bool = False
    license: str | None = None


class NpmPackageData(BaseModel):
    """Registry document for an npm package, normalized around its latest version."""

    name: str
    latest_version: str = ""
    versions: list[str] = Field(default_factory=list)
    maintainers: list[dict] = Field(default_factory=list)
    contributors: list[dict] = Field(default_factory=list)
    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict)
    scripts: dict[str, str] = Field(default_factory=dict)
    repository_url: str | None = None
    readme: str | None = None
    license: str | None = None
    time: dict[str, str] = Field(default_factory=dict)


class Issue(BaseModel):
    """An issue or pull request from the GitHub issues endpoint."""

    number: int
    created_at: datetime
    closed_at: datetime | None = None
    is_pull_request: bool = False
    comment_count: int = 0


# --- Results ---


class MetricResult(BaseModel):
    """Score produced by a single calculator plus how long it took."""

    model_config = ConfigDict(frozen=True)

    metric_name: str
    score: float
    latency_seconds: float = Field(default=0.0, ge=0)

    @property
    def is_computable(self) -> bool:
        return self.score != NOT_COMPUTABLE


class PackageScoreRecord(BaseModel):
    """One output line: every metric score and latency for a single URL."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str = Field(alias="URL")
    net_score: float = Field(alias="NetScore")
    net_score_latency: float = Field(alias="NetScore_Latency")
    ramp_up: float = Field(alias="RampUp")
    ramp_up_latency: float = Field(alias="RampUp_Latency")
    correctness: float = Field(alias="Correctness")
    correctness_latency: float = Field(alias="Correctness_Latency")
    bus_factor: float = Field(alias="BusFactor")
    bus_factor_latency: float = Field(alias="BusFactor_Latency")
    responsiveness: float = Field(alias="ResponsiveMaintainer")
    responsiveness_latency: float = Field(alias="ResponsiveMaintainer_Latency")
    license: int = Field(alias="License")
    license_latency: float = Field(alias="License_Latency")

    def to_json(self) -> str:
        """Serialize using the output field names."""
        return self.model_dump_json(by_alias=True)
