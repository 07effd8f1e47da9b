"""Data models and schemas."""

from pkgscore.models.schemas import (
    NOT_COMPUTABLE,
    Contributor,
    GitHubRepoData,
    Issue,
    MetricResult,
    NpmPackageData,
    PackageScoreRecord,
    RepositoryIdentity,
    SourceKind,
)

__all__ = [
    "NOT_COMPUTABLE",
    "Contributor",
    "GitHubRepoData",
    "Issue",
    "MetricResult",
    "NpmPackageData",
    "PackageScoreRecord",
    "RepositoryIdentity",
    "SourceKind",
]
