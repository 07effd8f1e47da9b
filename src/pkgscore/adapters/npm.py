"""NPM registry source adapter."""

import logging
from datetime import datetime

import httpx

from pkgscore.adapters.base import BaseAdapter, parse_timestamp
from pkgscore.models.schemas import Contributor, Issue, NpmPackageData, SourceKind

logger = logging.getLogger(__name__)

FETCH_ERRORS = (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError)


class NpmAdapter(BaseAdapter):
    """Adapter for the NPM package registry.

    Data sources:
    - Package document: {registry}/{package}

    The registry has no issue tracker, so issue reads are always empty;
    calculators that need issues go through the linked GitHub repository.
    """

    @property
    def source(self) -> SourceKind:
        return SourceKind.NPM

    @property
    def package_name(self) -> str:
        return self.ensure_identity().repo

    async def fetch_repository_metadata(self) -> NpmPackageData | None:
        return await self.memoize("metadata", self._fetch_package_document)

    async def _fetch_package_document(self) -> NpmPackageData | None:
        """Fetch the registry document for the package.

        Supports scoped packages like @org/pkg.
        """
        name = self.package_name
        if not name:
            logger.error(f"No package name in {self.identity.original_url!r}")
            return None

        # URL-encode scoped package names
        encoded_name = name.replace("/", "%2F")
        url = f"{self.config.npm_registry_url.rstrip('/')}/{encoded_name}"
        logger.info(f"Making API call to npm: {name}")

        try:
            response = await self._get(url)
            if response.status_code == 404:
                logger.warning(f"Package '{name}' not found in npm")
                return None
            response.raise_for_status()
            data = response.json()
            return self._parse_document(name, data)
        except FETCH_ERRORS as e:
            logger.error(f"Error fetching npm package {name}: {e}")
            return None

    def _parse_document(self, name: str, data: dict) -> NpmPackageData:
        """Normalize a registry document around its latest version."""
        # Get latest version info
        dist_tags = data.get("dist-tags") or {}
        latest_version = dist_tags.get("latest", "")

        # Get version-specific data
        versions = data.get("versions") or {}
        version_data = versions.get(latest_version) or {}

        repository = data.get("repository") or version_data.get("repository")

        return NpmPackageData(
            name=data.get("name") or name,
            latest_version=latest_version,
            versions=list(versions.keys()),
            maintainers=self._people(data.get("maintainers")),
            contributors=self._people(data.get("contributors")),
            dependencies=version_data.get("dependencies") or {},
            dev_dependencies=version_data.get("devDependencies") or {},
            scripts=version_data.get("scripts") or {},
            repository_url=self._extract_repo_url(repository),
            readme=data.get("readme") or version_data.get("readme") or None,
            license=self._extract_license(data, version_data),
            time={k: v for k, v in (data.get("time") or {}).items() if isinstance(v, str)},
        )

    @staticmethod
    def _people(entries: list | None) -> list[dict]:
        """Normalize maintainer/contributor entries to dicts.

        npm allows both ``{"name": ..., "email": ...}`` objects and
        ``"Name <email>"`` strings.
        """
        people = []
        for entry in entries or []:
            if isinstance(entry, dict):
                people.append(entry)
            elif isinstance(entry, str) and entry.strip():
                person_name, _, email = entry.partition("<")
                people.append({"name": person_name.strip(), "email": email.rstrip(">").strip()})
        return people

    def _extract_repo_url(self, repository: dict | str | None) -> str | None:
        """Extract the raw repository URL from the npm repository field.

        Handles:
        - {"type": "git", "url": "git+https://github.com/owner/repo.git"}
        - "github:owner/repo"
        - "https://github.com/owner/repo"
        """
        if not repository:
            return None

        if isinstance(repository, str):
            url = repository
        elif isinstance(repository, dict):
            url = repository.get("url", "")
        else:
            return None

        if not url:
            return None

        # Handle GitHub shorthand
        if url.startswith("github:"):
            url = f"https://github.com/{url[7:]}"

        return url

    def _extract_license(self, data: dict, version_data: dict) -> str | None:
        """Extract license from npm package data."""
        license_info = data.get("license") or version_data.get("license")

        if isinstance(license_info, str):
            return license_info
        elif isinstance(license_info, dict):
            return license_info.get("type") or license_info.get("name")
        elif isinstance(license_info, list) and license_info:
            first = license_info[0]
            if isinstance(first, str):
                return first
            elif isinstance(first, dict):
                return first.get("type") or first.get("name")

        return None

    async def fetch_contributors(self) -> list[Contributor]:
        """Return contributors, falling back to maintainers.

        npm does not report contribution volume, so every person is weighted
        equally with a single contribution.
        """
        metadata = await self.fetch_repository_metadata()
        if metadata is None:
            return []

        people = metadata.contributors or metadata.maintainers
        if not people:
            logger.warning(f"No contributors found in the metadata for {metadata.name}")
            return []

        return [
            Contributor(
                login=person.get("name") or person.get("email") or "unknown",
                contributions=1,
            )
            for person in people
        ]

    async def fetch_readme(self) -> str | None:
        metadata = await self.fetch_repository_metadata()
        return metadata.readme if metadata else None

    async def fetch_issues(self, limit: int = 50) -> list[Issue]:
        return []

    async def fetch_issue_comments(self, issue_number: int) -> list[datetime]:
        return []

    async def fetch_license_id(self) -> str | None:
        metadata = await self.fetch_repository_metadata()
        return metadata.license if metadata else None

    async def fetch_last_publish_date(self) -> datetime | None:
        """Return the publish time of the latest version."""
        metadata = await self.fetch_repository_metadata()
        if metadata is None or not metadata.latest_version:
            return None
        return parse_timestamp(metadata.time.get(metadata.latest_version))
