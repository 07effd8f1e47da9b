"""License metric: compatibility with LGPL-2.1 distribution."""

import logging
import re
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from pkgscore.adapters.base import BaseAdapter
from pkgscore.adapters.github import GitHubAdapter
from pkgscore.adapters.npm import NpmAdapter
from pkgscore.adapters.resolver import resolve_github_adapter
from pkgscore.analyzers.base import MetricCalculator

logger = logging.getLogger(__name__)

# Licenses compatible with LGPL-2.1
COMPATIBLE_LICENSES = [
    "MIT",
    "Apache-2.0",
    "Artistic-2.0",
    "BSL-1.0",
    "BSD-2-Clause",
    "BSD-3-Clause",
    "BSD-3-Clause-Clear",
    "0BSD",
    "CC0-1.0",
    "ECL-2.0",
    "EPL-1.0",
    "EPL-2.0",
    "GPL-2.0",
    "GPL-3.0",
    "LGPL-2.1",
    "LGPL-3.0",
    "ISC",
    "MPL-2.0",
    "PostgreSQL",
    "NCSA",
    "Unlicense",
    "Zlib",
    "none",
    "other",
]

# Licenses incompatible with LGPL-2.1
INCOMPATIBLE_LICENSES = [
    "AFL-3.0",
    "BSD-4-Clause",
    "CC",
    "CC-BY-4.0",
    "CC-BY-SA-4.0",
    "WTFPL",
    "EUPL-1.1",
    "AGPL-3.0",
    "LPPL-1.3c",
    "MS-PL",
    "OSL-3.0",
    "OFL-1.1",
]

# Placeholders a registry reports when no SPDX identifier applies
UNSPECIFIED_LICENSES = {"none", "other"}

LICENSE_SUFFIXES = ("-or-later", "-only", "+")

# Titles from the top of license texts, mapped to their identifiers. Checked
# in order, so more specific titles come first.
LICENSE_TITLES = [
    ("gnu affero general public license", "AGPL-3.0"),
    ("do what the fuck you want to public license", "WTFPL"),
    ("european union public licence", "EUPL-1.1"),
    ("open software license", "OSL-3.0"),
    ("microsoft public license", "MS-PL"),
    ("sil open font license", "OFL-1.1"),
    ("gnu lesser general public license", "LGPL-3.0"),
    ("gnu library general public license", "LGPL-2.1"),
    ("gnu general public license", "GPL-3.0"),
    ("mit license", "MIT"),
    ("apache license", "Apache-2.0"),
    ("isc license", "ISC"),
    ("mozilla public license", "MPL-2.0"),
    ("boost software license", "BSL-1.0"),
    ("eclipse public license", "EPL-2.0"),
    ("artistic license 2.0", "Artistic-2.0"),
    ("zlib license", "Zlib"),
    ("postgresql license", "PostgreSQL"),
]

# Number of non-blank lines treated as a license text's title block
TITLE_LINES = 5

# Phrases from license bodies that identify a license wherever they appear
LICENSE_BODY_PHRASES = [
    ("this is free and unencumbered software released into the public domain", "Unlicense"),
    ("permission is hereby granted, free of charge", "MIT"),
]

README_FILE = "README.md"
LICENSE_FILE = "LICENSE"

LICENSE_HEADING = re.compile(r"^#{1,3}\s*licen[cs]e\b", re.IGNORECASE)


def normalize_license_id(license_id: str | None) -> str:
    """Lower-case an identifier and strip version-range suffixes."""
    if not license_id:
        return ""
    key = license_id.strip().lower()
    for suffix in LICENSE_SUFFIXES:
        if key.endswith(suffix):
            key = key[: -len(suffix)]
            break
    return key


_COMPATIBLE = {normalize_license_id(name) for name in COMPATIBLE_LICENSES}
_INCOMPATIBLE = {normalize_license_id(name) for name in INCOMPATIBLE_LICENSES}


def is_license_compatible(license_id: str | None, allow_unspecified: bool = True) -> bool:
    """Check an identifier against the compatibility tables.

    Matching is case-insensitive and ignores ``-or-later``/``-only``
    suffixes. Unknown identifiers are incompatible.

    Args:
        license_id: Identifier such as ``MIT`` or ``GPL-3.0-or-later``.
        allow_unspecified: Whether ``none`` and ``other`` count as compatible.
    """
    key = normalize_license_id(license_id)
    if not key or key in _INCOMPATIBLE:
        return False
    if key in UNSPECIFIED_LICENSES:
        return allow_unspecified
    return key in _COMPATIBLE


def _identifier_pattern(name: str) -> re.Pattern:
    suffixes = "|".join(re.escape(s) for s in LICENSE_SUFFIXES)
    return re.compile(
        rf"(?<![\w-]){re.escape(name)}(?:{suffixes})?(?![\w-])",
        re.IGNORECASE,
    )


# Incompatible identifiers are matched first so e.g. "AGPL-3.0" is never read
# as a compatible license.
_IDENTIFIER_PATTERNS = [
    (name, _identifier_pattern(name))
    for name in INCOMPATIBLE_LICENSES + COMPATIBLE_LICENSES
    if name not in UNSPECIFIED_LICENSES
]


def detect_license(text: str | None) -> str | None:
    """Find the license a piece of text names.

    Titles are only matched in the first few non-blank lines, since license
    bodies mention other licenses (GPL-3.0 refers to the AGPL). Identifiers
    and distinctive body phrases are then matched anywhere.
    """
    if not text:
        return None

    title_block = [line for line in text.splitlines() if line.strip()][:TITLE_LINES]
    heading = " ".join(" ".join(title_block).lower().split())
    for title, license_id in LICENSE_TITLES:
        if title in heading:
            return license_id

    for license_id, pattern in _IDENTIFIER_PATTERNS:
        if pattern.search(text):
            return license_id

    lowered = " ".join(text.lower().split())
    for phrase, license_id in LICENSE_BODY_PHRASES:
        if phrase in lowered:
            return license_id
    return None


def readme_license_line(readme: str | None) -> str | None:
    """Return the first non-blank line after a ``## License`` heading."""
    if not readme:
        return None

    lines = readme.splitlines()
    for index, line in enumerate(lines):
        if LICENSE_HEADING.match(line.strip()):
            for following in lines[index + 1 :]:
                if following.strip():
                    return following.strip()
            return None
    return None


@contextmanager
def scratch_directory(prefix: str = "pkgscore-license-") -> Iterator[Path]:
    """Create a temporary directory that is removed on every exit path.

    Removal failures are logged, never raised.
    """
    path = Path(tempfile.mkdtemp(prefix=prefix))
    try:
        yield path
    finally:
        try:
            shutil.rmtree(path)
        except OSError as e:
            logger.error(f"Failed to remove scratch directory {path}: {e}")


class LicenseCalculator(MetricCalculator):
    """Three-stage license check, stopping at the first compatible hit.

    Stages:
    1. README ``## License`` section
    2. LICENSE file text
    3. License identifier reported by the source

    Stages 1 and 2 read the repository's files through a scratch copy; npm
    packages use their linked GitHub repository for those. The verdict is
    1 (compatible) or 0.
    """

    name = "license"

    async def compute(self, adapter: BaseAdapter) -> float:
        repository = await self._repository_for(adapter)
        if repository is not None and await self.check_repository_files(repository):
            return 1

        license_id = await adapter.fetch_license_id()
        if is_license_compatible(license_id):
            logger.debug(f"Reported license {license_id!r} is compatible")
            return 1

        logger.info(f"No compatible license found for {adapter.identity.original_url} (reported {license_id!r})")
        return 0

    async def _repository_for(self, adapter: BaseAdapter) -> GitHubAdapter | None:
        if isinstance(adapter, GitHubAdapter):
            return adapter
        if isinstance(adapter, NpmAdapter):
            return await resolve_github_adapter(adapter)
        return None

    async def check_repository_files(self, repository: GitHubAdapter) -> bool:
        """Run the README and LICENSE stages against a scratch copy of the files."""
        with scratch_directory() as workdir:
            await self._fetch_files(repository, workdir)

            readme_path = workdir / README_FILE
            if readme_path.exists() and self.check_readme_file(readme_path):
                return True

            license_path = workdir / LICENSE_FILE
            if license_path.exists() and self.check_license_file(license_path):
                return True
        return False

    async def _fetch_files(self, repository: GitHubAdapter, workdir: Path) -> None:
        # The README endpoint finds any README name; LICENSE is read by path
        files = {
            README_FILE: await repository.fetch_readme(),
            LICENSE_FILE: await repository.fetch_file_text(LICENSE_FILE),
        }
        for name, text in files.items():
            if text is not None:
                (workdir / name).write_text(text, encoding="utf-8")

    def check_readme_file(self, path: Path) -> bool:
        line = readme_license_line(path.read_text(encoding="utf-8", errors="replace"))
        license_id = detect_license(line)
        return license_id is not None and is_license_compatible(license_id, allow_unspecified=False)

    def check_license_file(self, path: Path) -> bool:
        license_id = detect_license(path.read_text(encoding="utf-8", errors="replace"))
        return license_id is not None and is_license_compatible(license_id, allow_unspecified=False)
