"""Runtime configuration for scoring runs."""

import logging
import os

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_MAX_CONCURRENT_REQUESTS = 10

# Numeric LOG_LEVEL values and the logging level each one enables
LOG_LEVELS = {
    0: logging.ERROR,
    1: logging.WARNING,
    2: logging.INFO,
    3: logging.DEBUG,
    4: logging.DEBUG,
    5: logging.DEBUG,
}


class ScoringConfig(BaseModel):
    """Settings shared by the pipeline and every adapter it builds.

    Constructed once per run, usually through ``from_env()``, and passed
    explicitly into adapter construction.
    """

    model_config = ConfigDict(frozen=True)

    github_token: str | None = None
    log_level: int = 2
    log_file: str | None = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    max_concurrent_requests: int = DEFAULT_MAX_CONCURRENT_REQUESTS
    github_api_url: str = "https://api.github.com"
    npm_registry_url: str = "https://registry.npmjs.org"

    @property
    def logging_level(self) -> int:
        """Return the stdlib logging level for the numeric ``log_level``."""
        return LOG_LEVELS.get(self.log_level, logging.INFO)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "ScoringConfig":
        """Build a config from environment variables.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.

        Returns:
            ScoringConfig with unset or invalid values left at their defaults.
        """
        env = os.environ if environ is None else environ

        return cls(
            github_token=env.get("GITHUB_TOKEN") or None,
            log_level=_parse_number(env, "LOG_LEVEL", int, 2),
            log_file=env.get("LOG_FILE") or None,
            request_timeout=_parse_number(
                env, "PKGSCORE_REQUEST_TIMEOUT", float, DEFAULT_REQUEST_TIMEOUT
            ),
            max_concurrent_requests=_parse_number(
                env,
                "PKGSCORE_MAX_CONCURRENT_REQUESTS",
                int,
                DEFAULT_MAX_CONCURRENT_REQUESTS,
            ),
        )


def _parse_number(env, key: str, kind: type, default: int | float) -> int | float:
    """Parse a numeric env var, falling back to the default on bad input."""
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = kind(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {key}={raw!r}, using {default}")
        return default
    if value < 0:
        logger.warning(f"Ignoring negative {key}={raw!r}, using {default}")
        return default
    return value
