"""Package quality scoring for npm packages and GitHub repositories."""

__version__ = "0.1.0"
