"""CLI entry point for pkgscore."""

import asyncio
from pathlib import Path

# Load .env file if it exists
from dotenv import load_dotenv
load_dotenv()

import typer
from rich.console import Console

from pkgscore import __version__
from pkgscore.analyzers.pipeline import ScoringPipeline
from pkgscore.config import ScoringConfig
from pkgscore.log import configure_logging
from pkgscore.models.schemas import PackageScoreRecord

app = typer.Typer(help="Score npm packages and GitHub repositories.")

# Diagnostics go to stderr; stdout carries one JSON record per line
console = Console(stderr=True)


def read_urls(url_file: Path) -> list[str]:
    """Read non-blank, stripped lines from a URL file."""
    text = url_file.read_text(encoding="utf-8")
    return [line.strip() for line in text.splitlines() if line.strip()]


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"pkgscore {__version__}")
        raise typer.Exit()


@app.command()
def score(
    url_file: Path = typer.Argument(..., help="File with one package or repository URL per line"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit",
    ),
) -> None:
    """Score every URL in URL_FILE and print NDJSON, best NetScore first."""
    try:
        urls = read_urls(url_file)
    except OSError as e:
        console.print(f"[red]Cannot read URL file {url_file}: {e}[/red]")
        raise typer.Exit(1)

    config = ScoringConfig.from_env()
    configure_logging(config)

    records = asyncio.run(_score(urls, config))
    for record in records:
        typer.echo(record.to_json())


async def _score(urls: list[str], config: ScoringConfig) -> list[PackageScoreRecord]:
    """Async implementation of score."""
    async with ScoringPipeline(config) as pipeline:
        return await pipeline.score_urls(urls)


if __name__ == "__main__":
    app()
