"""Shared fixtures for pkgscore tests."""

import base64
import logging
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from pkgscore.config import ScoringConfig


def route_handler(routes: dict[str, Any], calls: list[str] | None = None) -> Callable:
    """Build a MockTransport handler that serves payloads by URL path.

    Route values may be a JSON payload, an ``httpx.Response``, or a callable
    taking the request. Unknown paths return 404.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request.url.path)
        entry = routes.get(request.url.path)
        if entry is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if isinstance(entry, httpx.Response):
            return entry
        if callable(entry):
            return entry(request)
        return httpx.Response(200, json=entry)

    return handler


def contents_payload(text: str) -> dict:
    """A GitHub contents API response for a file."""
    return {
        "type": "file",
        "encoding": "base64",
        "content": base64.b64encode(text.encode("utf-8")).decode("ascii"),
    }


@pytest.fixture
def config() -> ScoringConfig:
    return ScoringConfig(github_token="test-token")


@pytest.fixture
async def make_client():
    """Factory for httpx clients backed by a route table."""
    clients: list[httpx.AsyncClient] = []

    def _make(routes: dict[str, Any], calls: list[str] | None = None) -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(route_handler(routes, calls)))
        clients.append(client)
        return client

    yield _make

    for client in clients:
        await client.aclose()


@pytest.fixture
def contents():
    return contents_payload


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Keep the package logger propagating so caplog sees its records."""
    logger = logging.getLogger("pkgscore")
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
