# File: tests/conftest.py
from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

import pytest
from aiohttp import web

from link_scout.config import CheckerConfig
from link_scout.logger import init_logging

#: what a fake request produces: (status, headers) or an exception to raise
FakeOutcome = Union[Tuple[int, Dict[str, str]], BaseException]


@pytest.fixture(autouse=True)
def reset_logging():
    """CLI tests rebind the project logger to CliRunner's streams; restore it."""
    yield
    init_logging()


@pytest.fixture()
def results_path(tmp_path) -> Path:
    return tmp_path / "results.yaml"


@pytest.fixture()
def basic_config(tmp_path, results_path) -> CheckerConfig:
    """
    Return a CheckerConfig that keeps every file inside tmp_path.
    """
    return CheckerConfig(
        document=tmp_path / "README.md",
        results=results_path,
        max_connections=4,
        timeout=2.0,
    )


@pytest.fixture()
def write_document(basic_config) -> Callable[[str], Path]:
    """Write the markdown document the config points at."""

    def _write(text: str) -> Path:
        basic_config.document.write_text(text, encoding="utf-8")
        return basic_config.document

    return _write


# --------------------------------------------------------------------------- #
#                           In-memory HTTP session                            #
# --------------------------------------------------------------------------- #


class FakeResponse:
    def __init__(self, status: int, headers: Optional[Dict[str, str]] = None) -> None:
        self.status = status
        self.headers = headers or {}


class _FakeRequest:
    def __init__(self, outcome: FakeOutcome) -> None:
        self._outcome = outcome

    async def __aenter__(self) -> FakeResponse:
        # let other tasks run, as a real request would
        await asyncio.sleep(0)
        if isinstance(self._outcome, BaseException):
            raise self._outcome
        status, headers = self._outcome
        return FakeResponse(status, headers)

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None


class FakeSession:
    """Stand-in for aiohttp.ClientSession: *handler(url)* decides each response."""

    def __init__(self, handler: Callable[[str], FakeOutcome]) -> None:
        self.handler = handler
        self.calls: List[str] = []
        self.kwargs: List[dict] = []

    def get(self, url: str, **kwargs) -> _FakeRequest:
        self.calls.append(url)
        self.kwargs.append(kwargs)
        return _FakeRequest(self.handler(url))


@pytest.fixture()
def fake_session_factory() -> Callable[[Callable[[str], FakeOutcome]], FakeSession]:
    return FakeSession


# --------------------------------------------------------------------------- #
#                               Test server                                   #
# --------------------------------------------------------------------------- #


async def serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()
