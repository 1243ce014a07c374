"""Pytest configuration and shared fixtures."""
# pylint: disable=redefined-outer-name  # pytest fixture injection pattern

import json
import os
from typing import Any, Callable

import httpx
import pytest

from quipubase import ClientConfig, QuipuBase

BASE_URL = "http://quipubase.test"


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: tests that talk to a live service (QUIPUBASE_LIVE_URL)"
    )


def pytest_collection_modifyitems(config, items):
    """Auto-skip live tests unless a service URL is configured."""
    skip_live = pytest.mark.skip(reason="QUIPUBASE_LIVE_URL not set")
    if os.environ.get("QUIPUBASE_LIVE_URL"):
        return
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_live)


class Recorder:
    """MockTransport handler that records requests and replays a canned response."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.respond: Callable[[httpx.Request], httpx.Response] = (
            lambda request: httpx.Response(200, json={})
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    def reply_json(self, payload: Any, status_code: int = 200) -> None:
        self.respond = lambda request: httpx.Response(status_code, json=payload)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_body(self) -> Any:
        return json.loads(self.last.content)


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
async def http_client(recorder):
    async with httpx.AsyncClient(transport=httpx.MockTransport(recorder)) as c:
        yield c


@pytest.fixture
def client(http_client):
    return QuipuBase(BASE_URL, http_client=http_client)


@pytest.fixture
def make_client(http_client):
    """Build a client over the recording transport with a given subscribe mode."""

    def _make(mode: str = "push") -> QuipuBase:
        return QuipuBase(
            config=ClientConfig(base_url=BASE_URL, subscribe_mode=mode),
            http_client=http_client,
        )

    return _make
