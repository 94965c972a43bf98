"""Shared test fixtures.

Upstreams (node RPC, exchanges) are httpx.MockTransport fakes that record
every request they see. time.time is frozen so rate-limit windows only
expire when a test advances it.
"""

import time
from collections.abc import AsyncGenerator, Callable
from pathlib import Path
from typing import Any

import httpx
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from config.settings import Settings
from src.main import create_app
from tests.fakes import FakeUpstream, FrozenTime


def node_ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"result": 123456, "error": None, "id": "web-wallet"})


def exchange_empty(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json=[])


@pytest.fixture
def frozen_time(monkeypatch: pytest.MonkeyPatch) -> FrozenTime:
    frozen = FrozenTime(float(int(time.time())))
    monkeypatch.setattr(time, "time", frozen)
    return frozen


@pytest.fixture
def rpc_backend() -> FakeUpstream:
    return FakeUpstream(node_ok)


@pytest.fixture
def exchange_backend() -> FakeUpstream:
    return FakeUpstream(exchange_empty)


@pytest.fixture
def make_settings(tmp_path: Path) -> Callable[..., Settings]:
    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "RPC_USER": "webrpc",
            "RPC_PASSWORD": "s3cret",
            "RPC_HOST": "127.0.0.1",
            "RPC_PORT": 25332,
            "STATIC_ROOT": str(tmp_path / "no-static"),
            "LOG_LEVEL": "WARNING",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def make_app(
    make_settings: Callable[..., Settings],
    frozen_time: FrozenTime,
    rpc_backend: FakeUpstream,
    exchange_backend: FakeUpstream,
) -> Callable[..., FastAPI]:
    def _make(**overrides: Any) -> FastAPI:
        return create_app(
            make_settings(**overrides),
            rpc_transport=rpc_backend.transport,
            exchange_transport=exchange_backend.transport,
        )

    return _make


@pytest.fixture
async def client(make_app: Callable[..., FastAPI]) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against an app with default test settings."""
    transport = ASGITransport(app=make_app())
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_client(make_app: Callable[..., FastAPI]) -> Callable[..., AsyncClient]:
    """Client factory for tests that need non-default settings.

    Usage: async with make_client(RPC_USER="") as ac: ...
    """

    def _make(**overrides: Any) -> AsyncClient:
        transport = ASGITransport(app=make_app(**overrides))
        return AsyncClient(transport=transport, base_url="http://test")

    return _make
