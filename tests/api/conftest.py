"""Shared fixtures for API route tests."""

from typing import Any, Callable, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from reasonrelay.api.app import create_app
from reasonrelay.llm.config import RelayConfig


@pytest.fixture
def relay_config() -> RelayConfig:
    return RelayConfig(api_key="sk-test", queue_size=64)


@pytest.fixture
def fake_client(make_client: Callable[..., Any], thinking_chunks: list[dict[str, Any]]) -> Any:
    """Upstream client replaying a reasoning-then-answer stream."""
    return make_client(chunks=thinking_chunks)


@pytest.fixture
def app(relay_config: RelayConfig, fake_client: Any) -> FastAPI:
    return create_app(config=relay_config, client=fake_client)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    """Test client with the application lifespan (and hub) running."""
    with TestClient(app) as test_client:
        yield test_client
