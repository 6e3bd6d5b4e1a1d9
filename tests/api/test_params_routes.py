"""Tests for the sampling parameter routes."""

from typing import Any

from fastapi import FastAPI
from fastapi.testclient import TestClient

DEFAULT_PARAMS = {"temperature": 0.75, "top_p": 0.92, "top_k": 45, "enable_thinking": True}


class TestParamsRoutes:
    """Tests for /api/v1/params."""

    def test_get_defaults(self, client: TestClient) -> None:
        response = client.get("/api/v1/params")

        assert response.status_code == 200
        assert response.json() == DEFAULT_PARAMS

    def test_replace(self, client: TestClient, app: FastAPI) -> None:
        new = {"temperature": 0.2, "top_p": 0.8, "top_k": 20, "enable_thinking": False}

        response = client.put("/api/v1/params", json=new)

        assert response.status_code == 200
        assert response.json() == new
        assert app.state.runtime.params.get().top_k == 20

    def test_replace_rejects_invalid(self, client: TestClient) -> None:
        response = client.put("/api/v1/params", json={"temperature": 5})

        assert response.status_code == 422
        assert client.get("/api/v1/params").json() == DEFAULT_PARAMS

    def test_set_thinking_mode(self, client: TestClient) -> None:
        response = client.put("/api/v1/params/thinking", json={"enabled": False})

        assert response.status_code == 200
        assert response.json() == {**DEFAULT_PARAMS, "enable_thinking": False}
        assert client.get("/status").json()["enable_thinking"] is False

    def test_thinking_default_applies_to_new_requests(
        self, client: TestClient, fake_client: Any
    ) -> None:
        client.put("/api/v1/params/thinking", json={"enabled": False})

        client.post("/api/v1/thinking", json={"message": "no directive"})
        client.post("/api/v1/thinking", json={"message": "with directive /think"})

        assert [reasoning_mode for _, reasoning_mode in fake_client.calls] == [False, True]
