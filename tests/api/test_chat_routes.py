"""Tests for the HTTP chat endpoints."""

import json
from typing import Any, Callable

from fastapi.testclient import TestClient

from reasonrelay.api.app import create_app
from reasonrelay.llm.config import RelayConfig


def parse_sse(body: str) -> list[tuple[str, dict[str, Any]]]:
    events = []
    for block in body.strip().split("\n\n"):
        lines = block.split("\n")
        event_type = lines[0][len("event: ") :]
        data = json.loads(lines[1][len("data: ") :])
        events.append((event_type, data))
    return events


class TestChatEndpoint:
    """Tests for POST /api/v1/chat."""

    def test_streams_stage_events(self, client: TestClient, fake_client: Any) -> None:
        response = client.post("/api/v1/chat", json={"message": "Why is the sky blue? /think"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"

        events = parse_sse(response.text)
        assert [event_type for event_type, _ in events] == [
            "reasoning",
            "reasoning",
            "reasoning_complete",
            "answer",
            "answer",
            "complete",
        ]
        assert all(event_type == data["stage"] for event_type, data in events)
        assert len({data["session_id"] for _, data in events}) == 1
        assert events[-1][1]["content"] == "ans1ans2"
        assert events[-1][1]["complete"] is True

        messages, reasoning_mode = fake_client.calls[0]
        assert messages[0].content == "Why is the sky blue?"
        assert reasoning_mode is True

    def test_regular_mode(self, client: TestClient, fake_client: Any) -> None:
        client.post("/api/v1/chat", json={"message": "Hi /think", "mode": "regular"})
        assert fake_client.calls[0][1] is False

    def test_upstream_failure_is_an_error_event(self, make_client: Callable[..., Any]) -> None:
        failing = make_client(open_error=ConnectionError("refused"))
        app = create_app(config=RelayConfig(api_key="sk-test"), client=failing)

        with TestClient(app) as client:
            response = client.post("/api/v1/chat", json={"message": "Hi"})

        assert response.status_code == 200
        events = parse_sse(response.text)
        assert len(events) == 1
        assert events[0][0] == "error"
        assert events[0][1]["content"] == "Upstream open failed: refused"
        assert events[0][1]["complete"] is True

    def test_whitespace_message_rejected(self, client: TestClient) -> None:
        response = client.post("/api/v1/chat", json={"message": "   "})

        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"

    def test_missing_message_rejected(self, client: TestClient) -> None:
        response = client.post("/api/v1/chat", json={})
        assert response.status_code == 422


class TestThinkingEndpoint:
    """Tests for POST /api/v1/thinking."""

    def test_returns_aggregate(self, client: TestClient) -> None:
        response = client.post("/api/v1/thinking", json={"message": "Why?"})

        assert response.status_code == 200
        assert response.json() == {
            "reasoning_content": "step1step2",
            "answer_content": "ans1ans2",
            "is_complete": True,
        }

    def test_upstream_failure_returns_502(self, make_client: Callable[..., Any]) -> None:
        failing = make_client(open_error=RuntimeError("bad key"))
        app = create_app(config=RelayConfig(api_key="sk-test"), client=failing)

        with TestClient(app) as client:
            response = client.post("/api/v1/thinking", json={"message": "Hi"})

        assert response.status_code == 502
        data = response.json()
        assert data["code"] == "upstream_open_failed"
        assert "Upstream open failed: bad key" in data["message"]

    def test_upstream_read_failure_returns_502(
        self, make_client: Callable[..., Any], chunks: Any
    ) -> None:
        failing = make_client(chunks=[chunks.answer("x")], read_error=RuntimeError("reset"))
        app = create_app(config=RelayConfig(api_key="sk-test"), client=failing)

        with TestClient(app) as client:
            response = client.post("/api/v1/thinking", json={"message": "Hi"})

        assert response.status_code == 502
        data = response.json()
        assert data["code"] == "upstream_read_failed"
        assert data["message"] == "Upstream read failed: reset"
