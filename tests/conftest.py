"""Pytest configuration and shared fixtures for the test suite."""

import asyncio
from typing import Any, Callable, Optional, Sequence

import pytest

from reasonrelay.chat.models import ChatMessage

# Configure pytest-asyncio to use auto mode
pytest_plugins = ["pytest_asyncio"]


class FakeStream:
    """Async chunk iterator standing in for a litellm streaming response.

    Yields ``chunks`` in order, then raises ``read_error`` if given, or
    blocks until cancelled when ``hang`` is set.
    """

    def __init__(
        self,
        chunks: Sequence[Any],
        read_error: Optional[Exception] = None,
        hang: bool = False,
    ) -> None:
        self._chunks = list(chunks)
        self._read_error = read_error
        self._hang = hang
        self.closed = False
        self.yielded = 0

    def __aiter__(self) -> "FakeStream":
        return self

    async def __anext__(self) -> Any:
        if self.yielded < len(self._chunks):
            chunk = self._chunks[self.yielded]
            self.yielded += 1
            await asyncio.sleep(0)
            return chunk
        if self._read_error is not None:
            raise self._read_error
        if self._hang:
            await asyncio.Event().wait()
        raise StopAsyncIteration

    async def aclose(self) -> None:
        self.closed = True


class FakeUpstreamClient:
    """UpstreamClient that replays canned chunks instead of calling a model."""

    def __init__(
        self,
        chunks: Optional[Sequence[Any]] = None,
        open_error: Optional[Exception] = None,
        read_error: Optional[Exception] = None,
        hang: bool = False,
        model: str = "openai/qwen-plus",
    ) -> None:
        self.model = model
        self.chunks = list(chunks or [])
        self.open_error = open_error
        self.read_error = read_error
        self.hang = hang
        self.calls: list[tuple[list[ChatMessage], bool]] = []
        self.streams: list[FakeStream] = []

    async def open_stream(self, messages: Sequence[ChatMessage], reasoning_mode: bool) -> FakeStream:
        self.calls.append((list(messages), reasoning_mode))
        if self.open_error is not None:
            raise self.open_error
        stream = FakeStream(self.chunks, read_error=self.read_error, hang=self.hang)
        self.streams.append(stream)
        return stream


def reasoning_chunk(text: str) -> dict[str, Any]:
    return {"choices": [{"delta": {"reasoning_content": text}}]}


def answer_chunk(text: str) -> dict[str, Any]:
    return {"choices": [{"delta": {"content": text}}]}


def usage_chunk(prompt: int, completion: int) -> dict[str, Any]:
    return {
        "choices": [],
        "usage": {
            "prompt_tokens": prompt,
            "completion_tokens": completion,
            "total_tokens": prompt + completion,
        },
    }


@pytest.fixture
def anyio_backend() -> str:
    """Configure anyio to use asyncio backend."""
    return "asyncio"


@pytest.fixture
def make_client() -> Callable[..., FakeUpstreamClient]:
    """Factory for fake upstream clients.

    Example:
        >>> client = make_client(chunks=[answer_chunk("hi")])
    """
    return FakeUpstreamClient


@pytest.fixture
def chunks() -> Any:
    """Builders for upstream chunk dictionaries."""

    class _Chunks:
        reasoning = staticmethod(reasoning_chunk)
        answer = staticmethod(answer_chunk)
        usage = staticmethod(usage_chunk)

    return _Chunks


@pytest.fixture
def thinking_chunks(chunks: Any) -> list[dict[str, Any]]:
    """A reasoning-then-answer stream: step1, step2, ans1, ans2."""
    return [
        chunks.reasoning("step1"),
        chunks.reasoning("step2"),
        chunks.answer("ans1"),
        chunks.answer("ans2"),
    ]
