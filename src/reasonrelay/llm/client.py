"""Upstream model client built on LiteLLM.

The relay talks to any OpenAI-compatible chat-completions endpoint through
``litellm.acompletion`` with ``stream=True``. Reasoning-capable models get
an ``enable_thinking`` flag in the request body; other models never see it.
"""

import warnings
from collections.abc import AsyncIterator, Sequence
from typing import Any, Optional, Protocol

import litellm

from reasonrelay.chat.models import ChatMessage
from reasonrelay.llm.config import RelayConfig
from reasonrelay.llm.params import ModelParams, ModelParamsStore

# Suppress Pydantic serialization warnings from litellm
warnings.filterwarnings(
    "ignore",
    category=UserWarning,
    message=".*Pydantic serializer warnings.*",
)

REASONING_MODEL_MARKERS = ("qwen",)


def supports_reasoning(model: str) -> bool:
    """Check whether a model accepts the ``enable_thinking`` switch.

    Examples:
        >>> supports_reasoning("openai/qwen-plus-2025-04-28")
        True
        >>> supports_reasoning("gpt-4")
        False
    """
    lowered = model.lower()
    return any(marker in lowered for marker in REASONING_MODEL_MARKERS)


class UpstreamClient(Protocol):
    """Opens one streaming chat call against the model service."""

    model: str

    async def open_stream(
        self, messages: Sequence[ChatMessage], reasoning_mode: bool
    ) -> AsyncIterator[Any]:
        """Open a streaming call and return its chunk iterator.

        Raises:
            Exception: Any failure to establish the call
        """
        ...


async def close_stream(stream: Any) -> None:
    """Close an upstream chunk iterator if it supports closing."""
    aclose = getattr(stream, "aclose", None)
    if aclose is not None:
        await aclose()
        return
    close = getattr(stream, "close", None)
    if close is not None:
        close()


class LiteLLMClient:
    """UpstreamClient implementation backed by ``litellm.acompletion``.

    Attributes:
        model: litellm model name
        api_base: Endpoint base URL
    """

    def __init__(self, config: RelayConfig, params: ModelParamsStore) -> None:
        self.model = config.model
        self.api_base = config.api_base
        self._api_key = config.api_key
        self._timeout = config.timeout_seconds
        self._params = params

        # Failed opens surface as a single error event, never a retry
        litellm.num_retries = 0

    @property
    def supports_reasoning(self) -> bool:
        return supports_reasoning(self.model)

    def build_request(
        self,
        messages: Sequence[ChatMessage],
        reasoning_mode: bool,
        params: Optional[ModelParams] = None,
    ) -> dict[str, Any]:
        """Build the keyword arguments for ``litellm.acompletion``.

        Args:
            messages: Conversation history for this request
            reasoning_mode: Effective reasoning mode
            params: Sampling parameters (defaults to the current store value)

        Returns:
            Keyword arguments for the streaming call
        """
        # Read once so the whole request uses one consistent value
        params = params or self._params.get()

        extra_body: dict[str, Any] = {"top_k": params.top_k}
        if self.supports_reasoning:
            extra_body["enable_thinking"] = reasoning_mode

        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [message.model_dump() for message in messages],
            "stream": True,
            "stream_options": {"include_usage": True},
            "temperature": params.temperature,
            "top_p": params.top_p,
            "timeout": self._timeout,
            "extra_body": extra_body,
        }
        if self._api_key:
            kwargs["api_key"] = self._api_key
        if self.api_base:
            kwargs["api_base"] = self.api_base
        return kwargs

    async def open_stream(
        self, messages: Sequence[ChatMessage], reasoning_mode: bool
    ) -> AsyncIterator[Any]:
        return await litellm.acompletion(**self.build_request(messages, reasoning_mode))
