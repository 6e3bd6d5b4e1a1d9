"""FastAPI dependencies and runtime wiring.

The relay runtime (configuration, sampling params, upstream client, stream
driver, connection hub and chat service) is built once per application in
the lifespan handler and stored on ``app.state.runtime``.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Request
from starlette.requests import HTTPConnection

from reasonrelay.chat.driver import StreamDriver
from reasonrelay.chat.service import ChatService
from reasonrelay.hub.hub import ConnectionHub
from reasonrelay.llm.client import LiteLLMClient, UpstreamClient, supports_reasoning
from reasonrelay.llm.config import RelayConfig
from reasonrelay.llm.params import ModelParams, ModelParamsStore


@dataclass
class RelayRuntime:
    """Everything a request handler needs to serve the relay."""

    config: RelayConfig
    params: ModelParamsStore
    client: UpstreamClient
    driver: StreamDriver
    hub: ConnectionHub
    service: ChatService

    @property
    def supports_reasoning(self) -> bool:
        return supports_reasoning(self.client.model)


def build_runtime(config: RelayConfig, client: Optional[UpstreamClient] = None) -> RelayRuntime:
    """Wire the relay components together.

    Args:
        config: Relay configuration
        client: Upstream client override (defaults to LiteLLMClient)

    Returns:
        RelayRuntime whose hub still has to be started
    """
    params = ModelParamsStore(ModelParams(enable_thinking=config.enable_thinking))
    upstream = client or LiteLLMClient(config, params)
    driver = StreamDriver(upstream)
    hub = ConnectionHub()
    service = ChatService(driver, hub, params, supports_reasoning=supports_reasoning(upstream.model))
    return RelayRuntime(
        config=config,
        params=params,
        client=upstream,
        driver=driver,
        hub=hub,
        service=service,
    )


def get_runtime(connection: HTTPConnection) -> RelayRuntime:
    """Return the runtime of the application serving this request or socket."""
    return connection.app.state.runtime


def get_chat_service(request: Request) -> ChatService:
    return get_runtime(request).service


def get_params_store(request: Request) -> ModelParamsStore:
    return get_runtime(request).params
