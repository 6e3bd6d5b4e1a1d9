"""Upstream model access: configuration, sampling parameters and client."""

from reasonrelay.llm.client import LiteLLMClient, UpstreamClient, supports_reasoning
from reasonrelay.llm.config import RelayConfig, load_config_from_env
from reasonrelay.llm.params import ModelParams, ModelParamsStore

__all__ = [
    "LiteLLMClient",
    "UpstreamClient",
    "supports_reasoning",
    "RelayConfig",
    "load_config_from_env",
    "ModelParams",
    "ModelParamsStore",
]
