"""Relay configuration models and utilities.

This module provides configuration for the upstream model service, the
connection hub, and the HTTP server, loaded from environment variables
(and a ``.env`` file when present).
"""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_MODEL = "openai/qwen-plus"
DEFAULT_API_BASE = "https://dashscope-intl.aliyuncs.com/compatible-mode/v1"


class RelayConfig(BaseModel):
    """Process-wide relay configuration.

    Attributes:
        model: litellm model name (e.g., "openai/qwen-plus")
        api_key: API key for the model service (sensitive - not logged)
        api_base: Base URL of the OpenAI-compatible endpoint
        timeout_ms: Upstream request timeout in milliseconds
        queue_size: Capacity of each connection's outbound queue
        host: HTTP bind address
        port: HTTP port
        enable_thinking: Initial reasoning-mode default

    Example:
        >>> config = RelayConfig(model="openai/qwen-max", queue_size=64)
        >>> config.timeout_seconds
        60.0
    """

    model_config = ConfigDict(frozen=True)

    model: str = Field(default=DEFAULT_MODEL, min_length=1, description="litellm model name")
    api_key: Optional[str] = Field(default=None, repr=False, description="API key (sensitive)")
    api_base: Optional[str] = Field(default=DEFAULT_API_BASE, description="Base URL")
    timeout_ms: int = Field(
        default=60000, ge=1000, le=600000, description="Request timeout (1s-10min)"
    )
    queue_size: int = Field(default=256, ge=1, description="Per-connection outbound queue size")
    host: str = Field(default="0.0.0.0", description="HTTP bind address")
    port: int = Field(default=8080, ge=1, le=65535, description="HTTP port")
    enable_thinking: bool = Field(default=True, description="Initial reasoning-mode default")

    @field_validator("api_base")
    @classmethod
    def strip_trailing_slash(cls, value: Optional[str]) -> Optional[str]:
        """Normalize the API base so paths can be appended safely."""
        if value is None:
            return None
        return value.rstrip("/") or None

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def load_config_from_env() -> RelayConfig:
    """Load relay configuration from environment variables.

    Automatically loads variables from .env file if present.

    Reads configuration from environment variables:
    - RELAY_LLM_MODEL: litellm model name
    - RELAY_LLM_API_KEY (or DASHSCOPE_API_KEY): API key
    - RELAY_LLM_API_BASE (or DASHSCOPE_BASE_URL): endpoint base URL
    - RELAY_LLM_TIMEOUT_MS: Request timeout in milliseconds
    - RELAY_QUEUE_SIZE: Per-connection outbound queue capacity
    - RELAY_HTTP_HOST / RELAY_HTTP_PORT: HTTP bind address and port
    - RELAY_ENABLE_THINKING: Initial reasoning-mode default (true/false)

    Returns:
        RelayConfig loaded from environment

    Example:
        >>> import os
        >>> os.environ["RELAY_LLM_MODEL"] = "openai/qwen-max"
        >>> load_config_from_env().model
        'openai/qwen-max'
    """
    load_dotenv()

    api_key = os.getenv("RELAY_LLM_API_KEY") or os.getenv("DASHSCOPE_API_KEY")
    api_base = (
        os.getenv("RELAY_LLM_API_BASE") or os.getenv("DASHSCOPE_BASE_URL") or DEFAULT_API_BASE
    )

    return RelayConfig(
        model=os.getenv("RELAY_LLM_MODEL", DEFAULT_MODEL),
        api_key=api_key,
        api_base=api_base,
        timeout_ms=int(os.getenv("RELAY_LLM_TIMEOUT_MS", "60000")),
        queue_size=int(os.getenv("RELAY_QUEUE_SIZE", "256")),
        host=os.getenv("RELAY_HTTP_HOST", "0.0.0.0"),
        port=int(os.getenv("RELAY_HTTP_PORT", "8080")),
        enable_thinking=_env_bool("RELAY_ENABLE_THINKING", "true"),
    )
