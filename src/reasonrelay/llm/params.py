"""Sampling parameters shared by all in-flight requests.

ModelParams is immutable. The store holds a single reference that is
swapped wholesale on update, so a request reading it sees either the old
or the new value and never a mix of the two.
"""

import threading
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ModelParams(BaseModel):
    """Sampling configuration for upstream calls.

    Attributes:
        temperature: Sampling temperature
        top_p: Nucleus sampling probability mass
        top_k: Top-k sampling cutoff
        enable_thinking: Reasoning-mode default when a prompt has no directive
    """

    model_config = ConfigDict(frozen=True)

    temperature: float = Field(default=0.75, ge=0.0, le=2.0)
    top_p: float = Field(default=0.92, gt=0.0, le=1.0)
    top_k: int = Field(default=45, ge=1)
    enable_thinking: bool = True


class ModelParamsStore:
    """Holds the current ModelParams and replaces it atomically.

    Example:
        >>> store = ModelParamsStore()
        >>> store.set_thinking_mode(False).enable_thinking
        False
        >>> store.get().temperature
        0.75
    """

    def __init__(self, params: Optional[ModelParams] = None) -> None:
        self._params = params or ModelParams()
        self._lock = threading.Lock()

    def get(self) -> ModelParams:
        return self._params

    def replace(self, params: ModelParams) -> ModelParams:
        """Swap in a complete new parameter set.

        Args:
            params: The new parameters

        Returns:
            The parameters now in effect
        """
        with self._lock:
            self._params = params
        return params

    def set_thinking_mode(self, enabled: bool) -> ModelParams:
        """Replace the params with a copy whose reasoning default is ``enabled``."""
        with self._lock:
            self._params = self._params.model_copy(update={"enable_thinking": enabled})
            return self._params
