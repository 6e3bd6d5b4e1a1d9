"""Sampling parameter routes.

Parameters are replaced as a whole value; there is no partial update of
individual fields besides the reasoning-mode toggle, which also swaps in a
complete new value.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from reasonrelay.api.dependencies import get_params_store
from reasonrelay.llm.params import ModelParams, ModelParamsStore
from reasonrelay.observability.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/api/v1/params", tags=["params"])


class ThinkingModeRequest(BaseModel):
    """Body for toggling the reasoning-mode default."""

    enabled: bool


@router.get("", response_model=ModelParams)
async def get_params(store: ModelParamsStore = Depends(get_params_store)) -> ModelParams:
    return store.get()


@router.put("", response_model=ModelParams)
async def replace_params(
    params: ModelParams, store: ModelParamsStore = Depends(get_params_store)
) -> ModelParams:
    """Replace the sampling parameters used by new requests."""
    updated = store.replace(params)
    logger.info("model_params_replaced", **updated.model_dump())
    return updated


@router.put("/thinking", response_model=ModelParams)
async def set_thinking_mode(
    body: ThinkingModeRequest, store: ModelParamsStore = Depends(get_params_store)
) -> ModelParams:
    """Enable or disable reasoning for prompts without a directive."""
    updated = store.set_thinking_mode(body.enabled)
    logger.info("thinking_mode_changed", enabled=body.enabled)
    return updated
