"""
Banquet - Model Router.

Selects the model configuration for each workflow stage.

Stages:
- dietary, dietary_refinement, budget: gpt-4, balanced temperature
- recipe_selection: gpt-4o-mini, low temperature (many calls, pick from a short list)
"""

from typing import TypedDict


class ModelConfig(TypedDict, total=False):
    """Configuration for model calls."""

    model: str
    temperature: float
    max_tokens: int


DEFAULT_CONFIG: ModelConfig = {
    "model": "gpt-4",
    "temperature": 0.7,
    "max_tokens": 2000,
}

STAGE_CONFIGS: dict[str, ModelConfig] = {
    "dietary": DEFAULT_CONFIG,
    "dietary_refinement": DEFAULT_CONFIG,
    "recipe_selection": {
        "model": "gpt-4o-mini",
        "temperature": 0.3,  # Choosing among offered ids should be consistent
        "max_tokens": 1000,
    },
    "budget": DEFAULT_CONFIG,
}


def get_stage_config(stage: str) -> ModelConfig:
    """
    Get model configuration for a workflow stage.

    Unknown stages get DEFAULT_CONFIG. The result is a copy, safe to mutate.
    """
    return dict(STAGE_CONFIGS.get(stage, DEFAULT_CONFIG))  # type: ignore[return-value]
