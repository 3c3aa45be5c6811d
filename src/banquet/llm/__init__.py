"""
Banquet - Reasoning Gateway.

Provides structured LLM calls via Instructor.
"""

from banquet.llm.client import GatewayResponse, ReasoningGateway, TokenUsage
from banquet.llm.model_router import get_stage_config

__all__ = [
    "GatewayResponse",
    "ReasoningGateway",
    "TokenUsage",
    "get_stage_config",
]
