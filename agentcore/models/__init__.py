"""Model adapter contract and the LiteLLM adapter."""

from agentcore.models.base import BaseLlm
from agentcore.models.lite_llm import LiteLlm
from agentcore.models.llm_request import GenerateConfig, LlmRequest
from agentcore.models.llm_response import LlmResponse, UsageMetadata

__all__ = [
    "BaseLlm",
    "GenerateConfig",
    "LiteLlm",
    "LlmRequest",
    "LlmResponse",
    "UsageMetadata",
]
