"""Turn-loop flows for model-backed agents."""

from agentcore.flows.base import AutoFlow, BaseLlmFlow, SingleFlow
from agentcore.flows.processors import RequestProcessor, ResponseProcessor, inject_session_state

__all__ = [
    "AutoFlow",
    "BaseLlmFlow",
    "RequestProcessor",
    "ResponseProcessor",
    "SingleFlow",
    "inject_session_state",
]
