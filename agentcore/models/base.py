"""Model adapter contract.

The execution core depends only on this protocol: given a request, produce a
lazy sequence of response chunks.
"""

from collections.abc import AsyncIterator
from typing import Protocol, runtime_checkable

from agentcore.models.llm_request import LlmRequest
from agentcore.models.llm_response import LlmResponse


@runtime_checkable
class BaseLlm(Protocol):
    """Interface every model adapter implements."""

    @property
    def model(self) -> str:
        """Model identifier, used for metrics and tracing."""
        ...

    def generate(self, request: LlmRequest, stream: bool = False) -> AsyncIterator[LlmResponse]:
        """Generate a response for the request.

        Args:
            request: Request assembled by the flow
            stream: Yield partial chunks before the final response

        Yields:
            Response chunks; the last one is never partial
        """
        ...
