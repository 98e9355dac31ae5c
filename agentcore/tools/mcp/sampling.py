"""Serving MCP sampling requests with an internal model.

A server may ask its client to run a model completion. The handler validates
the inbound request, translates MCP messages into an `LlmRequest`, passes it
to a callback and translates the callback's `LlmResponse` back into an MCP
result.
"""

from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from mcp.types import (
    INTERNAL_ERROR,
    INVALID_REQUEST,
    CreateMessageRequestParams,
    CreateMessageResult,
    ErrorData,
    SamplingMessage,
    TextContent,
)
from pydantic import ValidationError

from agentcore.events import Blob, Content, Part
from agentcore.models.base import BaseLlm
from agentcore.models.llm_request import GenerateConfig, LlmRequest
from agentcore.models.llm_response import LlmResponse
from agentcore.platform.observability import get_logger
from agentcore.tools.mcp.exceptions import MCPInvalidRequestError, MCPSamplingError

logger = get_logger(__name__)

DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"

type SamplingCallback = Callable[[LlmRequest], Awaitable[LlmResponse]]


def _validate_raw_request(params: Mapping[str, Any]) -> None:
    messages = params.get("messages")
    if not isinstance(messages, list) or not messages:
        raise MCPInvalidRequestError("messages must be a non-empty array")
    for index, message in enumerate(messages):
        if not isinstance(message, Mapping) or "role" not in message or "content" not in message:
            raise MCPInvalidRequestError(f"messages[{index}] must have role and content")
    max_tokens = params.get("maxTokens")
    if not isinstance(max_tokens, int) or isinstance(max_tokens, bool) or max_tokens <= 0:
        raise MCPInvalidRequestError("maxTokens must be a positive integer")


class MCPSamplingHandler:
    """Translates MCP sampling requests for a model callback.

    Args:
        callback: Produces a model response for a translated request
        model_name: Model name reported back to the server
    """

    def __init__(self, callback: SamplingCallback, model_name: str = "agentcore") -> None:
        self._callback = callback
        self.model_name = model_name

    @classmethod
    def from_model(cls, llm: BaseLlm) -> "MCPSamplingHandler":
        return cls(model_sampling_callback(llm), model_name=llm.model)

    async def handle_sampling_request(
        self, params: CreateMessageRequestParams | Mapping[str, Any]
    ) -> CreateMessageResult | ErrorData:
        """Serve one sampling request.

        Returns:
            The completion, or `ErrorData` describing why it could not be produced
        """
        try:
            request = self.to_llm_request(params)
            response = await self._callback(request)
            return self.to_create_message_result(response)
        except MCPInvalidRequestError as e:
            logger.warning("sampling_request_invalid", error=str(e))
            return ErrorData(code=INVALID_REQUEST, message=str(e))
        except Exception as e:
            logger.exception("sampling_request_failed")
            error = e if isinstance(e, MCPSamplingError) else MCPSamplingError(str(e))
            return ErrorData(code=INTERNAL_ERROR, message=str(error))

    def to_llm_request(self, params: CreateMessageRequestParams | Mapping[str, Any]) -> LlmRequest:
        """Translate MCP request parameters into an `LlmRequest`.

        Raw mappings are checked for required fields before any translation.

        Raises:
            MCPInvalidRequestError: If the request is malformed
        """
        if isinstance(params, Mapping):
            _validate_raw_request(params)
            try:
                params = CreateMessageRequestParams.model_validate(params)
            except ValidationError as e:
                raise MCPInvalidRequestError(str(e)) from e
        else:
            if not params.messages:
                raise MCPInvalidRequestError("messages must be a non-empty array")
            if params.maxTokens <= 0:
                raise MCPInvalidRequestError("maxTokens must be a positive integer")

        return LlmRequest(
            contents=[self._to_content(message) for message in params.messages],
            config=GenerateConfig(
                system_instruction=params.systemPrompt,
                temperature=params.temperature,
                max_output_tokens=params.maxTokens,
                stop_sequences=list(params.stopSequences or []),
            ),
        )

    def to_create_message_result(self, response: LlmResponse) -> CreateMessageResult:
        """Translate a model response into an MCP sampling result.

        Raises:
            MCPSamplingError: If the response is an error response
        """
        if response.error_code:
            raise MCPSamplingError(response.error_message or response.error_code)
        text = response.content.text if response.content else ""
        stop_reason = "maxTokens" if response.finish_reason == "length" else "endTurn"
        return CreateMessageResult(
            role="assistant",
            content=TextContent(type="text", text=text),
            model=self.model_name,
            stopReason=stop_reason,
        )

    @staticmethod
    def _to_content(message: SamplingMessage) -> Content:
        blocks = message.content if isinstance(message.content, list) else [message.content]
        parts: list[Part] = []
        for block in blocks:
            block_type = getattr(block, "type", None)
            if block_type == "text":
                parts.append(Part.from_text(block.text))
            elif block_type == "image":
                parts.append(
                    Part(inline_data=Blob(mime_type=block.mimeType or DEFAULT_IMAGE_MIME_TYPE, data=block.data))
                )
            else:
                logger.warning("sampling_content_unsupported", content_type=block_type)
                text = getattr(block, "text", None)
                if text:
                    parts.append(Part.from_text(text))
        role = "model" if message.role == "assistant" else "user"
        return Content(role=role, parts=tuple(parts))


def model_sampling_callback(llm: BaseLlm) -> SamplingCallback:
    """Build a sampling callback that asks `llm` for a non-streaming completion."""

    async def callback(request: LlmRequest) -> LlmResponse:
        final: LlmResponse | None = None
        async for response in llm.generate(request, stream=False):
            if not response.partial:
                final = response
        if final is None:
            raise MCPSamplingError("model produced no response")
        return final

    return callback
