"""Model adapter backed by LiteLLM.

Translates `LlmRequest` into OpenAI-style chat messages and tool definitions,
which LiteLLM routes to any supported provider or to a LiteLLM proxy.
"""

import json
from collections.abc import AsyncIterator
from typing import Any

import litellm

from agentcore.events import Content, FunctionCall, Part
from agentcore.models.llm_request import LlmRequest
from agentcore.models.llm_response import LlmResponse, UsageMetadata
from agentcore.platform.observability import get_logger

logger = get_logger(__name__)


class LiteLlm:
    """LiteLLM-backed implementation of the `BaseLlm` protocol."""

    def __init__(
        self,
        model: str,
        api_base: str | None = None,
        api_key: str | None = None,
        temperature: float | None = None,
        **completion_kwargs: Any,
    ) -> None:
        """Initialize the adapter.

        Args:
            model: LiteLLM model identifier (e.g., "litellm_proxy/anthropic/claude-sonnet-4-5")
            api_base: Optional base URL, typically a LiteLLM proxy
            api_key: Optional API key
            temperature: Default sampling temperature when the request sets none
            **completion_kwargs: Extra arguments forwarded to `litellm.acompletion`
        """
        self._model = model
        self._api_base = api_base
        self._api_key = api_key
        self._temperature = temperature
        self._completion_kwargs = completion_kwargs

    def __repr__(self) -> str:
        """Obfuscate sensitive fields in string representation."""
        api_key_repr = "<obfuscated>" if self._api_key else "None"
        return f"LiteLlm(model={self._model!r}, api_base={self._api_base!r}, api_key={api_key_repr})"

    @property
    def model(self) -> str:
        return self._model

    async def generate(self, request: LlmRequest, stream: bool = False) -> AsyncIterator[LlmResponse]:
        """Generate a response through LiteLLM.

        Args:
            request: Request assembled by the flow
            stream: Yield text deltas as partial responses before the final one

        Yields:
            Partial text chunks (streaming only), then one complete response
        """
        kwargs = self._completion_args(request)
        if not stream:
            response = await litellm.acompletion(**kwargs)
            yield self._to_llm_response(response)
            return

        text_chunks: list[str] = []
        tool_calls: dict[int, dict[str, str]] = {}
        usage: UsageMetadata | None = None
        finish_reason: str | None = None

        response_stream = await litellm.acompletion(
            **kwargs, stream=True, stream_options={"include_usage": True}
        )
        async for chunk in response_stream:
            if getattr(chunk, "usage", None):
                usage = self._to_usage(chunk.usage)
            if not chunk.choices:
                continue
            choice = chunk.choices[0]
            finish_reason = choice.finish_reason or finish_reason
            delta = choice.delta
            if delta.content:
                text_chunks.append(delta.content)
                yield LlmResponse(content=Content.from_text(delta.content, role="model"), partial=True)
            for tool_call in delta.tool_calls or []:
                slot = tool_calls.setdefault(tool_call.index, {"id": "", "name": "", "arguments": ""})
                if tool_call.id:
                    slot["id"] = tool_call.id
                if tool_call.function and tool_call.function.name:
                    slot["name"] += tool_call.function.name
                if tool_call.function and tool_call.function.arguments:
                    slot["arguments"] += tool_call.function.arguments

        parts = [Part.from_text("".join(text_chunks))] if text_chunks else []
        for index in sorted(tool_calls):
            slot = tool_calls[index]
            parts.append(
                Part(
                    function_call=FunctionCall(
                        name=slot["name"],
                        args=self._parse_arguments(slot["arguments"]),
                        id=slot["id"] or None,
                    )
                )
            )
        yield LlmResponse(
            content=Content(role="model", parts=tuple(parts)) if parts else None,
            turn_complete=True,
            usage=usage,
            finish_reason=finish_reason,
        )

    def _completion_args(self, request: LlmRequest) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": request.model or self._model,
            "messages": self._to_messages(request),
            **self._completion_kwargs,
        }
        tools = self._to_tools(request)
        if tools:
            kwargs["tools"] = tools
        if self._api_base:
            kwargs["api_base"] = self._api_base
        if self._api_key:
            kwargs["api_key"] = self._api_key
        temperature = request.config.temperature
        if temperature is None:
            temperature = self._temperature
        if temperature is not None:
            kwargs["temperature"] = temperature
        if request.config.max_output_tokens:
            kwargs["max_tokens"] = request.config.max_output_tokens
        if request.config.stop_sequences:
            kwargs["stop"] = request.config.stop_sequences
        if request.config.response_schema is not None:
            kwargs["response_format"] = request.config.response_schema
        return kwargs

    @staticmethod
    def _to_tools(request: LlmRequest) -> list[dict[str, Any]]:
        return [
            {
                "type": "function",
                "function": {
                    "name": declaration.name,
                    "description": declaration.description,
                    "parameters": declaration.parameters or {"type": "object", "properties": {}},
                },
            }
            for declaration in request.config.tools
        ]

    @classmethod
    def _to_messages(cls, request: LlmRequest) -> list[dict[str, Any]]:
        messages: list[dict[str, Any]] = []
        if request.config.system_instruction:
            messages.append({"role": "system", "content": request.config.system_instruction})
        for content in request.contents:
            messages.extend(cls._content_to_messages(content))
        return messages

    @staticmethod
    def _content_to_messages(content: Content) -> list[dict[str, Any]]:
        """Convert one content turn into OpenAI-style chat messages.

        Function responses become `tool` messages, function calls become
        `tool_calls` on an assistant message, and inline data becomes
        `image_url` entries with data URLs.
        """
        if content.role == "model":
            message: dict[str, Any] = {"role": "assistant", "content": content.text or None}
            tool_calls = [
                {
                    "id": part.function_call.id,
                    "type": "function",
                    "function": {
                        "name": part.function_call.name,
                        "arguments": json.dumps(part.function_call.args),
                    },
                }
                for part in content.parts
                if part.function_call
            ]
            if tool_calls:
                message["tool_calls"] = tool_calls
            return [message]

        messages: list[dict[str, Any]] = [
            {
                "role": "tool",
                "tool_call_id": part.function_response.id,
                "content": json.dumps(part.function_response.response, default=str),
            }
            for part in content.parts
            if part.function_response
        ]
        user_parts: list[dict[str, Any]] = []
        for part in content.parts:
            if part.text:
                user_parts.append({"type": "text", "text": part.text})
            elif part.inline_data:
                url = f"data:{part.inline_data.mime_type};base64,{part.inline_data.data}"
                user_parts.append({"type": "image_url", "image_url": {"url": url}})
        if len(user_parts) == 1 and user_parts[0]["type"] == "text":
            messages.append({"role": "user", "content": user_parts[0]["text"]})
        elif user_parts:
            messages.append({"role": "user", "content": user_parts})
        return messages

    @classmethod
    def _to_llm_response(cls, response: Any) -> LlmResponse:
        choice = response.choices[0]
        message = choice.message
        parts: list[Part] = []
        if message.content:
            parts.append(Part.from_text(message.content))
        for tool_call in getattr(message, "tool_calls", None) or []:
            parts.append(
                Part(
                    function_call=FunctionCall(
                        name=tool_call.function.name,
                        args=cls._parse_arguments(tool_call.function.arguments),
                        id=tool_call.id,
                    )
                )
            )
        usage = getattr(response, "usage", None)
        return LlmResponse(
            content=Content(role="model", parts=tuple(parts)) if parts else None,
            turn_complete=True,
            usage=cls._to_usage(usage) if usage else None,
            finish_reason=choice.finish_reason,
        )

    @staticmethod
    def _to_usage(usage: Any) -> UsageMetadata:
        return UsageMetadata(
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
        )

    @staticmethod
    def _parse_arguments(arguments: str | None) -> dict[str, Any]:
        if not arguments:
            return {}
        try:
            parsed = json.loads(arguments)
        except json.JSONDecodeError:
            logger.warning("tool_call_arguments_not_json", arguments=arguments)
            return {}
        return parsed if isinstance(parsed, dict) else {"value": parsed}
