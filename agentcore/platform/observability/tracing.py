"""OpenTelemetry span helpers for model and tool calls.

Attribute names follow the `gen_ai.*` semantic conventions where one exists.
"""

import json
from typing import Any

from opentelemetry import trace

tracer = trace.get_tracer("agentcore")

SYSTEM_NAME = "agentcore"


def _safe_json(value: Any) -> str:
    try:
        return json.dumps(value, default=str)
    except (TypeError, ValueError):
        return "<not serializable>"


def trace_tool_call(
    span: trace.Span,
    *,
    tool_name: str,
    tool_description: str,
    function_call_id: str | None,
    args: dict[str, Any],
    response: dict[str, Any],
) -> None:
    """Annotate a tool-call span with its arguments and result."""
    span.set_attribute("gen_ai.system", SYSTEM_NAME)
    span.set_attribute("gen_ai.operation.name", "execute_tool")
    span.set_attribute("gen_ai.tool.name", tool_name)
    span.set_attribute("gen_ai.tool.description", tool_description)
    if function_call_id:
        span.set_attribute("gen_ai.tool.call.id", function_call_id)
    span.set_attribute("agentcore.tool_call_args", _safe_json(args))
    span.set_attribute("agentcore.tool_response", _safe_json(response))
    if "error" in response:
        span.set_status(trace.Status(trace.StatusCode.ERROR, str(response["error"])))


def trace_llm_call(
    *,
    agent_name: str,
    invocation_id: str,
    event_id: str,
    model: str,
    stream: bool,
    input_tokens: int = 0,
    output_tokens: int = 0,
    error_code: str | None = None,
) -> None:
    """Record a completed model call as a span."""
    span = tracer.start_span(f"call_llm [{agent_name}]")
    try:
        span.set_attribute("gen_ai.system", SYSTEM_NAME)
        span.set_attribute("gen_ai.operation.name", "generate")
        span.set_attribute("gen_ai.request.model", model)
        span.set_attribute("gen_ai.usage.input_tokens", input_tokens)
        span.set_attribute("gen_ai.usage.output_tokens", output_tokens)
        span.set_attribute("agentcore.invocation_id", invocation_id)
        span.set_attribute("agentcore.event_id", event_id)
        span.set_attribute("agentcore.streaming", stream)
        if error_code:
            span.set_status(trace.Status(trace.StatusCode.ERROR, error_code))
    finally:
        span.end()
