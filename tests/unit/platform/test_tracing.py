"""Unit tests for span helpers."""

from unittest.mock import Mock, patch

from opentelemetry import trace

from agentcore.platform.observability import tracing


class TestTraceToolCall:
    """Tests for trace_tool_call."""

    def test_sets_attributes(self):
        span = Mock()

        tracing.trace_tool_call(
            span,
            tool_name="lookup",
            tool_description="Find an order",
            function_call_id="call-1",
            args={"id": "A1"},
            response={"status": "shipped"},
        )

        attributes = {call.args[0]: call.args[1] for call in span.set_attribute.call_args_list}
        assert attributes["gen_ai.tool.name"] == "lookup"
        assert attributes["gen_ai.tool.call.id"] == "call-1"
        assert attributes["agentcore.tool_call_args"] == '{"id": "A1"}'
        span.set_status.assert_not_called()

    def test_error_response_marks_span(self):
        span = Mock()

        tracing.trace_tool_call(
            span,
            tool_name="lookup",
            tool_description="",
            function_call_id=None,
            args={},
            response={"error": "boom"},
        )

        status = span.set_status.call_args.args[0]
        assert status.status_code is trace.StatusCode.ERROR
        assert "gen_ai.tool.call.id" not in [call.args[0] for call in span.set_attribute.call_args_list]

    def test_unserializable_values(self):
        span = Mock()

        tracing.trace_tool_call(
            span,
            tool_name="t",
            tool_description="",
            function_call_id=None,
            args={"loop": float("nan")},
            response={"value": {1, 2}},
        )

        attributes = {call.args[0]: call.args[1] for call in span.set_attribute.call_args_list}
        assert attributes["agentcore.tool_response"] == '{"value": "{1, 2}"}'


def test_trace_llm_call_ends_span():
    span = Mock()

    with patch.object(tracing.tracer, "start_span", return_value=span) as start_span:
        tracing.trace_llm_call(
            agent_name="assistant",
            invocation_id="e-1",
            event_id="ev-1",
            model="gpt-test",
            stream=False,
            input_tokens=3,
            output_tokens=2,
            error_code="MAX_TOKENS",
        )

    start_span.assert_called_once_with("call_llm [assistant]")
    span.set_attribute.assert_any_call("gen_ai.usage.input_tokens", 3)
    span.set_status.assert_called_once()
    span.end.assert_called_once()
