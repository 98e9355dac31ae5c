"""Function-call handling for the flow engine."""

import inspect
import uuid
from collections.abc import Mapping
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from agentcore.errors import ErrorCode
from agentcore.events import Content, Event, EventActions, Part
from agentcore.platform.observability import get_logger
from agentcore.tools.base import BaseTool
from agentcore.tools.context import ToolContext
from agentcore.tools.dispatcher import ToolDispatcher, error_result, is_error_result

if TYPE_CHECKING:
    from agentcore.agents.context import ExecutionContext
    from agentcore.agents.llm_agent import LlmAgent

logger = get_logger(__name__)

CLIENT_FUNCTION_CALL_ID_PREFIX = "af-"


def generate_client_function_call_id() -> str:
    return f"{CLIENT_FUNCTION_CALL_ID_PREFIX}{uuid.uuid4()}"


def populate_client_function_call_ids(content: Content | None) -> Content | None:
    """Give every function call without an id a client-generated one."""
    if content is None or not any(p.function_call and not p.function_call.id for p in content.parts):
        return content
    parts = tuple(
        replace(part, function_call=replace(part.function_call, id=generate_client_function_call_id()))
        if part.function_call and not part.function_call.id
        else part
        for part in content.parts
    )
    return replace(content, parts=parts)


def get_long_running_function_call_ids(content: Content | None, tools_dict: Mapping[str, BaseTool]) -> frozenset[str]:
    if content is None:
        return frozenset()
    return frozenset(
        part.function_call.id
        for part in content.parts
        if part.function_call
        and part.function_call.id
        and (tool := tools_dict.get(part.function_call.name)) is not None
        and tool.is_long_running
    )


async def maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


async def _call_tool(
    agent: "LlmAgent",
    tool: BaseTool,
    args: dict[str, Any],
    tool_context: ToolContext,
    dispatcher: ToolDispatcher,
) -> dict[str, Any] | None:
    response = None
    if agent.before_tool_callback is not None:
        response = await maybe_await(agent.before_tool_callback(tool, args, tool_context))
    if response is None:
        response = await dispatcher.dispatch(tool, args, tool_context)
    if agent.after_tool_callback is not None:
        altered = await maybe_await(agent.after_tool_callback(tool, args, tool_context, response))
        if altered is not None:
            response = altered
    return response


async def handle_function_calls(
    ctx: "ExecutionContext",
    function_call_event: Event,
    tools_dict: Mapping[str, BaseTool],
    dispatcher: ToolDispatcher,
) -> Event | None:
    """Execute the function calls of a model event in order.

    Args:
        ctx: Context of the agent that issued the calls
        function_call_event: Finalized model event carrying function calls
        tools_dict: Tools offered to the model, by name
        dispatcher: Dispatcher that validates, invokes and retries

    Returns:
        One user-role event with a response part per call, or None when every
        call went to a long-running tool that produced no inline result
    """
    agent: LlmAgent = ctx.agent  # type: ignore[assignment]
    response_events: list[Event] = []
    for function_call in function_call_event.get_function_calls():
        tool_context = ToolContext(ctx, function_call_id=function_call.id)
        tool = tools_dict.get(function_call.name)
        if tool is None:
            logger.warning("tool_not_found", agent=agent.name, tool=function_call.name)
            response = error_result(
                f"Tool '{function_call.name}' not found. Available tools: {', '.join(tools_dict) or 'none'}",
                ErrorCode.TOOL_NOT_FOUND,
            )
        else:
            response = await _call_tool(agent, tool, function_call.args, tool_context, dispatcher)
            if response is None and tool.is_long_running:
                continue
            if response is None:
                response = {}

        response_events.append(
            _build_response_event(ctx, function_call.name, function_call.id, response, tool_context.actions)
        )

    if not response_events:
        return None
    return merge_function_response_events(response_events)


def _build_response_event(
    ctx: "ExecutionContext",
    tool_name: str,
    function_call_id: str | None,
    response: dict[str, Any],
    actions: EventActions,
) -> Event:
    failed = is_error_result(response)
    return Event(
        author=ctx.agent.name,
        invocation_id=ctx.invocation_id,
        branch=ctx.branch,
        content=Content(role="user", parts=(Part.from_function_response(tool_name, response, function_call_id),)),
        actions=actions,
        error_code=response["error_code"] if failed else None,
        error_message=response["error"] if failed else None,
    )


def merge_function_response_events(events: list[Event]) -> Event:
    """Combine per-call response events into one.

    Parts keep call order, actions are merged in order and the first failure
    decides the error fields.
    """
    if not events:
        raise ValueError("No function response events to merge")
    if len(events) == 1:
        return events[0]

    first = events[0]
    parts: list[Part] = []
    actions = EventActions()
    for event in events:
        if event.content:
            parts.extend(event.content.parts)
        actions.merge(event.actions)
    failed = next((event for event in events if event.error_code), None)
    return Event(
        author=first.author,
        invocation_id=first.invocation_id,
        branch=first.branch,
        content=Content(role="user", parts=tuple(parts)),
        actions=actions,
        error_code=failed.error_code if failed else None,
        error_message=failed.error_message if failed else None,
    )
