"""Request and response processors run by the flow engine.

Request processors fill in a fresh `LlmRequest` before each model call and
may yield side-channel events. Response processors see every model response
before it is turned into an event; an error-coded event from one marks the
response with the same error.
"""

import re
from collections.abc import AsyncIterator, Mapping
from typing import TYPE_CHECKING, Any, Protocol

from pydantic import ValidationError

from agentcore.errors import ErrorCode
from agentcore.events import Content, Event, Part
from agentcore.models.llm_request import LlmRequest
from agentcore.models.llm_response import LlmResponse
from agentcore.platform.observability import get_logger
from agentcore.sessions import TEMP_PREFIX
from agentcore.tools.context import ToolContext
from agentcore.tools.control import transfer_to_agent

if TYPE_CHECKING:
    from agentcore.agents.base import BaseAgent
    from agentcore.agents.context import ExecutionContext
    from agentcore.agents.llm_agent import LlmAgent

logger = get_logger(__name__)

_PLACEHOLDER = re.compile(r"\{+[^{}]*\}+")


class RequestProcessor(Protocol):
    def run(self, ctx: "ExecutionContext", llm_request: LlmRequest) -> AsyncIterator[Event]: ...


class ResponseProcessor(Protocol):
    def run(self, ctx: "ExecutionContext", llm_response: LlmResponse) -> AsyncIterator[Event]: ...


def _is_state_key(key: str) -> bool:
    if key.startswith(TEMP_PREFIX):
        key = key[len(TEMP_PREFIX) :]
    return key.isidentifier()


def inject_session_state(template: str, state: Mapping[str, Any]) -> str:
    """Replace `{key}` placeholders with session state values.

    `{key?}` is replaced with an empty string when the key is missing.
    Braced text that is not a state key name is left untouched.

    Raises:
        KeyError: If a required key is missing from state
    """

    def replace(match: re.Match[str]) -> str:
        token = match.group()
        key = token.lstrip("{").rstrip("}").strip()
        optional = key.endswith("?")
        if optional:
            key = key[:-1]
        if not _is_state_key(key):
            return token
        if key in state:
            return str(state[key])
        if optional:
            return ""
        raise KeyError(f"Context variable not found: `{key}`.")

    return _PLACEHOLDER.sub(replace, template)


class BasicRequestProcessor:
    """Sets the model name and generation parameters."""

    async def run(self, ctx: "ExecutionContext", llm_request: LlmRequest) -> AsyncIterator[Event]:
        agent: LlmAgent = ctx.agent  # type: ignore[assignment]
        llm_request.model = agent.canonical_model.model
        config = agent.generate_config
        if config is not None:
            llm_request.config.temperature = config.temperature
            llm_request.config.max_output_tokens = config.max_output_tokens
            llm_request.config.stop_sequences = list(config.stop_sequences)
        if agent.output_schema is not None:
            llm_request.config.response_schema = agent.output_schema
        return
        yield


class InstructionsRequestProcessor:
    """Adds the agent's instruction with session state filled in."""

    async def run(self, ctx: "ExecutionContext", llm_request: LlmRequest) -> AsyncIterator[Event]:
        agent: LlmAgent = ctx.agent  # type: ignore[assignment]
        instruction, bypass_state_injection = await agent.canonical_instruction(ctx)
        if instruction:
            if not bypass_state_injection:
                instruction = inject_session_state(instruction, ctx.session.state)
            llm_request.append_instructions([instruction])
        return
        yield


def _belongs_to_branch(invocation_branch: str | None, event_branch: str | None) -> bool:
    if not invocation_branch or not event_branch:
        return True
    return invocation_branch == event_branch or invocation_branch.startswith(f"{event_branch}.")


def _present_other_agent_content(event: Event) -> Content:
    """Rewrite another agent's output as user-side context.

    The current agent must not mistake another agent's messages and tool
    calls for its own.
    """
    parts = [Part.from_text("For context:")]
    for part in event.content.parts if event.content else ():
        if part.text:
            parts.append(Part.from_text(f"[{event.author}] said: {part.text}"))
        elif part.function_call:
            parts.append(
                Part.from_text(
                    f"[{event.author}] called tool `{part.function_call.name}` "
                    f"with parameters: {part.function_call.args}"
                )
            )
        elif part.function_response:
            parts.append(
                Part.from_text(
                    f"[{event.author}] `{part.function_response.name}` tool returned result: "
                    f"{part.function_response.response}"
                )
            )
    return Content(role="user", parts=tuple(parts))


class ContentsRequestProcessor:
    """Builds the conversation history visible to the current agent.

    Events from the user and from the agent itself are passed as-is; output
    of other agents is presented as context. Events recorded on unrelated
    branches are excluded.
    """

    async def run(self, ctx: "ExecutionContext", llm_request: LlmRequest) -> AsyncIterator[Event]:
        agent: LlmAgent = ctx.agent  # type: ignore[assignment]
        events = ctx.session.events
        if agent.include_contents == "none":
            events = [event for event in events if event.invocation_id == ctx.invocation_id]

        contents: list[Content] = []
        for event in events:
            if not event.content or not event.content.parts or event.partial:
                continue
            if not _belongs_to_branch(ctx.branch, event.branch):
                continue
            if event.author in ("user", agent.name):
                contents.append(event.content)
            else:
                contents.append(_present_other_agent_content(event))
        llm_request.contents = contents
        return
        yield


def _transfer_instructions(agent: "LlmAgent", targets: list["BaseAgent"]) -> str:
    lines = ["You have a list of other agents to transfer to:", ""]
    for target in targets:
        lines.append(f"Agent name: {target.name}")
        lines.append(f"Agent description: {target.description}")
        lines.append("")
    lines.append(
        "If you are the best to answer the question according to your description, you can answer it."
    )
    lines.append("")
    lines.append(
        f"If another agent is better for answering the question according to its description, "
        f"call `{transfer_to_agent.name}` function to transfer the question to that agent. "
        f"When transferring, do not generate any text other than the function call."
    )
    parent = agent.parent_agent
    if parent is not None and parent in targets:
        lines.append("")
        lines.append(
            f"Your parent agent is {parent.name}. If neither the other agents nor you are best "
            f"for answering the question according to the descriptions, transfer to your parent agent."
        )
    return "\n".join(lines)


class AgentTransferRequestProcessor:
    """Offers `transfer_to_agent` when the agent has transfer targets."""

    async def run(self, ctx: "ExecutionContext", llm_request: LlmRequest) -> AsyncIterator[Event]:
        agent: LlmAgent = ctx.agent  # type: ignore[assignment]
        targets = agent.transfer_targets()
        if targets:
            llm_request.append_instructions([_transfer_instructions(agent, targets)])
            await transfer_to_agent.process_llm_request(ToolContext(ctx), llm_request)
        return
        yield


class OutputSchemaResponseProcessor:
    """Checks the agent's final answer against its output schema.

    An answer that is not valid JSON for the schema yields an error-coded
    event ahead of the answer itself. Partial chunks and responses without
    text, such as function calls, are not checked.
    """

    async def run(self, ctx: "ExecutionContext", llm_response: LlmResponse) -> AsyncIterator[Event]:
        agent: LlmAgent = ctx.agent  # type: ignore[assignment]
        if agent.output_schema is None or llm_response.partial or not llm_response.content:
            return
        text = llm_response.content.text
        if not text.strip():
            return
        try:
            agent.output_schema.model_validate_json(text)
        except ValidationError as e:
            message = f"Output schema validation failed for agent '{agent.name}': {e}"
            logger.warning("output_schema_invalid", agent=agent.name, error_count=e.error_count())
            yield Event(
                author=agent.name,
                invocation_id=ctx.invocation_id,
                branch=ctx.branch,
                content=Content.from_text(f"Error: {message}", role="model"),
                error_code=str(ErrorCode.OUTPUT_SCHEMA_VALIDATION_FAILED),
                error_message=message,
            )
