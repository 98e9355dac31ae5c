"""Unit tests for request and response processors."""

from unittest.mock import Mock

import pytest
from pydantic import BaseModel

from agentcore import ExecutionContext, LlmAgent, RunConfig
from agentcore.errors import ErrorCode
from agentcore.events import Content, Event, Part
from agentcore.flows import inject_session_state
from agentcore.flows.processors import (
    AgentTransferRequestProcessor,
    BasicRequestProcessor,
    ContentsRequestProcessor,
    InstructionsRequestProcessor,
    OutputSchemaResponseProcessor,
)
from agentcore.models import GenerateConfig, LlmRequest, LlmResponse
from agentcore.sessions import InMemorySessionService, Session, SessionState


def make_context(agent, *, state=None, events=(), branch=None, invocation_id="e-current") -> ExecutionContext:
    session = Session(id="s-1", app_name="app", user_id="user", state=SessionState(state), events=list(events))
    return ExecutionContext(
        session=session,
        invocation_id=invocation_id,
        agent=agent,
        session_service=InMemorySessionService(),
        branch=branch,
        run_config=RunConfig(),
    )


async def run_processor(processor, ctx) -> LlmRequest:
    request = LlmRequest()
    async for _ in processor.run(ctx, request):
        pass
    return request


def text_event(author: str, text: str, branch: str | None = None, invocation_id: str = "e-current") -> Event:
    role = "user" if author == "user" else "model"
    return Event(author=author, content=Content.from_text(text, role=role), branch=branch, invocation_id=invocation_id)


class TestInjectSessionState:
    """Tests for inject_session_state."""

    @pytest.mark.parametrize(
        ("template", "state", "expected"),
        [
            ("Hello {name}", {"name": "Ada"}, "Hello Ada"),
            ("Count: {count}", {"count": 3}, "Count: 3"),
            ("Optional: [{nickname?}]", {}, "Optional: []"),
            ("Scratch {temp:note}", {"temp:note": "x"}, "Scratch x"),
            ("JSON {\"a\": 1} stays", {}, "JSON {\"a\": 1} stays"),  # Not a key name
            ("{ spaced }", {"spaced": "ok"}, "ok"),
        ],
    )
    def test_substitution(self, template, state, expected):
        assert inject_session_state(template, state) == expected

    def test_missing_required_key(self):
        with pytest.raises(KeyError, match="customer"):
            inject_session_state("Help {customer}", {})


class TestBasicRequestProcessor:
    """Tests for BasicRequestProcessor."""

    async def test_sets_model_and_config(self):
        model = Mock()
        model.model = "gpt-test"
        agent = LlmAgent(
            "a", model=model, generate_config=GenerateConfig(temperature=0.1, max_output_tokens=50, stop_sequences=["X"])
        )

        request = await run_processor(BasicRequestProcessor(), make_context(agent))

        assert request.model == "gpt-test"
        assert request.config.temperature == 0.1
        assert request.config.max_output_tokens == 50
        assert request.config.stop_sequences == ["X"]


class TestInstructionsRequestProcessor:
    """Tests for InstructionsRequestProcessor."""

    async def test_injects_state(self):
        agent = LlmAgent("a", instruction="Serve {tier} customers.")

        request = await run_processor(InstructionsRequestProcessor(), make_context(agent, state={"tier": "gold"}))

        assert request.config.system_instruction == "Serve gold customers."

    async def test_empty_instruction_adds_nothing(self):
        request = await run_processor(InstructionsRequestProcessor(), make_context(LlmAgent("a")))
        assert request.config.system_instruction is None


class TestContentsRequestProcessor:
    """Tests for conversation history assembly."""

    async def test_own_and_user_events_kept(self):
        agent = LlmAgent("a")
        events = [text_event("user", "hi"), text_event("a", "hello")]

        request = await run_processor(ContentsRequestProcessor(), make_context(agent, events=events))

        assert request.contents == [events[0].content, events[1].content]

    async def test_other_agent_presented_as_context(self):
        agent = LlmAgent("a")
        call = Event(
            author="b",
            content=Content(role="model", parts=(Part.from_function_call("lookup", {"id": 1}),)),
        )
        result = Event(
            author="b",
            content=Content(role="user", parts=(Part.from_function_response("lookup", {"ok": True}),)),
        )

        request = await run_processor(
            ContentsRequestProcessor(), make_context(agent, events=[text_event("b", "note"), call, result])
        )

        texts = [[part.text for part in content.parts] for content in request.contents]
        assert texts == [
            ["For context:", "[b] said: note"],
            ["For context:", "[b] called tool `lookup` with parameters: {'id': 1}"],
            ["For context:", "[b] `lookup` tool returned result: {'ok': True}"],
        ]
        assert {content.role for content in request.contents} == {"user"}

    @pytest.mark.parametrize(
        ("event_branch", "visible"),
        [
            (None, True),  # Root-level events are visible everywhere
            ("team.a", True),  # Own branch
            ("team", True),  # Ancestor branch
            ("team.b", False),  # Sibling branch
            ("team.ab", False),  # Shared prefix is not ancestry
            ("team.a.child", False),  # Descendant branch
        ],
    )
    async def test_branch_filter(self, event_branch, visible):
        agent = LlmAgent("a")
        ctx = make_context(agent, events=[text_event("other", "x", branch=event_branch)], branch="team.a")

        request = await run_processor(ContentsRequestProcessor(), ctx)

        assert bool(request.contents) is visible

    async def test_partial_events_skipped(self):
        agent = LlmAgent("a")
        partial = Event(author="a", content=Content.from_text("Hel", role="model"), partial=True)

        request = await run_processor(ContentsRequestProcessor(), make_context(agent, events=[partial]))

        assert request.contents == []

    async def test_include_contents_none(self):
        """Only the current invocation is visible when history is disabled."""
        agent = LlmAgent("a", include_contents="none")
        events = [text_event("user", "old", invocation_id="e-old"), text_event("user", "new")]

        request = await run_processor(ContentsRequestProcessor(), make_context(agent, events=events))

        assert [c.text for c in request.contents] == ["new"]


class TestAgentTransferRequestProcessor:
    """Tests for AgentTransferRequestProcessor."""

    async def test_adds_instructions_and_tool(self):
        agent = LlmAgent("root", sub_agents=[LlmAgent("billing", description="Invoices")])

        request = await run_processor(AgentTransferRequestProcessor(), make_context(agent))

        assert "Agent name: billing" in request.config.system_instruction
        assert "transfer_to_agent" in request.tools_dict

    async def test_no_targets_no_changes(self):
        request = await run_processor(AgentTransferRequestProcessor(), make_context(LlmAgent("alone")))

        assert request.config.system_instruction is None
        assert request.tools_dict == {}


class OrderSummary(BaseModel):
    order_id: str
    total: float


async def run_response_processor(ctx, llm_response: LlmResponse) -> list[Event]:
    return [event async for event in OutputSchemaResponseProcessor().run(ctx, llm_response)]


class TestOutputSchema:
    """Tests for output schema handling on both sides of the model call."""

    async def test_schema_requested(self):
        agent = LlmAgent("a", model=Mock(model="gpt-test"), output_schema=OrderSummary)

        request = await run_processor(BasicRequestProcessor(), make_context(agent))

        assert request.config.response_schema is OrderSummary

    async def test_valid_answer_passes(self):
        agent = LlmAgent("a", output_schema=OrderSummary)
        response = LlmResponse(content=Content.from_text('{"order_id": "A1", "total": 9.5}', role="model"))

        assert await run_response_processor(make_context(agent), response) == []

    @pytest.mark.parametrize(
        "text",
        [
            '{"order_id": "A1"}',  # Missing field
            '{"order_id": "A1", "total": "lots"}',  # Wrong type
            "The total is 9.50",  # Not JSON
        ],
    )
    async def test_invalid_answer_yields_error_event(self, text):
        agent = LlmAgent("a", output_schema=OrderSummary)
        response = LlmResponse(content=Content.from_text(text, role="model"))

        events = await run_response_processor(make_context(agent, branch="team.a"), response)

        assert len(events) == 1
        error = events[0]
        assert error.author == "a"
        assert error.branch == "team.a"
        assert error.invocation_id == "e-current"
        assert error.error_code == ErrorCode.OUTPUT_SCHEMA_VALIDATION_FAILED
        assert "Output schema validation failed for agent 'a'" in error.error_message
        assert error.text.startswith("Error: ")

    @pytest.mark.parametrize(
        "response",
        [
            LlmResponse(content=Content.from_text('{"order_id"', role="model"), partial=True),
            LlmResponse(content=Content(role="model", parts=(Part.from_function_call("lookup", {}),))),
            LlmResponse(content=Content.from_text("   ", role="model")),
            LlmResponse(error_code="MODEL_ERROR", error_message="boom"),
        ],
        ids=["partial", "function-call", "blank", "no-content"],
    )
    async def test_unchecked_responses(self, response):
        agent = LlmAgent("a", output_schema=OrderSummary)

        assert await run_response_processor(make_context(agent), response) == []

    async def test_agent_without_schema(self):
        response = LlmResponse(content=Content.from_text("free text", role="model"))

        assert await run_response_processor(make_context(LlmAgent("a")), response) == []
