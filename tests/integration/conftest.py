"""Integration test fixtures.

This module provides shared fixtures for integration tests including:
- A scripted model stub that replays canned responses
- Builders for model responses
- A helper that runs an agent tree through an in-memory runner

No test here talks to a real model provider or MCP server.
"""

from collections.abc import AsyncIterator
from typing import Any

import pytest

from agentcore import InMemoryRunner, RunConfig
from agentcore.agents import BaseAgent
from agentcore.events import Content, Event, Part
from agentcore.models import LlmRequest, LlmResponse, UsageMetadata
from agentcore.sessions import Session


class ScriptedLlm:
    """Model stub that answers each call with the next scripted turn.

    A turn is an `LlmResponse`, a list of responses (streamed in order) or an
    exception to raise. Every request is recorded for inspection.
    """

    def __init__(self, turns: list[Any], model: str = "scripted-model") -> None:
        self.turns = list(turns)
        self.requests: list[LlmRequest] = []
        self.stream_flags: list[bool] = []
        self._model = model

    @property
    def model(self) -> str:
        return self._model

    async def generate(self, request: LlmRequest, stream: bool = False) -> AsyncIterator[LlmResponse]:
        self.requests.append(request)
        self.stream_flags.append(stream)
        if not self.turns:
            raise AssertionError("Model called more times than scripted")
        turn = self.turns.pop(0)
        if isinstance(turn, Exception):
            raise turn
        for response in turn if isinstance(turn, list) else [turn]:
            yield response


class ResponseBuilder:
    """Shorthand constructors for model responses."""

    @staticmethod
    def text(text: str, partial: bool = False) -> LlmResponse:
        return LlmResponse(
            content=Content.from_text(text, role="model"),
            partial=partial,
            turn_complete=not partial,
            usage=None if partial else UsageMetadata(input_tokens=10, output_tokens=5),
        )

    @staticmethod
    def call(name: str, args: dict[str, Any] | None = None, id: str | None = None) -> LlmResponse:
        return LlmResponse(
            content=Content(role="model", parts=(Part.from_function_call(name, args or {}, id),)),
            turn_complete=True,
        )

    @staticmethod
    def calls(*calls: tuple[str, dict[str, Any]]) -> LlmResponse:
        parts = tuple(Part.from_function_call(name, args) for name, args in calls)
        return LlmResponse(content=Content(role="model", parts=parts), turn_complete=True)


@pytest.fixture
def make_llm():
    """Factory for scripted model stubs."""

    def factory(*turns: Any, model: str = "scripted-model") -> ScriptedLlm:
        return ScriptedLlm(list(turns), model=model)

    return factory


@pytest.fixture
def responses() -> type[ResponseBuilder]:
    """Model response builders."""
    return ResponseBuilder


@pytest.fixture
def run_agent():
    """Run an agent tree once through an in-memory runner.

    Returns the produced events and the session they were recorded in.
    """

    async def run(
        agent: BaseAgent,
        message: str = "Hello",
        state: dict[str, Any] | None = None,
        run_config: RunConfig | None = None,
    ) -> tuple[list[Event], Session]:
        runner = InMemoryRunner(agent, app_name="test-app")
        session = await runner.session_service.create_session("test-app", "user-1", state=state)
        events = [
            event
            async for event in runner.run(
                user_id="user-1",
                session_id=session.id,
                new_message=message,
                run_config=run_config,
            )
        ]
        return events, session

    return run
