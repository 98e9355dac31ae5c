"""The turn loop that drives a model-backed agent.

One step builds a request, calls the model and handles any function calls
the model made. Steps repeat until a step ends in a final response.
"""

from collections.abc import AsyncIterator, Sequence
from contextlib import aclosing
from dataclasses import replace
from time import time
from typing import TYPE_CHECKING

from agentcore.errors import ErrorCode, FlowInvariantError, TransferTargetNotFoundError
from agentcore.events import Event, EventActions
from agentcore.flows.functions import (
    get_long_running_function_call_ids,
    handle_function_calls,
    maybe_await,
    populate_client_function_call_ids,
)
from agentcore.flows.processors import (
    AgentTransferRequestProcessor,
    BasicRequestProcessor,
    ContentsRequestProcessor,
    InstructionsRequestProcessor,
    OutputSchemaResponseProcessor,
    RequestProcessor,
    ResponseProcessor,
)
from agentcore.models.llm_request import LlmRequest
from agentcore.models.llm_response import LlmResponse
from agentcore.platform.observability import get_logger
from agentcore.platform.observability.metrics import record_agent_tokens, record_llm_call
from agentcore.platform.observability.tracing import trace_llm_call
from agentcore.run_config import StreamingMode
from agentcore.tools.context import ToolContext
from agentcore.tools.dispatcher import ToolDispatcher

if TYPE_CHECKING:
    from agentcore.agents.base import BaseAgent
    from agentcore.agents.context import ExecutionContext
    from agentcore.agents.llm_agent import LlmAgent

logger = get_logger(__name__)


class BaseLlmFlow:
    """Runs model steps for the current agent until it produces a final response.

    Args:
        request_processors: Run in order to fill in each request
        response_processors: Run on every model response before it becomes an event
        dispatcher: Executes function calls
    """

    def __init__(
        self,
        request_processors: Sequence[RequestProcessor] = (),
        response_processors: Sequence[ResponseProcessor] = (),
        dispatcher: ToolDispatcher | None = None,
    ) -> None:
        self.request_processors = list(request_processors)
        self.response_processors = list(response_processors)
        self.dispatcher = dispatcher or ToolDispatcher()

    async def run(self, ctx: "ExecutionContext") -> AsyncIterator[Event]:
        """Repeat model steps until one ends in a final response.

        Raises:
            FlowInvariantError: If a step ends on a partial event
        """
        while True:
            last_event: Event | None = None
            async with aclosing(self._run_one_step(ctx)) as events:
                async for event in events:
                    last_event = event
                    yield event
            if last_event is not None and last_event.partial:
                raise FlowInvariantError(ctx.agent.name, last_event.id)
            if last_event is None or last_event.is_final_response() or ctx.end_invocation:
                break

    async def _run_one_step(self, ctx: "ExecutionContext") -> AsyncIterator[Event]:
        llm_request = LlmRequest()

        async for event in self._preprocess(ctx, llm_request):
            yield event
        if ctx.end_invocation:
            return

        model_response_event = Event(author=ctx.agent.name, invocation_id=ctx.invocation_id, branch=ctx.branch)
        async with aclosing(self._call_llm(ctx, llm_request, model_response_event)) as llm_responses:
            async for llm_response in llm_responses:
                async for event in self._postprocess(ctx, llm_request, llm_response, model_response_event):
                    yield event

    async def _preprocess(self, ctx: "ExecutionContext", llm_request: LlmRequest) -> AsyncIterator[Event]:
        agent: LlmAgent = ctx.agent  # type: ignore[assignment]
        for processor in self.request_processors:
            async for event in processor.run(ctx, llm_request):
                yield event

        tool_context = ToolContext(ctx)
        for tool in agent.canonical_tools:
            await tool.process_llm_request(tool_context, llm_request)

    async def _call_llm(
        self, ctx: "ExecutionContext", llm_request: LlmRequest, model_response_event: Event
    ) -> AsyncIterator[LlmResponse]:
        agent: LlmAgent = ctx.agent  # type: ignore[assignment]
        ctx.increment_llm_call_count()

        if agent.before_model_callback is not None:
            response = await maybe_await(agent.before_model_callback(ctx, llm_request))
            if response is not None:
                yield response
                return

        llm = agent.canonical_model
        stream = ctx.run_config.streaming_mode == StreamingMode.SSE
        record_llm_call(agent.name, llm.model)
        try:
            async with aclosing(llm.generate(llm_request, stream=stream)) as llm_responses:
                async for llm_response in llm_responses:
                    if not llm_response.partial:
                        self._record_response(ctx, llm.model, llm_response, model_response_event, stream)
                    if agent.after_model_callback is not None:
                        altered = await maybe_await(agent.after_model_callback(ctx, llm_response))
                        if altered is not None:
                            llm_response = altered
                    yield llm_response
        except Exception as e:
            logger.exception("model_call_failed", agent=agent.name, model=llm.model)
            error_response = LlmResponse(error_code=str(ErrorCode.MODEL_ERROR), error_message=str(e))
            self._record_response(ctx, llm.model, error_response, model_response_event, stream)
            yield error_response

    @staticmethod
    def _record_response(
        ctx: "ExecutionContext", model: str, llm_response: LlmResponse, model_response_event: Event, stream: bool
    ) -> None:
        usage = llm_response.usage
        input_tokens = usage.input_tokens if usage else 0
        output_tokens = usage.output_tokens if usage else 0
        if usage:
            record_agent_tokens(ctx.agent.name, model, input_tokens, output_tokens)
        trace_llm_call(
            agent_name=ctx.agent.name,
            invocation_id=ctx.invocation_id,
            event_id=model_response_event.id,
            model=model,
            stream=stream,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            error_code=llm_response.error_code,
        )

    async def _postprocess(
        self,
        ctx: "ExecutionContext",
        llm_request: LlmRequest,
        llm_response: LlmResponse,
        model_response_event: Event,
    ) -> AsyncIterator[Event]:
        for processor in self.response_processors:
            async for event in processor.run(ctx, llm_response):
                if event.error_code:
                    llm_response = replace(
                        llm_response, error_code=event.error_code, error_message=event.error_message
                    )
                yield event

        if not llm_response.content and not llm_response.error_code and not llm_response.interrupted:
            return

        event = self._finalize_model_response_event(llm_request, llm_response, model_response_event)
        yield event

        if event.partial or not event.get_function_calls() or ctx.end_invocation:
            return
        async for function_event in self._postprocess_handle_function_calls(ctx, event, llm_request):
            yield function_event

    @staticmethod
    def _finalize_model_response_event(
        llm_request: LlmRequest, llm_response: LlmResponse, model_response_event: Event
    ) -> Event:
        content = populate_client_function_call_ids(llm_response.content)
        return replace(
            model_response_event,
            id=Event.new_id(),
            timestamp=time(),
            content=content,
            actions=EventActions(),
            partial=llm_response.partial,
            turn_complete=llm_response.turn_complete,
            error_code=llm_response.error_code,
            error_message=llm_response.error_message,
            long_running_tool_ids=get_long_running_function_call_ids(content, llm_request.tools_dict),
        )

    async def _postprocess_handle_function_calls(
        self, ctx: "ExecutionContext", function_call_event: Event, llm_request: LlmRequest
    ) -> AsyncIterator[Event]:
        function_response_event = await handle_function_calls(
            ctx, function_call_event, llm_request.tools_dict, self.dispatcher
        )
        if function_response_event is None:
            return
        yield function_response_event

        transfer_to = function_response_event.actions.transfer_to_agent
        if transfer_to:
            agent_to_run = self._get_agent_to_run(ctx, transfer_to)
            logger.info("agent_transfer", source=ctx.agent.name, target=agent_to_run.name)
            async with aclosing(agent_to_run.run(ctx)) as events:
                async for event in events:
                    yield event

    @staticmethod
    def _get_agent_to_run(ctx: "ExecutionContext", agent_name: str) -> "BaseAgent":
        agent_to_run = ctx.agent.root_agent.find_agent(agent_name)
        if agent_to_run is None:
            raise TransferTargetNotFoundError(agent_name)
        return agent_to_run


class SingleFlow(BaseLlmFlow):
    """Flow for an agent that answers on its own, without transfers."""

    def __init__(self, dispatcher: ToolDispatcher | None = None) -> None:
        super().__init__(
            request_processors=[
                BasicRequestProcessor(),
                InstructionsRequestProcessor(),
                ContentsRequestProcessor(),
            ],
            response_processors=[OutputSchemaResponseProcessor()],
            dispatcher=dispatcher,
        )


class AutoFlow(SingleFlow):
    """SingleFlow that also lets the model transfer control to related agents."""

    def __init__(self, dispatcher: ToolDispatcher | None = None) -> None:
        super().__init__(dispatcher=dispatcher)
        self.request_processors.append(AgentTransferRequestProcessor())
