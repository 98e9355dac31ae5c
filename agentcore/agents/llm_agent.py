"""Model-backed agent."""

from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import aclosing
from typing import Any, Literal

from pydantic import BaseModel

from agentcore.agents.base import AgentKind, BaseAgent
from agentcore.agents.context import ExecutionContext
from agentcore.events import Event
from agentcore.flows import AutoFlow, BaseLlmFlow, SingleFlow
from agentcore.flows.functions import maybe_await
from agentcore.models import BaseLlm, GenerateConfig, LiteLlm, LlmRequest, LlmResponse
from agentcore.platform.observability import get_logger
from agentcore.tools import BaseTool, FunctionTool, ToolContext, ToolDispatcher

logger = get_logger(__name__)

type InstructionProvider = Callable[[ExecutionContext], str | Awaitable[str]]
type ToolUnion = BaseTool | Callable[..., Any]

type BeforeModelCallback = Callable[[ExecutionContext, LlmRequest], LlmResponse | None | Awaitable[LlmResponse | None]]
type AfterModelCallback = Callable[[ExecutionContext, LlmResponse], LlmResponse | None | Awaitable[LlmResponse | None]]
type BeforeToolCallback = Callable[
    [BaseTool, dict[str, Any], ToolContext], dict[str, Any] | None | Awaitable[dict[str, Any] | None]
]
type AfterToolCallback = Callable[
    [BaseTool, dict[str, Any], ToolContext, dict[str, Any] | None],
    dict[str, Any] | None | Awaitable[dict[str, Any] | None],
]


class LlmAgent(BaseAgent):
    """Agent that answers by running the model turn loop.

    Args:
        name: Agent name, unique within the tree
        model: Model adapter or LiteLLM model identifier; inherited from the
               nearest model-backed ancestor when omitted
        description: Shown to other agents deciding whether to transfer
        instruction: Instruction text with `{key}` state placeholders, or a
                     callable returning the instruction (used verbatim)
        tools: Tools, or plain functions wrapped as `FunctionTool`
        sub_agents: Children; they are transfer targets
        output_key: State key that receives the agent's final text
        output_schema: Pydantic model the final text must be JSON for; the
                       model is asked for JSON and the answer is validated
        include_contents: "none" hides history from earlier runs
        disallow_transfer_to_parent: Do not offer the parent as a transfer target
        disallow_transfer_to_peers: Do not offer siblings as transfer targets
        generate_config: Generation parameters for every model call
        before_model_callback: May return a response to skip the model call
        after_model_callback: May return a replacement response
        before_tool_callback: May return a result to skip the tool call
        after_tool_callback: May return a replacement result
        dispatcher: Dispatcher used for tool calls
    """

    kind = AgentKind.LLM

    def __init__(
        self,
        name: str,
        *,
        model: BaseLlm | str | None = None,
        description: str = "",
        instruction: str | InstructionProvider = "",
        tools: Sequence[ToolUnion] = (),
        sub_agents: Sequence[BaseAgent] = (),
        output_key: str | None = None,
        output_schema: type[BaseModel] | None = None,
        include_contents: Literal["default", "none"] = "default",
        disallow_transfer_to_parent: bool = False,
        disallow_transfer_to_peers: bool = False,
        generate_config: GenerateConfig | None = None,
        before_model_callback: BeforeModelCallback | None = None,
        after_model_callback: AfterModelCallback | None = None,
        before_tool_callback: BeforeToolCallback | None = None,
        after_tool_callback: AfterToolCallback | None = None,
        dispatcher: ToolDispatcher | None = None,
    ) -> None:
        super().__init__(name, description, sub_agents)
        self.model = LiteLlm(model) if isinstance(model, str) else model
        self.instruction = instruction
        self.canonical_tools: list[BaseTool] = [
            tool if isinstance(tool, BaseTool) else FunctionTool(tool) for tool in tools
        ]
        names = [tool.name for tool in self.canonical_tools]
        if len(names) != len(set(names)):
            raise ValueError(f"Agent {name} has duplicate tool names: {names}")
        self.output_key = output_key
        self.output_schema = output_schema
        self.include_contents = include_contents
        self.disallow_transfer_to_parent = disallow_transfer_to_parent
        self.disallow_transfer_to_peers = disallow_transfer_to_peers
        self.generate_config = generate_config
        self.before_model_callback = before_model_callback
        self.after_model_callback = after_model_callback
        self.before_tool_callback = before_tool_callback
        self.after_tool_callback = after_tool_callback
        self.dispatcher = dispatcher

    @property
    def canonical_model(self) -> BaseLlm:
        """The agent's model, or the nearest model-backed ancestor's.

        Raises:
            ValueError: If no agent on the path to the root has a model
        """
        agent: BaseAgent | None = self
        while agent is not None:
            if isinstance(agent, LlmAgent) and agent.model is not None:
                return agent.model
            agent = agent.parent_agent
        raise ValueError(f"No model found for agent {self.name}")

    async def canonical_instruction(self, ctx: ExecutionContext) -> tuple[str, bool]:
        """Resolve the instruction.

        Returns:
            The instruction and whether state injection should be skipped
        """
        if callable(self.instruction):
            return await maybe_await(self.instruction(ctx)), True
        return self.instruction, False

    def transfer_targets(self) -> list[BaseAgent]:
        """Agents the model may hand control to.

        Sub-agents always qualify. The parent and siblings qualify when the
        parent is model-backed and the corresponding transfer is not disallowed.
        """
        targets = list(self.sub_agents)
        parent = self.parent_agent
        if parent is None or parent.kind is not AgentKind.LLM:
            return targets
        if not self.disallow_transfer_to_parent:
            targets.append(parent)
        if not self.disallow_transfer_to_peers:
            targets.extend(peer for peer in parent.sub_agents if peer is not self)
        return targets

    def _llm_flow(self) -> BaseLlmFlow:
        if self.transfer_targets():
            return AutoFlow(self.dispatcher)
        return SingleFlow(self.dispatcher)

    async def _run_impl(self, ctx: ExecutionContext) -> AsyncIterator[Event]:
        async with aclosing(self._llm_flow().run(ctx)) as events:
            async for event in events:
                self._maybe_save_output_to_state(event)
                yield event

    def _maybe_save_output_to_state(self, event: Event) -> None:
        if not self.output_key or event.author != self.name or not event.is_final_response():
            return
        if event.error_code or not event.content:
            return
        text = event.content.text
        if text:
            event.actions.state_delta[self.output_key] = text
            logger.debug("output_saved", agent=self.name, key=self.output_key)
