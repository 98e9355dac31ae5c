"""Built-in tools that steer the run rather than do work."""

from typing import Any

from agentcore.tools.base import BaseTool
from agentcore.tools.context import ToolContext
from agentcore.tools.declaration import FunctionDeclaration

TRANSFER_TO_AGENT = "transfer_to_agent"
EXIT_LOOP = "exit_loop"


class TransferToAgentTool(BaseTool):
    """Hands control to another agent by name.

    The flow engine resolves the name against the agent tree after the
    function-response event is yielded.
    """

    def __init__(self) -> None:
        super().__init__(
            TRANSFER_TO_AGENT,
            "Transfer the conversation to another agent that is better suited to answer.",
        )

    def get_declaration(self) -> FunctionDeclaration:
        return FunctionDeclaration(
            name=self.name,
            description=self.description,
            parameters={
                "type": "object",
                "properties": {
                    "agent_name": {
                        "type": "string",
                        "description": "Name of the agent to transfer to",
                    },
                },
                "required": ["agent_name"],
            },
        )

    async def run(self, args: dict[str, Any], tool_context: ToolContext) -> dict[str, Any]:
        agent_name = args["agent_name"]
        tool_context.actions.transfer_to_agent = agent_name
        return {"message": f"Transferred to agent: {agent_name}"}


class ExitLoopTool(BaseTool):
    """Signals the enclosing loop agent to stop iterating."""

    def __init__(self) -> None:
        super().__init__(
            EXIT_LOOP,
            "Exits the loop. Call this function only when you are instructed to do so.",
        )

    def get_declaration(self) -> FunctionDeclaration:
        return FunctionDeclaration(name=self.name, description=self.description)

    async def run(self, args: dict[str, Any], tool_context: ToolContext) -> dict[str, Any]:
        tool_context.actions.escalate = True
        tool_context.actions.skip_summarization = True
        return {"message": "Loop exited"}


transfer_to_agent = TransferToAgentTool()
exit_loop = ExitLoopTool()
