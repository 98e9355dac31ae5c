"""Tool contract, dispatcher and built-in tools.

MCP-backed tools live in `agentcore.tools.mcp`.
"""

from agentcore.tools.base import BaseTool
from agentcore.tools.context import ToolContext
from agentcore.tools.control import ExitLoopTool, TransferToAgentTool, exit_loop, transfer_to_agent
from agentcore.tools.declaration import FunctionDeclaration, build_args_model, validate_args
from agentcore.tools.dispatcher import ToolDispatcher
from agentcore.tools.function_tool import FunctionTool, create_tool

__all__ = [
    "BaseTool",
    "ExitLoopTool",
    "FunctionDeclaration",
    "FunctionTool",
    "ToolContext",
    "ToolDispatcher",
    "TransferToAgentTool",
    "build_args_model",
    "create_tool",
    "exit_loop",
    "transfer_to_agent",
    "validate_args",
]
