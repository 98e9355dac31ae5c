"""Provider-neutral model request built by the flow's request processors."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import BaseModel

from agentcore.events import Content
from agentcore.tools.declaration import FunctionDeclaration

if TYPE_CHECKING:
    from agentcore.tools.base import BaseTool


@dataclass
class GenerateConfig:
    """Generation parameters passed through to the model adapter.

    Attributes:
        system_instruction: Instructions joined by blank lines
        temperature: Sampling temperature, adapter default when None
        max_output_tokens: Completion token cap, adapter default when None
        stop_sequences: Sequences that end generation
        tools: Declarations of the tools offered to the model
        response_schema: Pydantic model the final answer must be JSON for
    """

    system_instruction: str | None = None
    temperature: float | None = None
    max_output_tokens: int | None = None
    stop_sequences: list[str] = field(default_factory=list)
    tools: list[FunctionDeclaration] = field(default_factory=list)
    response_schema: type[BaseModel] | None = None


@dataclass
class LlmRequest:
    """A mutable request that request processors fill in before the model call.

    Attributes:
        model: Model identifier
        contents: Conversation history, oldest first
        config: Generation parameters
        tools_dict: Tools offered in this request, by declared name
    """

    model: str | None = None
    contents: list[Content] = field(default_factory=list)
    config: GenerateConfig = field(default_factory=GenerateConfig)
    tools_dict: dict[str, "BaseTool"] = field(default_factory=dict)

    def append_instructions(self, instructions: Sequence[str]) -> None:
        joined = "\n\n".join(instructions)
        if not joined:
            return
        if self.config.system_instruction:
            self.config.system_instruction += f"\n\n{joined}"
        else:
            self.config.system_instruction = joined

    def append_tools(self, tools: Sequence["BaseTool"]) -> None:
        """Offer tools to the model, skipping tools without a declaration."""
        for tool in tools:
            declaration = tool.get_declaration()
            if declaration is None:
                continue
            self.config.tools.append(declaration)
            self.tools_dict[declaration.name] = tool
