"""Base class for tools callable by a model."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from agentcore.tools.declaration import FunctionDeclaration, build_args_model, validate_args

if TYPE_CHECKING:
    from agentcore.models.llm_request import LlmRequest
    from agentcore.tools.context import ToolContext

DEFAULT_MAX_RETRY_ATTEMPTS = 3


class BaseTool(ABC):
    """A named capability the model can invoke.

    Subclasses provide a declaration and a `run` body. Argument validation,
    retries and error wrapping are applied by the dispatcher, not by the tool.
    """

    def __init__(
        self,
        name: str,
        description: str,
        *,
        is_long_running: bool = False,
        should_retry_on_failure: bool = False,
        max_retry_attempts: int = DEFAULT_MAX_RETRY_ATTEMPTS,
    ) -> None:
        """Initialize the tool.

        Args:
            name: Name the model uses to call the tool
            description: What the tool does, shown to the model
            is_long_running: The result is supplied in a later turn
            should_retry_on_failure: Retry the body when it raises
            max_retry_attempts: Total attempts when retrying
        """
        if max_retry_attempts < 1:
            raise ValueError(f"max_retry_attempts must be at least 1, got {max_retry_attempts}")
        self.name = name
        self.description = description
        self.is_long_running = is_long_running
        self.should_retry_on_failure = should_retry_on_failure
        self.max_retry_attempts = max_retry_attempts
        self._args_model: type[BaseModel] | None = None
        self._args_model_built = False

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

    @property
    def proxy_name(self) -> str:
        """Name of the underlying remote tool, when this tool proxies one."""
        return ""

    def get_declaration(self) -> FunctionDeclaration | None:
        return None

    def validate_args(self, args: Any) -> dict[str, Any]:
        """Validate model-supplied arguments against the declaration.

        Raises:
            ToolValidationError: If the arguments do not match
        """
        if not self._args_model_built:
            declaration = self.get_declaration()
            self._args_model = build_args_model(self.name, declaration.parameters if declaration else None)
            self._args_model_built = True
        return validate_args(self.name, self._args_model, args)

    @abstractmethod
    async def run(self, args: dict[str, Any], tool_context: "ToolContext") -> Any:
        """Execute the tool.

        Args:
            args: Validated arguments
            tool_context: Context of the function call

        Returns:
            The tool result; non-dict values are wrapped as {"result": value}
        """

    async def process_llm_request(self, tool_context: "ToolContext", llm_request: "LlmRequest") -> None:
        """Offer this tool to the model by attaching its declaration."""
        llm_request.append_tools([self])
