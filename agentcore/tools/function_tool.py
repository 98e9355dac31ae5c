"""Tools wrapping plain Python callables."""

import inspect
from collections.abc import Callable
from typing import Any, overload

from pydantic import BaseModel, create_model

from agentcore.tools.base import DEFAULT_MAX_RETRY_ATTEMPTS, BaseTool
from agentcore.tools.context import ToolContext
from agentcore.tools.declaration import FunctionDeclaration, build_args_model, validate_args

TOOL_CONTEXT_PARAM = "tool_context"


def _signature_model(name: str, func: Callable[..., Any]) -> type[BaseModel] | None:
    """Build an argument model from a function signature.

    The `tool_context` parameter and variadic parameters are not model-facing
    and are skipped.
    """
    fields: dict[str, Any] = {}
    for param in inspect.signature(func).parameters.values():
        if param.name == TOOL_CONTEXT_PARAM or param.kind in (
            inspect.Parameter.VAR_POSITIONAL,
            inspect.Parameter.VAR_KEYWORD,
        ):
            continue
        annotation = Any if param.annotation is inspect.Parameter.empty else param.annotation
        default = ... if param.default is inspect.Parameter.empty else param.default
        fields[param.name] = (annotation, default)
    if not fields:
        return None
    model_name = "".join(chunk.title() for chunk in name.split("_")) + "Args"
    return create_model(model_name, **fields)  # type: ignore[call-overload]


def _schema_without_titles(schema: Any) -> Any:
    if isinstance(schema, dict):
        return {key: _schema_without_titles(value) for key, value in schema.items() if key != "title"}
    if isinstance(schema, list):
        return [_schema_without_titles(item) for item in schema]
    return schema


class FunctionTool(BaseTool):
    """A tool whose body is a sync or async Python callable.

    The declaration comes from an explicit JSON schema when one is given and
    from the function signature otherwise. A parameter named `tool_context`
    receives the `ToolContext` of the call.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        *,
        name: str | None = None,
        description: str | None = None,
        parameters: dict[str, Any] | None = None,
        is_long_running: bool = False,
        should_retry_on_failure: bool = False,
        max_retry_attempts: int = DEFAULT_MAX_RETRY_ATTEMPTS,
    ) -> None:
        name = name or func.__name__
        if description is None:
            doc = inspect.getdoc(func) or ""
            description = doc.split("\n\n")[0].strip()
        super().__init__(
            name,
            description,
            is_long_running=is_long_running,
            should_retry_on_failure=should_retry_on_failure,
            max_retry_attempts=max_retry_attempts,
        )
        self.func = func
        self._accepts_context = TOOL_CONTEXT_PARAM in inspect.signature(func).parameters
        self._from_signature = parameters is None
        if parameters is None:
            self._args_model = _signature_model(name, func)
            self._parameters = (
                _schema_without_titles(self._args_model.model_json_schema()) if self._args_model else None
            )
        else:
            self._args_model = build_args_model(name, parameters)
            self._parameters = parameters
        self._args_model_built = True

    def get_declaration(self) -> FunctionDeclaration:
        return FunctionDeclaration(name=self.name, description=self.description, parameters=self._parameters)

    def validate_args(self, args: Any) -> dict[str, Any]:
        # Signature-derived models hand the function parsed objects, not JSON.
        return validate_args(self.name, self._args_model, args, as_json=not self._from_signature)

    async def run(self, args: dict[str, Any], tool_context: ToolContext) -> Any:
        kwargs = dict(args)
        if self._accepts_context:
            kwargs[TOOL_CONTEXT_PARAM] = tool_context
        result = self.func(**kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result


@overload
def create_tool(func: Callable[..., Any], **options: Any) -> FunctionTool: ...


@overload
def create_tool(func: None = None, **options: Any) -> Callable[[Callable[..., Any]], FunctionTool]: ...


def create_tool(func=None, **options):
    """Wrap a callable as a `FunctionTool`; usable directly or as a decorator.

    Usage:
        @create_tool(should_retry_on_failure=True)
        async def lookup_order(order_id: str) -> dict: ...

        weather = create_tool(get_weather, name="weather")
    """
    if func is None:
        return lambda f: FunctionTool(f, **options)
    return FunctionTool(func, **options)
