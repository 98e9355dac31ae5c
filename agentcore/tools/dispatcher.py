"""Validates, invokes and retries tool calls.

Tool-level failures never escape the dispatcher: invalid arguments and
exceptions raised by a tool body are returned as structured error results so
the model can see them and correct its call.
"""

from time import monotonic
from typing import Any

from tenacity import AsyncRetrying, RetryCallState, stop_after_attempt, wait_exponential
from tenacity.wait import wait_base

from agentcore.errors import ErrorCode, ToolExecutionError, ToolValidationError
from agentcore.platform.observability import get_logger
from agentcore.platform.observability.metrics import ToolMetricsLabels, record_tool_call
from agentcore.platform.observability.tracing import trace_tool_call, tracer
from agentcore.tools.base import BaseTool
from agentcore.tools.context import ToolContext

logger = get_logger(__name__)


def error_result(message: str, error_code: ErrorCode) -> dict[str, Any]:
    return {"error": message, "error_code": str(error_code)}


def is_error_result(result: dict[str, Any] | None) -> bool:
    return bool(result) and "error" in result and "error_code" in result


def normalize_result(result: Any) -> dict[str, Any]:
    if isinstance(result, dict):
        return result
    return {"result": result}


class ToolDispatcher:
    """Runs one tool call end to end.

    Args:
        retry_wait: Wait strategy between attempts of retrying tools
    """

    def __init__(self, retry_wait: wait_base | None = None) -> None:
        self._retry_wait = retry_wait or wait_exponential(multiplier=0.5, max=5)

    async def dispatch(
        self,
        tool: BaseTool,
        args: Any,
        tool_context: ToolContext,
    ) -> dict[str, Any] | None:
        """Validate arguments, invoke the tool and normalize its result.

        Args:
            tool: Tool to invoke
            args: Arguments supplied by the model
            tool_context: Context of the function call

        Returns:
            The tool result as a dict, a structured error result, or None for a
            long-running tool that produced no inline result
        """
        start = monotonic()
        with tracer.start_as_current_span(f"execute_tool {tool.name}") as span:
            try:
                validated = tool.validate_args(args)
                result = await self._invoke(tool, validated, tool_context)
            except ToolValidationError as e:
                logger.info("tool_args_invalid", tool=tool.name, error=str(e))
                response = error_result(str(e), ErrorCode.VALIDATION_ERROR)
            except ToolExecutionError as e:
                logger.warning("tool_failed", tool=tool.name, error=str(e))
                response = error_result(str(e), ErrorCode.TOOL_EXECUTION_ERROR)
            except Exception as e:
                logger.warning("tool_failed", tool=tool.name, error=str(e), exc_info=True)
                response = error_result(
                    str(ToolExecutionError(tool.name, str(e))), ErrorCode.TOOL_EXECUTION_ERROR
                )
            else:
                if result is None and tool.is_long_running:
                    response = None
                else:
                    response = normalize_result(result)

            trace_tool_call(
                span,
                tool_name=tool.name,
                tool_description=tool.description,
                function_call_id=tool_context.function_call_id,
                args=args if isinstance(args, dict) else {},
                response=response or {},
            )

        record_tool_call(
            ToolMetricsLabels(tool_context.agent_name, tool.name, tool.proxy_name),
            duration=monotonic() - start,
            error=is_error_result(response),
        )
        return response

    async def _invoke(self, tool: BaseTool, args: dict[str, Any], tool_context: ToolContext) -> Any:
        if not tool.should_retry_on_failure:
            return await tool.run(args, tool_context)

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(tool.max_retry_attempts),
            wait=self._retry_wait,
            before_sleep=lambda retry_state: self._log_retry(tool.name, retry_state),
            reraise=True,
        ):
            with attempt:
                return await tool.run(args, tool_context)

    @staticmethod
    def _log_retry(tool_name: str, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.info(
            "tool_retry",
            tool=tool_name,
            attempt=retry_state.attempt_number,
            error=str(exc) if exc else None,
        )
