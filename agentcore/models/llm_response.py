"""Response chunks produced by model adapters."""

from dataclasses import dataclass

from agentcore.events import Content, FunctionCall


@dataclass(frozen=True)
class UsageMetadata:
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass(frozen=True)
class LlmResponse:
    """One chunk of model output.

    In streaming mode an adapter yields text deltas with `partial=True`
    followed by one aggregated, non-partial response. Without streaming it
    yields a single non-partial response.

    Attributes:
        content: Output content, or the delta for partial chunks
        partial: Whether more chunks follow for this response
        turn_complete: Whether the model finished its turn
        error_code: Provider or adapter error kind
        error_message: Human-readable error description
        interrupted: Whether generation was cut short
        usage: Token accounting, when the provider reports it
        finish_reason: Provider finish reason
    """

    content: Content | None = None
    partial: bool = False
    turn_complete: bool = False
    error_code: str | None = None
    error_message: str | None = None
    interrupted: bool = False
    usage: UsageMetadata | None = None
    finish_reason: str | None = None

    @property
    def function_calls(self) -> list[FunctionCall]:
        if not self.content:
            return []
        return [part.function_call for part in self.content.parts if part.function_call]
