"""Provider-neutral conversation content.

A `Content` is one turn of conversation made of `Part`s. Each part carries
exactly one payload: text, a function call, a function response or inline
binary data.
"""

from dataclasses import dataclass, field
from typing import Any, Literal

type Role = Literal["user", "model"]


@dataclass(frozen=True)
class FunctionCall:
    """A model's request to invoke a tool.

    Attributes:
        name: Tool name as declared to the model
        args: Arguments supplied by the model
        id: Call identifier, assigned when the model does not provide one
    """

    name: str
    args: dict[str, Any] = field(default_factory=dict)
    id: str | None = None


@dataclass(frozen=True)
class FunctionResponse:
    """The result of a tool invocation, keyed back to its call id."""

    name: str
    response: dict[str, Any]
    id: str | None = None


@dataclass(frozen=True)
class Blob:
    """Inline binary data, e.g. an image received over MCP sampling."""

    mime_type: str
    data: str


@dataclass(frozen=True)
class Part:
    text: str | None = None
    function_call: FunctionCall | None = None
    function_response: FunctionResponse | None = None
    inline_data: Blob | None = None

    @classmethod
    def from_text(cls, text: str) -> "Part":
        return cls(text=text)

    @classmethod
    def from_function_call(cls, name: str, args: dict[str, Any], id: str | None = None) -> "Part":
        return cls(function_call=FunctionCall(name=name, args=args, id=id))

    @classmethod
    def from_function_response(
        cls, name: str, response: dict[str, Any], id: str | None = None
    ) -> "Part":
        return cls(function_response=FunctionResponse(name=name, response=response, id=id))


@dataclass(frozen=True)
class Content:
    """One conversational turn.

    Attributes:
        role: "user" for user input and tool results, "model" for model output
        parts: Ordered content parts
    """

    role: Role = "model"
    parts: tuple[Part, ...] = ()

    @classmethod
    def from_text(cls, text: str, role: Role = "user") -> "Content":
        return cls(role=role, parts=(Part.from_text(text),))

    @property
    def text(self) -> str:
        """Concatenated text of all text parts."""
        return "".join(part.text for part in self.parts if part.text)
