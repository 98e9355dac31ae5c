"""Event and content records."""

from agentcore.events.content import Blob, Content, FunctionCall, FunctionResponse, Part
from agentcore.events.event import Event, EventActions

__all__ = [
    "Blob",
    "Content",
    "Event",
    "EventActions",
    "FunctionCall",
    "FunctionResponse",
    "Part",
]
