"""Per-run settings."""

from dataclasses import dataclass
from enum import StrEnum


class StreamingMode(StrEnum):
    NONE = "none"
    SSE = "sse"


@dataclass(frozen=True)
class RunConfig:
    """Per-run settings.

    Attributes:
        streaming_mode: SSE surfaces partial model output as partial events
        max_llm_calls: Model call budget for the run; 0 or less disables the limit
    """

    streaming_mode: StreamingMode = StreamingMode.NONE
    max_llm_calls: int = 500
