"""Prometheus metrics for agent runs, tool calls and model usage.

Histograms share the log-spaced `BUCKETS`. Label tuples are NamedTuples so
call sites stay positional-safe and cheap.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from time import monotonic
from typing import NamedTuple

import prometheus_client


class AgentMetricsLabels(NamedTuple):
    agent: str


class ToolMetricsLabels(NamedTuple):
    agent: str
    tool_name: str
    proxy_tool_name: str = ""


class _AgentRunLabels(NamedTuple):
    agent: str
    status: str


class _ToolCallLabels(NamedTuple):
    agent: str
    tool_name: str
    proxy_tool_name: str
    status: str


class _TokenLabels(NamedTuple):
    agent: str
    model: str
    direction: str


class _LlmCallLabels(NamedTuple):
    agent: str
    model: str


BUCKETS = (
    # these are log spaced with 1 sig-fig rounding so there are 3 per decade
    # 3 div/decade = 1,   2.15,   4.64,   10
    0.0002,  # 200 μs
    0.0005,
    0.001,  # 1 ms
    0.002,
    0.005,
    0.01,
    0.02,
    0.05,
    0.1,
    0.2,
    0.5,
    1,
    2,
    5,
    10,
    20,
    50,
    100,  # long tool calls and multi-turn runs
    float("inf"),
)


def setup_metrics_factory(registry, name, documentation, labelnames):
    """Create a Prometheus histogram with standard bucket configuration.

    Args:
        registry: Prometheus registry to register the metric with
        name: Metric name (e.g., "agent_run_duration_seconds")
        documentation: Human-readable metric description
        labelnames: Tuple of label names for the histogram

    Returns:
        Configured Prometheus Histogram instance
    """
    return prometheus_client.Histogram(
        name=name,
        documentation=documentation,
        labelnames=labelnames,
        registry=registry,
        buckets=BUCKETS,
    )


agent_run_histogram = setup_metrics_factory(
    prometheus_client.REGISTRY,
    name="agent_run_duration_seconds",
    documentation="Agent run duration (seconds)",
    labelnames=_AgentRunLabels._fields,
)
tool_call_histogram = setup_metrics_factory(
    prometheus_client.REGISTRY,
    name="tool_call_duration_seconds",
    documentation="Tool call duration (seconds)",
    labelnames=_ToolCallLabels._fields,
)
llm_tokens_counter = prometheus_client.Counter(
    name="llm_tokens",
    documentation="Tokens exchanged with language models",
    labelnames=_TokenLabels._fields,
    registry=prometheus_client.REGISTRY,
)
llm_calls_counter = prometheus_client.Counter(
    name="llm_calls",
    documentation="Language model calls",
    labelnames=_LlmCallLabels._fields,
    registry=prometheus_client.REGISTRY,
)


def _status(error: bool) -> str:
    return "error" if error else "success"


def record_tool_call(labels: ToolMetricsLabels, duration: float, error: bool) -> None:
    """Record one tool invocation.

    Args:
        labels: Agent and tool identity
        duration: Wall time of the call in seconds
        error: Whether the call failed
    """
    tool_call_histogram.labels(*labels, _status(error)).observe(duration)


def record_agent_tokens(agent: str, model: str, input_tokens: int, output_tokens: int) -> None:
    if input_tokens:
        llm_tokens_counter.labels(agent, model, "input").inc(input_tokens)
    if output_tokens:
        llm_tokens_counter.labels(agent, model, "output").inc(output_tokens)


def record_llm_call(agent: str, model: str) -> None:
    llm_calls_counter.labels(agent, model).inc()


@asynccontextmanager
async def collect_agent_metrics(labels: AgentMetricsLabels) -> AsyncIterator[None]:
    """Time an agent run and record it with its outcome."""
    start = monotonic()
    error = False
    try:
        yield
    except Exception:
        error = True
        raise
    finally:
        agent_run_histogram.labels(labels.agent, _status(error)).observe(monotonic() - start)


def metrics() -> tuple[bytes, str]:
    """Render the default registry in the Prometheus exposition format.

    Returns:
        Tuple of (metrics_body, content_type)
    """
    return (
        prometheus_client.generate_latest(prometheus_client.REGISTRY),
        prometheus_client.CONTENT_TYPE_LATEST,
    )
