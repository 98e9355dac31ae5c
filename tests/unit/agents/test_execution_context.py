"""Unit tests for ExecutionContext."""

import pytest

from agentcore import ExecutionContext, LlmAgent, RunConfig, SequentialAgent
from agentcore.errors import LlmCallLimitExceededError
from agentcore.sessions import InMemorySessionService, Session


@pytest.fixture
def tree():
    writer = LlmAgent("writer")
    pipeline = SequentialAgent("pipeline", sub_agents=[writer])
    return pipeline, writer


def make_context(agent, run_config: RunConfig | None = None) -> ExecutionContext:
    return ExecutionContext(
        session=Session(id="s-1", app_name="app", user_id="user"),
        invocation_id=ExecutionContext.new_invocation_id(),
        agent=agent,
        session_service=InMemorySessionService(),
        run_config=run_config or RunConfig(),
    )


class TestCloning:
    """Tests for deriving contexts."""

    def test_derive_child_extends_branch(self, tree):
        pipeline, writer = tree
        root_ctx = make_context(pipeline)

        child_ctx = root_ctx.derive_child(writer)
        grandchild_ctx = child_ctx.derive_child(LlmAgent("reviewer"))

        assert root_ctx.branch is None
        assert child_ctx.branch == "pipeline.writer"
        assert grandchild_ctx.branch == "pipeline.writer.writer.reviewer"
        assert child_ctx.agent is writer

    def test_for_agent_keeps_branch(self, tree):
        pipeline, writer = tree
        ctx = make_context(pipeline).derive_child(writer)

        assert ctx.for_agent(pipeline).branch == ctx.branch

    def test_clones_share_session_and_control(self, tree):
        """Cancelling through any clone is visible to all of them."""
        pipeline, writer = tree
        root_ctx = make_context(pipeline)
        child_ctx = root_ctx.derive_child(writer)

        child_ctx.cancel()

        assert root_ctx.end_invocation
        assert child_ctx.session is root_ctx.session
        assert child_ctx.invocation_id == root_ctx.invocation_id

    def test_invocation_ids_unique(self):
        assert ExecutionContext.new_invocation_id() != ExecutionContext.new_invocation_id()


class TestLlmCallLimit:
    """Tests for the model call budget."""

    def test_counts_across_clones(self, tree):
        pipeline, writer = tree
        root_ctx = make_context(pipeline, RunConfig(max_llm_calls=2))

        root_ctx.increment_llm_call_count()
        root_ctx.derive_child(writer).increment_llm_call_count()

        assert root_ctx.llm_call_count == 2
        with pytest.raises(LlmCallLimitExceededError, match="2"):
            root_ctx.increment_llm_call_count()

    def test_zero_disables_limit(self, tree):
        pipeline, _ = tree
        ctx = make_context(pipeline, RunConfig(max_llm_calls=0))

        for _ in range(1000):
            ctx.increment_llm_call_count()

        assert ctx.llm_call_count == 1000
