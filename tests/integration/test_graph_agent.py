"""Integration tests for graph-shaped agent execution."""

from agentcore import GraphAgent, GraphNode, LlmAgent


def text_agent(make_llm, responses, name: str, *texts: str) -> LlmAgent:
    return LlmAgent(name, model=make_llm(*(responses.text(t) for t in texts)))


class TestGraphAgent:
    """Tests for `GraphAgent` execution order and conditions."""

    async def test_diamond_runs_join_once(self, make_llm, responses, run_agent):
        """In A -> (B, C) -> D, D runs once after both B and C."""
        graph = GraphAgent(
            "diamond",
            nodes=[
                GraphNode("a", text_agent(make_llm, responses, "plan", "A"), targets=("b", "c")),
                GraphNode("b", text_agent(make_llm, responses, "research", "B"), targets=("d",)),
                GraphNode("c", text_agent(make_llm, responses, "estimate", "C"), targets=("d",)),
                GraphNode("d", text_agent(make_llm, responses, "summarize", "D")),
            ],
            root_node="a",
        )

        events, _ = await run_agent(graph)

        assert [e.text for e in events] == ["A", "B", "C", "D"]
        assert events[-1].branch == "diamond.summarize"

    async def test_false_condition_skips_node_and_its_descendants(self, make_llm, responses, run_agent):
        """A skipped node does not activate its targets."""
        escalation_llm = make_llm()
        graph = GraphAgent(
            "triage",
            nodes=[
                GraphNode("classify", text_agent(make_llm, responses, "classifier", "routine"), targets=("escalate",)),
                GraphNode(
                    "escalate",
                    LlmAgent("escalation", model=escalation_llm),
                    targets=("notify",),
                    condition=lambda event, ctx: event is not None and event.text == "urgent",
                ),
                GraphNode("notify", text_agent(make_llm, responses, "notifier", "sent")),
            ],
            root_node="classify",
        )

        events, _ = await run_agent(graph)

        assert [e.author for e in events] == ["classifier"]
        assert escalation_llm.requests == []

    async def test_join_runs_when_one_branch_skipped(self, make_llm, responses, run_agent):
        """A join node runs if at least one predecessor ran."""

        async def never(event, ctx):
            return False

        graph = GraphAgent(
            "partial_join",
            nodes=[
                GraphNode("start", text_agent(make_llm, responses, "start_agent", "go"), targets=("left", "right")),
                GraphNode("left", text_agent(make_llm, responses, "left_agent", "L"), targets=("join",)),
                GraphNode("right", LlmAgent("right_agent", model=make_llm()), targets=("join",), condition=never),
                GraphNode("join", text_agent(make_llm, responses, "join_agent", "J")),
            ],
            root_node="start",
        )

        events, _ = await run_agent(graph)

        assert [e.text for e in events] == ["go", "L", "J"]

    async def test_condition_reads_state(self, make_llm, responses, run_agent):
        """Conditions can route on state written by earlier nodes."""
        graph = GraphAgent(
            "router",
            nodes=[
                GraphNode(
                    "classify",
                    LlmAgent("classifier", model=make_llm(responses.text("billing")), output_key="route"),
                    targets=("billing", "support"),
                ),
                GraphNode(
                    "billing",
                    text_agent(make_llm, responses, "billing_agent", "invoice sent"),
                    condition=lambda event, ctx: ctx.session.state.get("route") == "billing",
                ),
                GraphNode(
                    "support",
                    LlmAgent("support_agent", model=make_llm()),
                    condition=lambda event, ctx: ctx.session.state.get("route") == "support",
                ),
            ],
            root_node="classify",
        )

        events, session = await run_agent(graph)

        assert [e.author for e in events] == ["classifier", "billing_agent"]
        assert session.state["route"] == "billing"

    async def test_max_steps_stops_run(self, make_llm, responses, run_agent):
        """Node executions beyond `max_steps` do not happen."""
        graph = GraphAgent(
            "chain",
            nodes=[
                GraphNode("one", text_agent(make_llm, responses, "first", "1"), targets=("two",)),
                GraphNode("two", text_agent(make_llm, responses, "second", "2"), targets=("three",)),
                GraphNode("three", LlmAgent("third", model=make_llm())),
            ],
            root_node="one",
            max_steps=2,
        )

        events, _ = await run_agent(graph)

        assert [e.text for e in events] == ["1", "2"]
