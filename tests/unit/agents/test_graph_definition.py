"""Unit tests for GraphAgent validation."""

import pytest

from agentcore import AgentKind, GraphAgent, GraphNode, LlmAgent
from agentcore.errors import GraphDefinitionError


def node(name: str, *targets: str) -> GraphNode:
    return GraphNode(name, LlmAgent(f"{name}_agent"), targets=targets)


class TestGraphDefinition:
    """Tests for graph construction checks."""

    def test_valid_graph(self):
        graph = GraphAgent(
            "flow",
            nodes=[node("a", "b", "c"), node("b", "d"), node("c", "d"), node("d")],
            root_node="a",
        )

        assert graph.kind is AgentKind.GRAPH
        assert [agent.name for agent in graph.sub_agents] == ["a_agent", "b_agent", "c_agent", "d_agent"]
        assert graph.sub_agents[0].parent_agent is graph

    def test_unknown_root(self):
        with pytest.raises(GraphDefinitionError, match="root node 'z'"):
            GraphAgent("flow", nodes=[node("a")], root_node="z")

    def test_unknown_target(self):
        with pytest.raises(GraphDefinitionError, match="unknown node 'z'"):
            GraphAgent("flow", nodes=[node("a", "z")], root_node="a")

    def test_duplicate_node_name(self):
        with pytest.raises(GraphDefinitionError, match="duplicate node name"):
            GraphAgent("flow", nodes=[node("a"), GraphNode("a", LlmAgent("other"))], root_node="a")

    def test_duplicate_target(self):
        with pytest.raises(GraphDefinitionError, match="target twice"):
            GraphAgent("flow", nodes=[node("a", "b", "b"), node("b")], root_node="a")

    def test_agent_shared_by_two_nodes(self):
        shared = LlmAgent("shared")
        with pytest.raises(GraphDefinitionError, match="more than one node"):
            GraphAgent("flow", nodes=[GraphNode("a", shared), GraphNode("b", shared)], root_node="a")

    @pytest.mark.parametrize(
        "nodes",
        [
            [("a", "a")],  # Self loop
            [("a", "b"), ("b", "a")],  # Two-node cycle
            [("a", "b"), ("b", "c"), ("c", "b")],  # Cycle below the root
        ],
    )
    def test_cycles_rejected(self, nodes):
        with pytest.raises(GraphDefinitionError, match="cycle"):
            GraphAgent("flow", nodes=[node(name, *targets) for name, *targets in nodes], root_node="a")

    def test_cycle_in_unreachable_part_is_ignored(self):
        """Only the part of the graph reachable from the root must be acyclic."""
        graph = GraphAgent("flow", nodes=[node("a"), node("x", "y"), node("y", "x")], root_node="a")

        assert graph.root_node == "a"
