"""Runs sub-agents along the edges of a directed acyclic graph.

Join policy: a node runs at most once per graph run and waits until every
predecessor reachable from the root has either completed or been skipped.
It then runs when at least one predecessor completed and its condition
passes; otherwise it is skipped and the skip propagates to its targets.
Ready nodes run one at a time, in the order they became ready.
"""

from collections import deque
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import aclosing
from dataclasses import dataclass

from agentcore.agents.base import AgentKind, BaseAgent
from agentcore.agents.context import ExecutionContext
from agentcore.errors import GraphDefinitionError
from agentcore.events import Event
from agentcore.flows.functions import maybe_await
from agentcore.platform.observability import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_STEPS = 50

type EdgeCondition = Callable[[Event | None, ExecutionContext], bool | Awaitable[bool]]


@dataclass(frozen=True)
class GraphNode:
    """One node of a graph agent.

    Attributes:
        name: Node name, unique within the graph
        agent: Agent run when the node executes
        targets: Names of the nodes that follow this one
        condition: Called with the most recent event of the graph run; the
                   node is skipped when it returns False
    """

    name: str
    agent: BaseAgent
    targets: tuple[str, ...] = ()
    condition: EdgeCondition | None = None


class GraphAgent(BaseAgent):
    """Agent whose sub-agents run as the nodes of a DAG.

    Args:
        name: Agent name
        nodes: Graph nodes; each node's agent becomes a sub-agent
        root_node: Name of the node that runs first
        description: Agent description
        max_steps: Upper bound on node executions per run

    Raises:
        GraphDefinitionError: If node names repeat, the root or a target does
                              not exist, an agent is used by two nodes, or the
                              graph has a cycle
    """

    kind = AgentKind.GRAPH

    def __init__(
        self,
        name: str,
        *,
        nodes: Sequence[GraphNode],
        root_node: str,
        description: str = "",
        max_steps: int = DEFAULT_MAX_STEPS,
    ) -> None:
        self.nodes = self._validate_nodes(name, nodes)
        self.root_node = root_node
        self.max_steps = max_steps
        if root_node not in self.nodes:
            raise GraphDefinitionError(name, f"root node {root_node!r} does not exist")
        self._predecessors = self._reachable_predecessors(name)
        super().__init__(name, description, [node.agent for node in nodes])

        unreachable = set(self.nodes) - set(self._predecessors)
        if unreachable:
            logger.warning("graph_nodes_unreachable", graph=name, nodes=sorted(unreachable))

    @staticmethod
    def _validate_nodes(graph_name: str, nodes: Sequence[GraphNode]) -> dict[str, GraphNode]:
        by_name: dict[str, GraphNode] = {}
        agents: set[int] = set()
        for node in nodes:
            if node.name in by_name:
                raise GraphDefinitionError(graph_name, f"duplicate node name {node.name!r}")
            if id(node.agent) in agents:
                raise GraphDefinitionError(graph_name, f"agent {node.agent.name} is used by more than one node")
            if len(set(node.targets)) != len(node.targets):
                raise GraphDefinitionError(graph_name, f"node {node.name!r} lists a target twice")
            by_name[node.name] = node
            agents.add(id(node.agent))
        for node in nodes:
            for target in node.targets:
                if target not in by_name:
                    raise GraphDefinitionError(graph_name, f"node {node.name!r} targets unknown node {target!r}")
        return by_name

    def _reachable_predecessors(self, graph_name: str) -> dict[str, list[str]]:
        """Map every node reachable from the root to its reachable predecessors."""
        reachable = {self.root_node}
        frontier = deque([self.root_node])
        while frontier:
            for target in self.nodes[frontier.popleft()].targets:
                if target not in reachable:
                    reachable.add(target)
                    frontier.append(target)

        predecessors: dict[str, list[str]] = {name: [] for name in reachable}
        for name in reachable:
            for target in self.nodes[name].targets:
                predecessors[target].append(name)

        # Kahn's algorithm: every reachable node is consumed only when there is no cycle.
        remaining = {name: len(preds) for name, preds in predecessors.items()}
        ready = deque(name for name, count in remaining.items() if count == 0)
        visited = 0
        while ready:
            visited += 1
            for target in self.nodes[ready.popleft()].targets:
                remaining[target] -= 1
                if remaining[target] == 0:
                    ready.append(target)
        if visited != len(reachable):
            raise GraphDefinitionError(graph_name, "graph contains a cycle; use a LoopAgent for repetition")
        return predecessors

    async def _run_impl(self, ctx: ExecutionContext) -> AsyncIterator[Event]:
        remaining = {name: len(preds) for name, preds in self._predecessors.items()}
        activated = {self.root_node}
        ready = deque([self.root_node])
        last_event: Event | None = None
        steps = 0

        while ready:
            node = self.nodes[ready.popleft()]
            runs = node.name in activated and (
                node.condition is None or bool(await maybe_await(node.condition(last_event, ctx)))
            )
            if runs:
                if steps >= self.max_steps:
                    logger.warning("graph_max_steps_reached", graph=self.name, max_steps=self.max_steps)
                    return
                steps += 1
                async with aclosing(node.agent.run(ctx.derive_child(node.agent))) as events:
                    async for event in events:
                        last_event = event
                        yield event
                if ctx.end_invocation:
                    return
            else:
                logger.debug("graph_node_skipped", graph=self.name, node=node.name)

            for target in node.targets:
                if runs:
                    activated.add(target)
                remaining[target] -= 1
                if remaining[target] == 0:
                    ready.append(target)
