"""Append-only mutations of graph state and per-round checkpoints."""

from typing import Iterable, Tuple

from .graph_model import Edge, GraphState, Node, RoundCheckpoint


class GraphOrchestrator:
    """Applies merge rules to an explicitly passed graph state.

    Nodes and edges are only ever appended. Nothing is deduplicated, so
    near-identical nodes produced in different rounds coexist and the counts
    recorded in checkpoints reflect exactly what the model returned.
    """

    def __init__(self, state: GraphState | None = None) -> None:
        self.state = state if state is not None else GraphState()

    def add_nodes(self, nodes: Iterable[Node]) -> int:
        added = list(nodes)
        self.state.nodes.extend(added)
        return len(added)

    def add_edges(self, edges: Iterable[Edge]) -> int:
        added = list(edges)
        self.state.edges.extend(added)
        return len(added)

    def merge_round(self, edges: Iterable[Edge], new_nodes: Iterable[Node]) -> Tuple[int, int]:
        return self.add_edges(edges), self.add_nodes(new_nodes)

    def checkpoint(self, round_index: int, insights_text: str) -> RoundCheckpoint:
        return RoundCheckpoint(
            round_index=round_index,
            insights_text=insights_text,
            node_count=len(self.state.nodes),
            edge_count=len(self.state.edges),
            nodes=tuple(self.state.nodes),
            edges=tuple(self.state.edges),
        )

    def counts(self) -> Tuple[int, int]:
        return len(self.state.nodes), len(self.state.edges)
