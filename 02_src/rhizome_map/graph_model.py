"""Graph primitives for the rhizomatic mapping pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

NODE_TYPES = ("symbol", "theme", "insight", "archetype", "emotion", "action", "general")
DEFAULT_NODE_TYPE = "general"


class MappingMode(str, Enum):
    CONTROL = "control"
    CHAOS = "chaos"


class ReadingType(str, Enum):
    SPECIFIC = "specific"
    GENERAL = "general"
    DEEP = "deep"


@dataclass(frozen=True)
class Node:
    id: str
    label: str
    type: str = DEFAULT_NODE_TYPE

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "label": self.label, "type": self.type}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Node":
        return cls(
            id=str(payload.get("id", "")),
            label=str(payload.get("label", "")),
            type=str(payload.get("type") or DEFAULT_NODE_TYPE),
        )


@dataclass(frozen=True)
class Edge:
    source: str
    target: str
    relationship: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"from": self.source, "to": self.target, "relationship": self.relationship}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Edge":
        return cls(
            source=str(payload.get("from", "")),
            target=str(payload.get("to", "")),
            relationship=str(payload.get("relationship", "")),
        )


@dataclass
class GraphState:
    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
        }


@dataclass(frozen=True)
class RoundCheckpoint:
    """Snapshot of the graph taken right after one enrichment round.

    Nodes and edges are frozen, so copying the sequences into tuples is enough
    to keep the snapshot stable while the live graph keeps growing.
    """

    round_index: int
    insights_text: str
    node_count: int
    edge_count: int
    nodes: Tuple[Node, ...] = ()
    edges: Tuple[Edge, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cycle": self.round_index,
            "insights": self.insights_text,
            "nodeCount": self.node_count,
            "edgeCount": self.edge_count,
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "RoundCheckpoint":
        nodes = tuple(Node.from_dict(item) for item in payload.get("nodes", []))
        edges = tuple(Edge.from_dict(item) for item in payload.get("edges", []))
        return cls(
            round_index=int(payload["cycle"]),
            insights_text=str(payload.get("insights", "")),
            node_count=int(payload.get("nodeCount", len(nodes))),
            edge_count=int(payload.get("edgeCount", len(edges))),
            nodes=nodes,
            edges=edges,
        )


@dataclass(frozen=True)
class PipelineResult:
    narrative: str
    question: str
    graph: GraphState
    checkpoints: Tuple[RoundCheckpoint, ...]
    synthesis: str
    mode: MappingMode = MappingMode.CONTROL
    reading_type: Optional[ReadingType] = None
