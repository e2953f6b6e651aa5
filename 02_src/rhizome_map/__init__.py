"""Rhizomatic mapping of LLM readings into an evolving node/edge graph."""

from .cancellation import CancellationToken
from .completion import ChatModelCompletionClient, CompletionClient, RelayCompletionClient
from .exceptions import CompletionError, ExportFormatError, PipelineCancelled, RhizomeMapError
from .graph_model import (
    Edge,
    GraphState,
    MappingMode,
    Node,
    PipelineResult,
    ReadingType,
    RoundCheckpoint,
)
from .graph_orchestrator import GraphOrchestrator
from .mentions import Mention, detect_mentions
from .pipeline import PipelinePhase
from .runner import MappingPipeline

__all__ = [
    "CancellationToken",
    "ChatModelCompletionClient",
    "CompletionClient",
    "CompletionError",
    "Edge",
    "ExportFormatError",
    "GraphOrchestrator",
    "GraphState",
    "MappingMode",
    "MappingPipeline",
    "Mention",
    "Node",
    "PipelineCancelled",
    "PipelinePhase",
    "PipelineResult",
    "ReadingType",
    "RhizomeMapError",
    "RoundCheckpoint",
    "detect_mentions",
]
