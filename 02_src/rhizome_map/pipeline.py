"""Pipeline state and the phase contract shared by every stage."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from typing_extensions import TypedDict

from .completion import CompletionClient
from .graph_model import GraphState, MappingMode, RoundCheckpoint


class MappingState(TypedDict, total=False):
    narrative: str
    question: str
    mode: MappingMode
    round_count: int
    round_index: int
    graph: GraphState
    checkpoints: List[RoundCheckpoint]
    synthesis: str


class PipelinePhase(ABC):
    phase_name: str

    def __init__(self, client: CompletionClient) -> None:
        self._client = client

    @abstractmethod
    async def run(self, state: MappingState) -> Dict[str, Any]:
        """Return the state keys this phase produced."""
        raise NotImplementedError
