"""Pipeline driver: extraction, a fixed number of enrichment rounds, synthesis."""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional

import structlog
from langgraph.graph import END, START, StateGraph

from .cancellation import CancellationToken
from .completion import CompletionClient
from .config import DEFAULT_ROUND_COUNT
from .exceptions import CompletionError, PipelineCancelled
from .graph_model import GraphState, MappingMode, PipelineResult, ReadingType, RoundCheckpoint
from .graph_orchestrator import GraphOrchestrator
from .phases.enrichment import EnrichmentRoundPhase
from .phases.extraction import NodeExtractionPhase
from .phases.synthesis import SynthesisPhase, basic_synthesis
from .pipeline import MappingState, PipelinePhase

logger = structlog.get_logger(__name__)

CheckpointCallback = Callable[[RoundCheckpoint], None]
StageFunction = Callable[[MappingState], Awaitable[Dict[str, Any]]]


class MappingPipeline:
    """Runs the mapping stages strictly in sequence.

    Malformed responses are absorbed inside the phases. A ``CompletionError``
    from any stage aborts the run and no result is produced.
    """

    def __init__(
        self,
        client: CompletionClient,
        round_delay: float = 1.0,
        on_checkpoint: Optional[CheckpointCallback] = None,
    ) -> None:
        self._extraction = NodeExtractionPhase(client)
        self._enrichment = EnrichmentRoundPhase(client)
        self._synthesis = SynthesisPhase(client)
        self._round_delay = round_delay
        self._on_checkpoint = on_checkpoint

    async def run(
        self,
        narrative: str,
        question: str,
        mode: MappingMode | str = MappingMode.CONTROL,
        round_count: int = DEFAULT_ROUND_COUNT,
        cancel_token: Optional[CancellationToken] = None,
        reading_type: Optional[ReadingType] = None,
    ) -> PipelineResult:
        if round_count < 0:
            raise ValueError("round_count must not be negative")
        mode = MappingMode(mode)
        token = cancel_token or CancellationToken()
        workflow = self._build_workflow(token)

        logger.info("mapping started", mode=mode.value, round_count=round_count)
        try:
            final_state = await workflow.ainvoke(
                {
                    "narrative": narrative,
                    "question": question,
                    "mode": mode,
                    "round_count": round_count,
                    "round_index": 0,
                    "graph": GraphState(),
                    "checkpoints": [],
                },
                config={"recursion_limit": round_count + 5},
            )
        except CompletionError as error:
            logger.error("mapping aborted by completion failure", error=str(error))
            raise
        except PipelineCancelled as error:
            logger.info("mapping cancelled", stage=error.details.get("stage"))
            raise

        graph: GraphState = final_state["graph"]
        node_count, edge_count = GraphOrchestrator(graph).counts()
        logger.info(
            "mapping finished",
            node_count=node_count,
            edge_count=edge_count,
            rounds=len(final_state["checkpoints"]),
        )
        return PipelineResult(
            narrative=narrative,
            question=question,
            graph=graph,
            checkpoints=tuple(final_state["checkpoints"]),
            synthesis=final_state["synthesis"],
            mode=mode,
            reading_type=reading_type,
        )

    @staticmethod
    def without_mapping(
        narrative: str,
        question: str,
        reading_type: Optional[ReadingType] = None,
    ) -> PipelineResult:
        return PipelineResult(
            narrative=narrative,
            question=question,
            graph=GraphState(),
            checkpoints=(),
            synthesis=basic_synthesis(narrative),
            reading_type=reading_type,
        )

    def _build_workflow(self, token: CancellationToken):
        graph = StateGraph(MappingState)
        graph.add_node("extract", self._guarded(self._extraction, token))
        graph.add_node("enrich", self._enrich_step(self._guarded(self._enrichment, token)))
        graph.add_node("synthesize", self._guarded(self._synthesis, token))
        graph.add_edge(START, "extract")
        graph.add_conditional_edges("extract", self._next_stage, ["enrich", "synthesize"])
        graph.add_conditional_edges("enrich", self._next_stage, ["enrich", "synthesize"])
        graph.add_edge("synthesize", END)
        return graph.compile()

    @staticmethod
    def _next_stage(state: MappingState) -> str:
        if state.get("round_index", 0) < state.get("round_count", 0):
            return "enrich"
        return "synthesize"

    @staticmethod
    def _guarded(phase: PipelinePhase, token: CancellationToken) -> StageFunction:
        async def stage(state: MappingState) -> Dict[str, Any]:
            token.raise_if_cancelled(f"{phase.phase_name} start")
            update = await phase.run(state)
            # A result that arrives after cancellation is dropped.
            token.raise_if_cancelled(f"{phase.phase_name} result")
            return update

        return stage

    def _enrich_step(self, stage: StageFunction) -> StageFunction:
        async def enrich(state: MappingState) -> Dict[str, Any]:
            update = await stage(state)
            if self._on_checkpoint is not None:
                self._on_checkpoint(update["checkpoints"][-1])
            if update["round_index"] < state.get("round_count", 0) and self._round_delay > 0:
                await asyncio.sleep(self._round_delay)
            return update

        return enrich
