"""Closing synthesis over the finished graph."""

import json
from typing import Any, Dict, Sequence, Tuple

import structlog

from ..graph_model import GraphState, RoundCheckpoint
from ..pipeline import MappingState, PipelinePhase

logger = structlog.get_logger(__name__)


class SynthesisPhase(PipelinePhase):
    phase_name = "synthesis"

    async def run(self, state: MappingState) -> Dict[str, Any]:
        synthesis = await self.synthesize(
            question=state.get("question", ""),
            narrative=state["narrative"],
            graph=state["graph"],
            checkpoints=state.get("checkpoints", []),
        )
        return {"synthesis": synthesis}

    async def synthesize(
        self,
        question: str,
        narrative: str,
        graph: GraphState,
        checkpoints: Sequence[RoundCheckpoint],
    ) -> str:
        system_prompt, user_prompt = self._build_prompt(question, narrative, graph, checkpoints)
        synthesis = await self._client.complete(system_prompt, user_prompt)
        logger.info("synthesis received", length=len(synthesis))
        return synthesis

    @staticmethod
    def _build_prompt(
        question: str,
        narrative: str,
        graph: GraphState,
        checkpoints: Sequence[RoundCheckpoint],
    ) -> Tuple[str, str]:
        cycles_json = json.dumps([checkpoint.to_dict() for checkpoint in checkpoints], ensure_ascii=False)
        system_prompt = (
            "You are creating a final synthesis of the rhizomatic tarot reading analysis.\n\n"
            f"Original question: {question}\n"
            f"Reading content: {narrative}\n"
            f"Nodes discovered: {len(graph.nodes)}\n"
            f"Connections mapped: {len(graph.edges)}\n"
            f"Cycle insights: {cycles_json}\n\n"
            "Create a comprehensive synthesis that includes:\n"
            "1. Core patterns and themes identified\n"
            "2. Key symbolic clusters\n"
            "3. Practical applications and next steps\n"
            "4. Integration with the original question\n"
            "5. Emergent insights from the mapping process\n\n"
            "Write in a clear, insightful, and actionable style."
        )
        user_prompt = (
            "Please create the final synthesis integrating all insights from the reading "
            "and rhizomatic mapping process."
        )
        return system_prompt, user_prompt


def basic_synthesis(narrative: str) -> str:
    """Closing text used when the querent skips the mapping stage."""
    return (
        "Reading Synthesis\n\n"
        "Your reading provided guidance through symbolic interpretation. "
        "The cards revealed patterns and insights relevant to your question.\n\n"
        f"{narrative.strip()}"
    )
