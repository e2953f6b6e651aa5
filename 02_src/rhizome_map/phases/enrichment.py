"""One enrichment round: new edges (and sometimes nodes) for the current graph."""

import json
from functools import partial
from typing import Any, Dict, Tuple

import structlog

from ..graph_model import GraphState, MappingMode, RoundCheckpoint
from ..graph_orchestrator import GraphOrchestrator
from ..json_payload import parse_with_fallback, validate_round_payload
from ..pipeline import MappingState, PipelinePhase

logger = structlog.get_logger(__name__)

UNPARSEABLE_INSIGHTS = "Unable to parse cycle insights"

ROUND_GOALS = {
    1: "Find obvious thematic links",
    2: "Explore symbolic resonances",
    3: "Discover emergent patterns",
    4: "Connect to practical applications",
}

ROUND_DESCRIPTIONS = {
    1: "Identifying primary connections and patterns...",
    2: "Discovering deeper symbolic relationships...",
    3: "Exploring emergent themes and resonances...",
    4: "Synthesizing insights and practical applications...",
}

# Chaos mode may invent nodes only once the graph has some structure.
CHAOS_NEW_NODES_AFTER_ROUND = 2


def _unparseable_round(_: str) -> Dict[str, Any]:
    return {"edges": [], "new_nodes": [], "insights": UNPARSEABLE_INSIGHTS}


class EnrichmentRoundPhase(PipelinePhase):
    phase_name = "enrichment"

    async def run(self, state: MappingState) -> Dict[str, Any]:
        round_index = state.get("round_index", 0) + 1
        graph, checkpoint = await self.run_round(
            round_index, state["graph"], state.get("mode", MappingMode.CONTROL)
        )
        return {
            "graph": graph,
            "round_index": round_index,
            "checkpoints": [*state.get("checkpoints", []), checkpoint],
        }

    async def run_round(
        self,
        round_index: int,
        graph: GraphState,
        mode: MappingMode | str,
    ) -> Tuple[GraphState, RoundCheckpoint]:
        """Run one round and return the grown graph plus its checkpoint.

        An unparseable response leaves the graph untouched but still yields a
        checkpoint, so a run always has one checkpoint per round.
        """
        system_prompt, user_prompt = self._build_prompt(round_index, graph, MappingMode(mode))
        response_text = await self._client.complete(system_prompt, user_prompt)

        payload, parse_error = parse_with_fallback(
            response_text,
            partial(validate_round_payload, existing_ids=[node.id for node in graph.nodes]),
            _unparseable_round,
        )
        orchestrator = GraphOrchestrator(graph)
        if parse_error:
            logger.warning(
                "round response could not be parsed",
                round_index=round_index,
                parse_error=parse_error,
                response_preview=(response_text or "")[:200],
            )
        else:
            orchestrator.merge_round(payload["edges"], payload["new_nodes"])

        checkpoint = orchestrator.checkpoint(round_index, payload["insights"])
        logger.info(
            "round complete",
            round_index=round_index,
            node_count=checkpoint.node_count,
            edge_count=checkpoint.edge_count,
        )
        return orchestrator.state, checkpoint

    @staticmethod
    def _build_prompt(round_index: int, graph: GraphState, mode: MappingMode) -> Tuple[str, str]:
        nodes_json = json.dumps([node.to_dict() for node in graph.nodes], ensure_ascii=False)
        steps = ["Identify new connections between nodes"]
        goal = ROUND_GOALS.get(round_index)
        if goal:
            steps.append(goal)
        step_lines = "\n".join(f"{number}. {step}" for number, step in enumerate(steps, start=1))

        invention = ""
        if mode is MappingMode.CHAOS and round_index > CHAOS_NEW_NODES_AFTER_ROUND:
            invention = "Add 2-3 new nodes that expand the symbolic network.\n\n"

        system_prompt = (
            f"You are conducting cycle {round_index} of rhizomatic analysis on tarot reading insights.\n\n"
            f"Current nodes: {nodes_json}\n\n"
            f"For this cycle:\n{step_lines}\n\n"
            f"{invention}"
            "IMPORTANT: Return ONLY valid JSON, no other text.\n\n"
            "Format:\n"
            "{\n"
            '  "edges": [{"from": "node1", "to": "node2", "relationship": "description"}],\n'
            '  "newNodes": [{"id": "nodeX", "label": "New Concept", "type": "insight"}],\n'
            '  "insights": "Key patterns discovered this cycle..."\n'
            "}"
        )
        user_prompt = (
            f"Perform cycle {round_index} analysis. Analyze the current nodes and generate "
            "connections, patterns, and insights as specified. Return ONLY the JSON response, "
            "no explanation."
        )
        return system_prompt, user_prompt
