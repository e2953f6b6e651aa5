"""Initial node extraction from the narrative."""

from typing import Any, Dict, List, Tuple

import structlog

from ..graph_model import NODE_TYPES, GraphState, MappingMode, Node
from ..json_payload import parse_nodes_from_text, parse_with_fallback, validate_nodes_payload
from ..pipeline import MappingState, PipelinePhase

logger = structlog.get_logger(__name__)


class NodeExtractionPhase(PipelinePhase):
    phase_name = "extraction"

    async def run(self, state: MappingState) -> Dict[str, Any]:
        nodes = await self.extract_nodes(state["narrative"], state.get("mode", MappingMode.CONTROL))
        return {"graph": GraphState(nodes=nodes), "round_index": 0, "checkpoints": []}

    async def extract_nodes(self, narrative: str, mode: MappingMode | str) -> List[Node]:
        """Ask for typed nodes; never raises on a malformed response.

        JSON responses are taken as-is. Anything else goes through the
        line-based fallback, which yields at most twelve ``general`` nodes.
        """
        system_prompt, user_prompt = self._build_prompt(narrative, MappingMode(mode))
        response_text = await self._client.complete(system_prompt, user_prompt)

        payload, parse_error = parse_with_fallback(
            response_text,
            validate_nodes_payload,
            lambda text: {"nodes": parse_nodes_from_text(text)},
        )
        if parse_error:
            logger.warning(
                "node extraction fell back to line parsing",
                parse_error=parse_error,
                node_count=len(payload["nodes"]),
                response_preview=(response_text or "")[:200],
            )
        else:
            logger.info("nodes extracted", node_count=len(payload["nodes"]))
        return payload["nodes"]

    @staticmethod
    def _build_prompt(narrative: str, mode: MappingMode) -> Tuple[str, str]:
        system_prompt = (
            "You are analyzing a tarot reading to extract key symbolic nodes for rhizomatic mapping.\n\n"
            "Extract 8-12 distinct nodes from the reading. Each node should be:\n"
            "- A key symbol, theme, insight, or archetypal pattern\n"
            "- Brief (2-5 words)\n"
            "- Conceptually distinct from the other nodes\n\n"
            "IMPORTANT: Respond ONLY with valid JSON, no other text.\n\n"
            "Format:\n"
            "{\n"
            '  "nodes": [\n'
            '    {"id": "node1", "label": "Shadow Integration", "type": "archetype"},\n'
            '    {"id": "node2", "label": "Creative Renewal", "type": "theme"}\n'
            "  ]\n"
            "}\n\n"
            f"Node types: {', '.join(NODE_TYPES)}"
        )
        if mode is MappingMode.CHAOS:
            grounding = "Feel free to add symbolic connections beyond what is explicitly stated."
        else:
            grounding = "Only extract nodes directly derived from the reading."
        user_prompt = (
            f"Extract initial nodes from this reading:\n\n{narrative}\n\n"
            f"{grounding}\n\n"
            "Return ONLY the JSON, no explanation or preamble."
        )
        return system_prompt, user_prompt
