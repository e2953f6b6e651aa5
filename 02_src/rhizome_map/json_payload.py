"""Tolerant parsing of JSON payloads embedded in completion text.

The completion collaborator is an untyped text channel: a response may arrive
wrapped in a fenced code block, as prose, or as JSON of the wrong shape. Every
helper here returns a ``(payload, error)`` tuple instead of raising, so call
sites decide how to degrade.
"""

import json
import re
from itertools import count
from typing import Any, Callable, Dict, Iterable, List, Set, Tuple

from .graph_model import DEFAULT_NODE_TYPE, Edge, Node

FALLBACK_NODE_LIMIT = 12
FALLBACK_LABEL_LENGTH = 50

ParseResult = Tuple[Dict[str, Any], str]
Validator = Callable[[Any], ParseResult]


def strip_code_fences(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = re.sub(r"```json\n?", "", cleaned)
        cleaned = re.sub(r"```\n?", "", cleaned)
    return cleaned.strip()


def parse_payload(response_text: str, validator: Validator) -> ParseResult:
    cleaned = strip_code_fences(response_text or "")
    if not cleaned:
        return {}, "empty_response"
    try:
        raw = json.loads(cleaned)
    except json.JSONDecodeError as error:
        return {}, f"json_decode_error: {error.msg}"
    return validator(raw)


def parse_with_fallback(
    response_text: str,
    validator: Validator,
    fallback: Callable[[str], Dict[str, Any]],
) -> ParseResult:
    """Validate the response, or build a payload from ``fallback``.

    The error code is returned either way so callers can log the degradation.
    """
    payload, error = parse_payload(response_text, validator)
    if error:
        return fallback(response_text or ""), error
    return payload, ""


def coerce_nodes(items: Iterable[Any], existing_ids: Iterable[str] = ()) -> List[Node]:
    """Build nodes from a model-supplied list.

    Bare strings become ``general`` nodes. Entries without an id get the next
    free ``node{n}`` id, skipping ids already used by the payload or by
    ``existing_ids``.
    """
    items = list(items)
    taken: Set[str] = set(existing_ids)
    taken.update(
        str(item["id"]).strip() for item in items if isinstance(item, dict) and item.get("id")
    )
    generated = (f"node{number}" for number in count(1))

    def next_free_id() -> str:
        candidate = next(generated)
        while candidate in taken:
            candidate = next(generated)
        taken.add(candidate)
        return candidate

    nodes: List[Node] = []
    for item in items:
        if isinstance(item, str):
            label = item.strip()[:FALLBACK_LABEL_LENGTH]
            if label:
                nodes.append(Node(id=next_free_id(), label=label, type=DEFAULT_NODE_TYPE))
            continue
        if not isinstance(item, dict):
            continue
        label = str(item.get("label", "")).strip()
        node_id = str(item.get("id") or "").strip()
        if not node_id:
            if not label:
                continue
            node_id = next_free_id()
        nodes.append(
            Node(
                id=node_id,
                label=label or node_id,
                type=str(item.get("type") or DEFAULT_NODE_TYPE),
            )
        )
    return nodes


def coerce_edges(items: Iterable[Any]) -> List[Edge]:
    # Dangling from/to references are kept; resolving them is up to the display.
    return [Edge.from_dict(item) for item in items if isinstance(item, dict)]


def validate_nodes_payload(raw: Any) -> ParseResult:
    if not isinstance(raw, dict) or not isinstance(raw.get("nodes"), list):
        return {}, "invalid_shape: expected an object with a 'nodes' list"
    nodes = coerce_nodes(raw["nodes"])
    if raw["nodes"] and not nodes:
        return {}, "invalid_shape: no usable entries in 'nodes'"
    return {"nodes": nodes}, ""


def validate_round_payload(raw: Any, existing_ids: Iterable[str] = ()) -> ParseResult:
    if not isinstance(raw, dict):
        return {}, "invalid_shape: expected an object"
    edges = raw.get("edges") or []
    new_nodes = raw.get("newNodes") or []
    if not isinstance(edges, list) or not isinstance(new_nodes, list):
        return {}, "invalid_shape: 'edges' and 'newNodes' must be lists"
    insights = raw.get("insights")
    return {
        "edges": coerce_edges(edges),
        "new_nodes": coerce_nodes(new_nodes, existing_ids),
        "insights": "" if insights is None else str(insights),
    }, ""


def parse_nodes_from_text(text: str) -> List[Node]:
    """Turn plain lines into ``general`` nodes when no JSON could be read."""
    nodes: List[Node] = []
    for line in text.split("\n"):
        stripped = line.strip()
        if not stripped or "{" in line or "}" in line:
            continue
        nodes.append(
            Node(
                id=f"node{len(nodes) + 1}",
                label=stripped[:FALLBACK_LABEL_LENGTH],
                type=DEFAULT_NODE_TYPE,
            )
        )
        if len(nodes) >= FALLBACK_NODE_LIMIT:
            break
    return nodes
