"""Export of a finished run as text, a structured JSON document, or HTML."""

import json
from datetime import datetime, timezone
from html import escape
from typing import Any, Dict, Optional

from .exceptions import ExportFormatError
from .graph_model import (
    Edge,
    GraphState,
    MappingMode,
    Node,
    PipelineResult,
    ReadingType,
    RoundCheckpoint,
)

TITLE = "Rhizomatic Tarot Reading"


def _timestamp(now: Optional[datetime]) -> datetime:
    return now if now is not None else datetime.now(timezone.utc)


def _reading_type(result: PipelineResult) -> Optional[str]:
    return result.reading_type.value if result.reading_type is not None else None


def to_document(result: PipelineResult, now: Optional[datetime] = None) -> Dict[str, Any]:
    return {
        "timestamp": _timestamp(now).isoformat(),
        "readingType": _reading_type(result),
        "question": result.question,
        "reading": result.narrative,
        "synthesis": result.synthesis,
        "rhizomaticMapping": {
            "mode": result.mode.value,
            "nodes": [node.to_dict() for node in result.graph.nodes],
            "edges": [edge.to_dict() for edge in result.graph.edges],
            "cycles": [checkpoint.to_dict() for checkpoint in result.checkpoints],
        },
    }


def to_json(result: PipelineResult, now: Optional[datetime] = None) -> str:
    return json.dumps(to_document(result, now), ensure_ascii=False, indent=2)


def from_json(text: str) -> PipelineResult:
    try:
        document = json.loads(text)
    except json.JSONDecodeError as error:
        raise ExportFormatError(f"Export is not valid JSON: {error.msg}") from error
    return from_document(document)


def from_document(document: Any) -> PipelineResult:
    if not isinstance(document, dict):
        raise ExportFormatError("Export document must be a JSON object")
    mapping = document.get("rhizomaticMapping")
    if not isinstance(mapping, dict):
        raise ExportFormatError("Export document has no 'rhizomaticMapping' object")

    try:
        graph = GraphState(
            nodes=[Node.from_dict(item) for item in mapping.get("nodes", [])],
            edges=[Edge.from_dict(item) for item in mapping.get("edges", [])],
        )
        checkpoints = tuple(RoundCheckpoint.from_dict(item) for item in mapping.get("cycles", []))
        mode = MappingMode(mapping.get("mode") or MappingMode.CONTROL.value)
        reading_type = document.get("readingType")
        return PipelineResult(
            narrative=str(document.get("reading") or ""),
            question=str(document.get("question") or ""),
            graph=graph,
            checkpoints=checkpoints,
            synthesis=str(document.get("synthesis") or ""),
            mode=mode,
            reading_type=ReadingType(reading_type) if reading_type else None,
        )
    except (AttributeError, KeyError, TypeError, ValueError) as error:
        raise ExportFormatError(f"Malformed export document: {error}") from error


def to_text(result: PipelineResult, now: Optional[datetime] = None) -> str:
    lines = [
        TITLE.upper(),
        f"Generated: {_timestamp(now).strftime('%Y-%m-%d %H:%M:%S %Z').strip()}",
        f"Reading Type: {_reading_type(result) or 'unspecified'}",
        "",
        "QUESTION:",
        result.question,
        "",
        "READING:",
        result.narrative,
    ]
    if result.synthesis:
        lines += ["", "SYNTHESIS:", result.synthesis]
    if result.graph.nodes:
        lines += ["", f"RHIZOMATIC NODES ({len(result.graph.nodes)}):"]
        lines += [f"- {node.label}" for node in result.graph.nodes]
    return "\n".join(lines) + "\n"


def _paragraphs_html(text: str) -> str:
    return "".join(f"<p>{escape(block.strip())}</p>" for block in text.split("\n\n") if block.strip())


def to_html(result: PipelineResult, now: Optional[datetime] = None) -> str:
    sections = [
        f'<div class="section"><h2>Question</h2><p>{escape(result.question)}</p></div>',
        f'<div class="section"><h2>Reading</h2>{_paragraphs_html(result.narrative)}</div>',
    ]
    if result.synthesis:
        sections.append(f'<div class="section"><h2>Synthesis</h2>{_paragraphs_html(result.synthesis)}</div>')
    if result.graph.nodes:
        items = "".join(f"<li>{escape(node.label)}</li>" for node in result.graph.nodes)
        sections.append(f'<div class="section"><h2>Rhizomatic Nodes</h2><ul>{items}</ul></div>')

    body = "\n    ".join(sections)
    generated = escape(_timestamp(now).strftime("%Y-%m-%d %H:%M:%S %Z").strip())
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <title>{TITLE}</title>
    <style>
        body {{ font-family: Georgia, serif; max-width: 800px; margin: 2rem auto; padding: 2rem; line-height: 1.8; background: #0a0a0f; color: #e8e8f0; }}
        h1 {{ color: #7366ff; }}
        .section {{ margin: 2rem 0; padding: 1.5rem; background: #1a1a24; border-left: 3px solid #7366ff; }}
        .meta {{ color: #a8a8b8; font-size: 0.9rem; }}
    </style>
</head>
<body>
    <h1>{TITLE}</h1>
    <p class="meta">Generated: {generated}</p>
    {body}
</body>
</html>
"""


EXPORTERS = {"json": to_json, "txt": to_text, "html": to_html}
