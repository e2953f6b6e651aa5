"""Detection of catalog names (e.g. card names) mentioned in reading text."""

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Tuple


@dataclass(frozen=True)
class Mention:
    name: str
    reversed: bool = False


@dataclass(frozen=True)
class AnnotatedParagraph:
    text: str
    mentions: Tuple[Mention, ...]


def detect_mentions(text: str, catalog: Mapping[str, str]) -> List[Mention]:
    """Return catalog names found in ``text`` in order of first appearance.

    Longer names are matched first and claim their span, so "knight of cups"
    hides the "cups" inside it. A name followed by "reversed" is reported as
    reversed. Results are unique per (asset, orientation).
    """
    lowered = text.lower()
    accepted_spans: List[Tuple[int, int]] = []
    found: List[Tuple[int, str, bool]] = []

    for name in sorted(catalog, key=len, reverse=True):
        pattern = re.compile(rf"\b{re.escape(name.lower())}(\s+reversed)?\b")
        for match in pattern.finditer(lowered):
            start, end = match.span()
            if any(start < span_end and end > span_start for span_start, span_end in accepted_spans):
                continue
            accepted_spans.append((start, end))
            found.append((start, name, match.group(1) is not None))

    found.sort(key=lambda item: item[0])

    seen = set()
    mentions: List[Mention] = []
    for _, name, is_reversed in found:
        identity = (catalog[name], is_reversed)
        if identity in seen:
            continue
        seen.add(identity)
        mentions.append(Mention(name=name, reversed=is_reversed))
    return mentions


def annotate_paragraphs(text: str, catalog: Mapping[str, str]) -> List[AnnotatedParagraph]:
    paragraphs: List[AnnotatedParagraph] = []
    for block in text.split("\n\n"):
        paragraph = block.strip()
        if not paragraph:
            continue
        paragraphs.append(AnnotatedParagraph(paragraph, tuple(detect_mentions(paragraph, catalog))))
    return paragraphs


def load_catalog(path: Path) -> Dict[str, str]:
    """Read a JSON object mapping names to asset file names; keys are lowercased."""
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"Catalog {path} must be a JSON object of name -> asset")
    return {str(name).lower(): str(asset) for name, asset in payload.items()}
