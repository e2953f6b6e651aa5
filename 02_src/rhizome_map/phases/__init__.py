"""Pipeline phases for rhizomatic mapping."""

from .enrichment import EnrichmentRoundPhase
from .extraction import NodeExtractionPhase
from .reading import continue_reading, generate_reading
from .synthesis import SynthesisPhase, basic_synthesis

__all__ = [
    "NodeExtractionPhase",
    "EnrichmentRoundPhase",
    "SynthesisPhase",
    "basic_synthesis",
    "generate_reading",
    "continue_reading",
]
