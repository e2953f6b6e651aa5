"""Narrative generation: the reading every later stage consumes."""

from typing import Tuple

import structlog

from ..completion import CompletionClient
from ..graph_model import ReadingType

logger = structlog.get_logger(__name__)

READING_SEPARATOR = "---SEPARATOR---"

_READING_SUBJECTS = {
    ReadingType.SPECIFIC: "specific question",
    ReadingType.GENERAL: "general life reading",
    ReadingType.DEEP: "deep psychological exploration",
}


def _reading_prompt(reading_type: ReadingType, question: str) -> Tuple[str, str]:
    system_prompt = (
        "You are an AI simulation conducting a tarot reading in the style of a wise, insightful "
        "divination practitioner. Your approach combines:\n"
        "- Deep psychological insight and symbolism\n"
        "- Philosophical wisdom with practical application\n"
        "- A blend of gentle humor and profound understanding\n"
        "- Therapeutic guidance that empowers the querent\n\n"
        f"For this {reading_type.value} reading, provide:\n"
        "1. A thoughtful introduction acknowledging their question\n"
        "2. A spread of 3-5 cards with detailed symbolic interpretation\n"
        "3. Analysis of relationships between cards\n"
        "4. Integration of insights into a coherent narrative\n"
        "5. Practical guidance and next steps\n\n"
        "Keep the tone warm, philosophical, and empowering. "
        "Focus on psychological depth rather than fortune-telling."
    )
    user_prompt = (
        f'The querent asks: "{question}"\n\n'
        f"Please conduct a complete tarot reading for this {_READING_SUBJECTS[reading_type]}."
    )
    return system_prompt, user_prompt


async def generate_reading(client: CompletionClient, reading_type: ReadingType | str, question: str) -> str:
    question = question.strip()
    if not question:
        raise ValueError("A question or situation is required for a reading")
    system_prompt, user_prompt = _reading_prompt(ReadingType(reading_type), question)
    narrative = await client.complete(system_prompt, user_prompt)
    logger.info("reading generated", reading_type=ReadingType(reading_type).value, length=len(narrative))
    return narrative


async def continue_reading(client: CompletionClient, narrative: str, followup: str) -> str:
    """Extend the narrative with an answer to a follow-up question."""
    followup = followup.strip()
    if not followup:
        raise ValueError("A follow-up question or comment is required")
    system_prompt = (
        "You are continuing a tarot reading. The original reading is provided as context. "
        "Now the querent has a follow-up question or comment. Provide additional insight, "
        "draw new cards if needed, or explore the themes more deeply.\n\n"
        f"Original reading:\n{narrative}\n\n"
        "Continue in the same philosophical, insightful style. "
        "Keep your response focused and substantial."
    )
    user_prompt = (
        f'The querent says: "{followup}"\n\n'
        "Please continue the reading, addressing their follow-up."
    )
    continuation = await client.complete(system_prompt, user_prompt)
    return f"{narrative}\n\n{READING_SEPARATOR}\n\n{continuation}"
