"""
Prompt templates for the tarot reader.

WHAT: System and user prompts for the intro and the three-card spread
WHY: Consistent persona and constraints across readings
HOW: Plain functions returning ChatMessage lists
"""

from typing import List

from ..llm.types import ChatMessage
from ..services.card_catalog import ResolvedCard

INTRO_SYSTEM_PROMPT = (
    "You are an esteemed, empathetic tarot psychic who speaks in short, vivid paragraphs. "
    "Avoid concrete predictions; focus on possibilities and reflection."
)

SPREAD_SYSTEM_PROMPT = (
    "You are an esteemed, empathetic tarot reader. Avoid deterministic prophecy; "
    "emphasize reflection, agency, and possibilities. Write vivid but concise paragraphs."
)


def intro_prompt() -> List[ChatMessage]:
    """Messages asking the model to invite the visitor to a reading."""
    return [
        {"role": "system", "content": INTRO_SYSTEM_PROMPT},
        {"role": "user", "content": "Entice the requester to do a tarot reading in four sentences."},
    ]


def psychic_spread(cards: List[ResolvedCard], tone: str = "warm") -> List[ChatMessage]:
    """
    Render the three-card reading prompt.

    Args:
        cards: Cards already placed in Past/Present/Future order
        tone: Voice requested by the querent, e.g. "warm"

    Returns:
        System and user messages for the chat protocol
    """
    card_lines = [f'{card.position}: "{card.name}" ({card.orientation}).' for card in cards]

    user_prompt = " ".join([
        "Perform a three-card reading (Past, Present, Future) for this spread:",
        *card_lines,
        "The querent is seeking something; infer gently without inventing specifics.",
        "Offer a cohesive arc that connects the three positions.",
        f"Keep the tone {tone}.",
    ])

    return [
        {"role": "system", "content": SPREAD_SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]
