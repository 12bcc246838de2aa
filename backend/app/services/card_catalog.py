"""
Tarot card metadata lookup.

WHAT: Load the card list once and resolve spread selections
WHY: Prompt templates need card names, not just numbers
HOW: JSON file shipped with the package, cached on first use
"""

import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterable

CARDS_FILE = Path(__file__).parent.parent / "data" / "cards.json"

SPREAD_POSITIONS = ["The Past", "The Present", "The Future"]
MAX_SPREAD_CARDS = len(SPREAD_POSITIONS)


@dataclass(frozen=True)
class ResolvedCard:
    """A selected card placed in its spread position."""
    position: str
    name: str
    inverted: bool

    @property
    def orientation(self) -> str:
        return "Inverted" if self.inverted else "Upright"


@lru_cache(maxsize=1)
def load_cards() -> dict[int, dict]:
    """Card metadata keyed by card number."""
    with open(CARDS_FILE, encoding="utf-8") as f:
        return {card["number"]: card for card in json.load(f)}


def find_card(number: int) -> dict | None:
    return load_cards().get(number)


def resolve_cards(selections: Iterable) -> list[ResolvedCard]:
    """
    Place up to three selections into Past/Present/Future.

    Args:
        selections: Objects with `number` and `inverted` attributes

    Returns:
        Resolved cards; unknown numbers are named "Card <n>"
    """
    resolved = []
    for index, selection in enumerate(list(selections)[:MAX_SPREAD_CARDS]):
        meta = find_card(selection.number)
        resolved.append(ResolvedCard(
            position=SPREAD_POSITIONS[index],
            name=meta["name"] if meta else f"Card {selection.number}",
            inverted=bool(selection.inverted),
        ))
    return resolved
