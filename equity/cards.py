from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from .errors import ExhaustedPool

RANKS = "23456789TJQKA"
SUITS = "hdcs"
RANK_VALUE = {rank: idx for idx, rank in enumerate(RANKS, start=2)}

SUIT_NAMES = {"h": "hearts", "d": "diamonds", "c": "clubs", "s": "spades"}
SUIT_SYMBOLS = {"h": "♥", "d": "♦", "c": "♣", "s": "♠"}


@dataclass(frozen=True)
class Card:
    rank: str
    suit: str

    def __post_init__(self) -> None:
        if self.rank not in RANKS:
            raise ValueError(f"Invalid rank: {self.rank}")
        if self.suit not in SUITS:
            raise ValueError(f"Invalid suit: {self.suit}")

    @property
    def value(self) -> int:
        return RANK_VALUE[self.rank]

    @property
    def label(self) -> str:
        return f"{self.rank}{self.suit}"

    @property
    def display(self) -> str:
        rank = "10" if self.rank == "T" else self.rank
        return f"{rank}{SUIT_SYMBOLS[self.suit]}"

    def __str__(self) -> str:
        return self.label


# Suit-major, rank-minor. Order only matters for enumeration.
_DECK: Tuple[Card, ...] = tuple(Card(rank, suit) for suit in SUITS for rank in RANKS)


def build_deck() -> List[Card]:
    return list(_DECK)


def shuffle(cards: Sequence[Card], rng: Optional[random.Random] = None) -> List[Card]:
    """Return a shuffled copy of ``cards``; the input is left untouched."""
    shuffled = list(cards)
    (rng or random).shuffle(shuffled)
    return shuffled


def cards_equal(first: Optional[Card], second: Optional[Card]) -> bool:
    if first is None or second is None:
        return False
    return first.rank == second.rank and first.suit == second.suit


def is_used(card: Card, used: Iterable[Optional[Card]]) -> bool:
    return any(cards_equal(card, other) for other in used)


def available_deck(used_cards: Iterable[Optional[Card]]) -> List[Card]:
    used = {card for card in used_cards if card is not None}
    return [card for card in _DECK if card not in used]


def deal(deck: List[Card], count: int) -> List[Card]:
    if len(deck) < count:
        raise ExhaustedPool("Not enough cards left in deck")
    cards = deck[:count]
    del deck[:count]
    return cards


def cards_to_labels(cards: Iterable[Optional[Card]]) -> List[Optional[str]]:
    return [card.label if card is not None else None for card in cards]


def parse_label(label: str) -> Card:
    text = label.strip()
    if len(text) == 3 and text.startswith("10"):
        text = "T" + text[2]
    if len(text) != 2:
        raise ValueError(f"Invalid card label: {label}")
    return Card(text[0].upper(), text[1].lower())


def parse_cards(labels: Sequence[str]) -> List[Card]:
    return [parse_label(label) for label in labels]
