from __future__ import annotations

import itertools
from collections import Counter
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Sequence, Tuple

from .cards import Card, SUITS
from .errors import DuplicateCard, InvalidCardCount

HAND_SIZE = 7


class HandCategory(IntEnum):
    HIGH_CARD = 0
    ONE_PAIR = 1
    TWO_PAIR = 2
    THREE_OF_A_KIND = 3
    STRAIGHT = 4
    FLUSH = 5
    FULL_HOUSE = 6
    FOUR_OF_A_KIND = 7
    STRAIGHT_FLUSH = 8
    ROYAL_FLUSH = 9

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]


CATEGORY_LABELS = {
    HandCategory.HIGH_CARD: "High Card",
    HandCategory.ONE_PAIR: "One Pair",
    HandCategory.TWO_PAIR: "Two Pair",
    HandCategory.THREE_OF_A_KIND: "Three of a Kind",
    HandCategory.STRAIGHT: "Straight",
    HandCategory.FLUSH: "Flush",
    HandCategory.FULL_HOUSE: "Full House",
    HandCategory.FOUR_OF_A_KIND: "Four of a Kind",
    HandCategory.STRAIGHT_FLUSH: "Straight Flush",
    HandCategory.ROYAL_FLUSH: "Royal Flush",
}

# Each category owns a band of width 20; kicker offsets stay below 13.14.
_CATEGORY_WIDTH = 20
_KICKER_WEIGHTS = (1.0, 1e-2, 1e-4, 1e-6, 1e-8)


@dataclass(frozen=True)
class HandResult:
    """Best five-card hand out of seven.

    ``score`` is lower-is-better and totally ordered across categories, so two
    results can be compared by score alone. ``kickers`` holds the rank values
    that break ties inside the category, most significant first.
    """

    category: HandCategory
    score: float
    kickers: Tuple[int, ...]
    cards: Tuple[Card, ...]

    @property
    def name(self) -> str:
        return self.category.label

    @property
    def key(self) -> Tuple[int, float]:
        # Higher is better, like a (category, kickers) tuple.
        return (int(self.category), -self.score)


def score_for(category: HandCategory, kickers: Sequence[int]) -> float:
    score = float(_CATEGORY_WIDTH * (HandCategory.ROYAL_FLUSH - category))
    for weight, rank in zip(_KICKER_WEIGHTS, kickers):
        score += (14 - rank) * weight
    return score


def evaluate(cards: Sequence[Card]) -> HandResult:
    """Return the best hand among all 21 five-card subsets of exactly 7 cards."""
    if len(cards) != HAND_SIZE:
        raise InvalidCardCount(f"Must provide exactly {HAND_SIZE} cards, got {len(cards)}")
    if len(set(cards)) != HAND_SIZE:
        raise DuplicateCard(f"Duplicate card in {[card.label for card in cards]}")
    return _evaluate_seven(_canonical(cards))


def _canonical(cards: Sequence[Card]) -> Tuple[Card, ...]:
    return tuple(sorted(cards, key=lambda card: (-card.value, SUITS.index(card.suit))))


def _evaluate_seven(cards: Tuple[Card, ...]) -> HandResult:
    # Scores are totally ordered across categories; min keeps the first best subset.
    results = (_evaluate_five(combo) for combo in itertools.combinations(cards, 5))
    return min(results, key=lambda result: result.score)


def _evaluate_five(cards: Sequence[Card]) -> HandResult:
    ranks = sorted((card.value for card in cards), reverse=True)
    is_flush = len({card.suit for card in cards}) == 1
    straight_high = _straight_high(ranks)

    # (count desc, rank desc) puts quads/trips/pairs ahead of their kickers.
    grouped = sorted(Counter(ranks).items(), key=lambda item: (item[1], item[0]), reverse=True)
    counts = [count for _, count in grouped]
    ordered = [rank for rank, _ in grouped]

    if is_flush and straight_high:
        if straight_high == 14:
            return _result(HandCategory.ROYAL_FLUSH, [14], cards)
        return _result(HandCategory.STRAIGHT_FLUSH, [straight_high], cards)
    if counts[0] == 4:
        return _result(HandCategory.FOUR_OF_A_KIND, ordered, cards)
    if counts[0] == 3 and counts[1] == 2:
        return _result(HandCategory.FULL_HOUSE, ordered, cards)
    if is_flush:
        return _result(HandCategory.FLUSH, ranks, cards)
    if straight_high:
        return _result(HandCategory.STRAIGHT, [straight_high], cards)
    if counts[0] == 3:
        return _result(HandCategory.THREE_OF_A_KIND, ordered, cards)
    if counts[0] == 2 and counts[1] == 2:
        return _result(HandCategory.TWO_PAIR, ordered, cards)
    if counts[0] == 2:
        return _result(HandCategory.ONE_PAIR, ordered, cards)
    return _result(HandCategory.HIGH_CARD, ranks, cards)


def _result(category: HandCategory, kickers: List[int], cards: Sequence[Card]) -> HandResult:
    return HandResult(
        category=category,
        score=score_for(category, kickers),
        kickers=tuple(kickers),
        cards=tuple(cards),
    )


def _straight_high(ranks: List[int]) -> Optional[int]:
    """``ranks`` must be sorted high to low. The wheel counts as five-high."""
    if len(set(ranks)) != 5:
        return None
    if ranks[0] - ranks[4] == 4:
        return ranks[0]
    if ranks == [14, 5, 4, 3, 2]:
        return 5
    return None
