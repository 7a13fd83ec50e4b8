"""Texas Hold'em hand evaluation and Monte Carlo equity."""

from .cards import Card, RANKS, SUITS, available_deck, build_deck, cards_equal, deal, is_used, parse_cards, parse_label, shuffle
from .errors import DuplicateCard, EquityError, ExhaustedPool, InvalidCardCount
from .evaluator import HandCategory, HandResult, evaluate
from .models import HandStrength, Player, PlayerEquity, SimulationConfig
from .simulator import estimate_field_equity, estimate_hand_strength, estimate_table_equity

__all__ = [
    "Card",
    "RANKS",
    "SUITS",
    "available_deck",
    "build_deck",
    "cards_equal",
    "deal",
    "is_used",
    "parse_cards",
    "parse_label",
    "shuffle",
    "DuplicateCard",
    "EquityError",
    "ExhaustedPool",
    "InvalidCardCount",
    "HandCategory",
    "HandResult",
    "evaluate",
    "HandStrength",
    "Player",
    "PlayerEquity",
    "SimulationConfig",
    "estimate_field_equity",
    "estimate_hand_strength",
    "estimate_table_equity",
]
