from __future__ import annotations

import random
from typing import List, Optional

from equity.cards import Card, parse_cards, parse_label
from equity.models import Player, SimulationConfig


def cards(text: str) -> List[Card]:
    """Parse space separated labels, e.g. ``"As Kd 10h"``."""
    return parse_cards(text.split())


def board(text: str = "") -> List[Optional[Card]]:
    """Like ``cards`` but ``-`` marks an unknown slot."""
    return [None if token == "-" else parse_label(token) for token in text.split()]


def player(player_id: str, hole: Optional[str] = None, name: str = "") -> Player:
    """Create a player; ``hole`` may contain ``-`` for a missing card."""
    slots = board(hole) if hole else [None, None]
    return Player(id=player_id, hole_cards=slots, name=name or f"Player {player_id}")


def seeded(seed: int = 1234) -> random.Random:
    return random.Random(seed)


def fast_config(**overrides) -> SimulationConfig:
    values = {"trials": 200, "workers": 1, "chunk_size": 100}
    values.update(overrides)
    return SimulationConfig(**values)
