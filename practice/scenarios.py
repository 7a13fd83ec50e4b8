from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from equity.cards import Card, build_deck, deal, shuffle
from equity.models import SimulationConfig
from equity.simulator import estimate_hand_strength

LOGGER = logging.getLogger("practice")

_RNG = random.Random()

MAX_OPPONENTS = 4
PRACTICE_TRIALS = 20_000
GRADE_TRIALS = 100_000


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


# (lowest multiplier, spread) applied to the fair bet. Harder = closer to fair.
_BET_VARIATION = {
    Difficulty.EASY: (0.75, 0.5),
    Difficulty.MEDIUM: (0.85, 0.3),
    Difficulty.HARD: (0.925, 0.15),
}


class Decision(str, Enum):
    CALL = "call"
    FOLD = "fold"


@dataclass
class PracticeSettings:
    min_opponents: int = 1
    max_opponents: int = 3
    difficulty: Difficulty = Difficulty.MEDIUM

    def opponent_range(self) -> Tuple[int, int]:
        low = max(1, min(MAX_OPPONENTS, self.min_opponents))
        high = max(low, min(MAX_OPPONENTS, self.max_opponents))
        return low, high


@dataclass
class PracticeState:
    id: str
    hero_hand: Tuple[Card, Card]
    villain_hands: List[Tuple[Card, Card]]
    opponent_count: int
    board: List[Card]
    pot: int
    bet: int
    difficulty: Difficulty = Difficulty.MEDIUM
    equity: float = 0.0


@dataclass
class DecisionResult:
    decision: Decision
    correct: bool
    equity: float
    pot_odds: float
    ev: float
    message: str = field(default="")


def generate_practice_hand(
    settings: Optional[PracticeSettings] = None,
    *,
    rng: Optional[random.Random] = None,
    trials: int = PRACTICE_TRIALS,
    config: Optional[SimulationConfig] = None,
) -> PracticeState:
    """Deal a call/fold spot and size the villain bet around the hero's equity."""
    settings = settings or PracticeSettings()
    rng = rng or _RNG

    deck = shuffle(build_deck(), rng)
    hero = deal(deck, 2)

    low, high = settings.opponent_range()
    opponent_count = rng.randint(low, high)
    villains: List[Tuple[Card, Card]] = []
    for _ in range(opponent_count):
        first, second = deal(deck, 2)
        villains.append((first, second))

    board = deal(deck, rng.randint(3, 5))
    pot = rng.randrange(50, 200)

    strength = estimate_hand_strength(hero, board, opponent_count, trials, rng=rng, config=config)
    bet = fair_bet(strength.equity, pot, settings.difficulty, rng)

    state = PracticeState(
        id=f"P-{rng.getrandbits(32):08x}",
        hero_hand=(hero[0], hero[1]),
        villain_hands=villains,
        opponent_count=opponent_count,
        board=board,
        pot=pot,
        bet=bet,
        difficulty=settings.difficulty,
        equity=strength.equity,
    )
    LOGGER.debug(
        "Practice hand %s: opponents=%s board=%s equity=%.3f pot=%s bet=%s",
        state.id,
        opponent_count,
        len(board),
        strength.equity,
        pot,
        bet,
    )
    return state


def fair_bet(equity: float, pot: int, difficulty: Difficulty, rng: Optional[random.Random] = None) -> int:
    """Bet that puts a call near break-even: equity * (pot + 2 * bet) - bet == 0."""
    rng = rng or _RNG

    if equity >= 0.5:
        # Hero is the favourite; any standard sizing is a call.
        bet = math.floor(pot * (0.5 + rng.random() * 0.5))
        return max(1, bet)

    denominator = 1 - 2 * equity
    if denominator <= 0.05:
        return max(1, pot)

    low, spread = _BET_VARIATION[Difficulty(difficulty)]
    bet = math.floor(equity * pot / denominator * (low + rng.random() * spread))
    bet = max(math.floor(pot * 0.1), min(bet, pot * 2))
    return max(1, bet)


def grade_decision(
    state: PracticeState,
    decision: Decision,
    *,
    trials: int = GRADE_TRIALS,
    rng: Optional[random.Random] = None,
    config: Optional[SimulationConfig] = None,
) -> DecisionResult:
    decision = Decision(decision)
    strength = estimate_hand_strength(
        list(state.hero_hand), state.board, state.opponent_count, trials, rng=rng, config=config
    )
    equity = strength.equity

    # Every opponent is assumed to have put the bet in.
    total_pot = state.pot + state.opponent_count * state.bet
    pot_odds = state.bet / total_pot
    ev = equity * total_pot - state.bet

    should_call = ev > 0
    correct = should_call if decision is Decision.CALL else not should_call
    return DecisionResult(
        decision=decision,
        correct=correct,
        equity=equity * 100,
        pot_odds=pot_odds * 100,
        ev=ev,
        message="Correct!" if correct else "Incorrect.",
    )
