from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .cards import Card


@dataclass
class SimulationConfig:
    trials: int = 10_000
    workers: int = 1
    chunk_size: int = 2_500
    seed: Optional[int] = None


@dataclass
class Player:
    id: str
    hole_cards: Sequence[Optional[Card]] = field(default_factory=lambda: [None, None])
    name: str = ""

    @property
    def is_complete(self) -> bool:
        return len(self.hole_cards) == 2 and all(card is not None for card in self.hole_cards)

    def known_cards(self) -> List[Card]:
        return [card for card in self.hole_cards if card is not None]


@dataclass(frozen=True)
class PlayerEquity:
    player_id: str
    name: str
    win_pct: float
    tie_pct: float


@dataclass(frozen=True)
class HandStrength:
    win_pct: float
    tie_pct: float

    @property
    def equity(self) -> float:
        # Share of the pot as a fraction; a tie is counted as half.
        return (self.win_pct + self.tie_pct / 2) / 100


@dataclass
class Tally:
    wins: List[int]
    ties: List[int]
    trials: int = 0

    @classmethod
    def empty(cls, size: int) -> "Tally":
        return cls(wins=[0] * size, ties=[0] * size)

    def record(self, scores: Sequence[float]) -> None:
        best = min(scores)
        leaders = [idx for idx, score in enumerate(scores) if score == best]
        if len(leaders) == 1:
            self.wins[leaders[0]] += 1
        else:
            for idx in leaders:
                self.ties[idx] += 1
        self.trials += 1

    def merge(self, other: "Tally") -> None:
        self.wins = [a + b for a, b in zip(self.wins, other.wins)]
        self.ties = [a + b for a, b in zip(self.ties, other.ties)]
        self.trials += other.trials

    def percentages(self, idx: int) -> Tuple[float, float]:
        if self.trials == 0:
            return 0.0, 0.0
        return self.wins[idx] / self.trials * 100, self.ties[idx] / self.trials * 100
