from __future__ import annotations

import logging
import multiprocessing
import random
from concurrent.futures import ProcessPoolExecutor
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .cards import Card, available_deck
from .errors import DuplicateCard, ExhaustedPool, InvalidCardCount
from .evaluator import evaluate
from .models import HandStrength, Player, PlayerEquity, SimulationConfig, Tally

LOGGER = logging.getLogger("equity_engine")

BOARD_SIZE = 5

# Monte Carlo equity. Trials are split into fixed-size chunks; every chunk gets
# its own Random seeded from the caller's source and returns a private Tally,
# so chunks can run on a process pool and be summed in order afterwards.

Board = Sequence[Optional[Card]]


def estimate_field_equity(
    players: Sequence[Player],
    board: Board,
    trials: Optional[int] = None,
    *,
    rng: Optional[random.Random] = None,
    config: Optional[SimulationConfig] = None,
) -> List[PlayerEquity]:
    """Equity of every complete hand against the others over random board runouts.

    Players without both hole cards take no part and report 0%. With fewer than
    two complete hands nothing is simulated and everyone reports 0%.
    """
    config = config or SimulationConfig()
    trials = _resolve_trials(trials, config)
    slots = _normalize_board(board)

    seats = [idx for idx, player in enumerate(players) if player.is_complete]
    if len(seats) < 2:
        LOGGER.debug("Field equity skipped: %s complete hand(s)", len(seats))
        return [PlayerEquity(player.id, player.name, 0.0, 0.0) for player in players]

    hands = [tuple(players[idx].hole_cards) for idx in seats]
    known = [card for hand in hands for card in hand] + [card for card in slots if card is not None]
    _ensure_distinct(known)
    pool = available_deck(known)
    missing = _missing(slots)
    if missing > len(pool):
        raise ExhaustedPool(f"Need {missing} cards, only {len(pool)} left")

    tally = _run(
        _field_chunk,
        (tuple(hands), tuple(slots), tuple(pool)),
        size=len(hands),
        trials=trials,
        rng=rng or random.Random(config.seed),
        config=config,
        mode="field",
    )

    shares = {seat: tally.percentages(slot) for slot, seat in enumerate(seats)}
    results = []
    for idx, player in enumerate(players):
        win_pct, tie_pct = shares.get(idx, (0.0, 0.0))
        results.append(PlayerEquity(player.id, player.name, win_pct, tie_pct))
    return results


def estimate_hand_strength(
    hero: Sequence[Card],
    board: Board,
    opponent_count: int,
    trials: Optional[int] = None,
    *,
    rng: Optional[random.Random] = None,
    config: Optional[SimulationConfig] = None,
) -> HandStrength:
    """Hero's win/tie percentage against ``opponent_count`` unknown hands.

    Opponent hole cards are drawn again on every trial together with the
    missing board cards.
    """
    config = config or SimulationConfig()
    trials = _resolve_trials(trials, config)
    if opponent_count < 1:
        raise ValueError("opponent_count must be at least 1")
    if len(hero) != 2 or any(card is None for card in hero):
        raise InvalidCardCount("Hero must hold exactly 2 cards")
    slots = _normalize_board(board)

    known = list(hero) + [card for card in slots if card is not None]
    _ensure_distinct(known)
    pool = available_deck(known)
    needed = 2 * opponent_count + _missing(slots)
    if needed > len(pool):
        raise ExhaustedPool(f"Need {needed} cards for {opponent_count} opponent(s), only {len(pool)} left")

    tally = _run(
        _strength_chunk,
        (tuple(hero), tuple(slots), tuple(pool), opponent_count),
        size=2,
        trials=trials,
        rng=rng or random.Random(config.seed),
        config=config,
        mode="strength",
    )
    win_pct, tie_pct = tally.percentages(0)
    return HandStrength(win_pct=win_pct, tie_pct=tie_pct)


def estimate_table_equity(
    players: Sequence[Player],
    board: Board,
    trials: Optional[int] = None,
    *,
    rng: Optional[random.Random] = None,
    config: Optional[SimulationConfig] = None,
) -> List[PlayerEquity]:
    """Pick the right mode for a table: one known hand plays the empty seats as random opponents."""
    live = [player for player in players if player.is_complete]
    if not live:
        return []
    if len(live) == 1 and len(players) >= 2:
        player = live[0]
        opponents = len(players) - 1
        strength = estimate_hand_strength(
            list(player.hole_cards), board, opponents, trials, rng=rng, config=config
        )
        suffix = "s" if opponents > 1 else ""
        name = f"{player.name or player.id} vs {opponents} opponent{suffix}"
        return [PlayerEquity(player.id, name, strength.win_pct, strength.tie_pct)]
    return estimate_field_equity(players, board, trials, rng=rng, config=config)


# Chunk workers ---------------------------------------------------------------
# Module-level so ProcessPoolExecutor can pickle them.


def _field_chunk(
    hands: Tuple[Tuple[Card, Card], ...],
    slots: Tuple[Optional[Card], ...],
    pool: Tuple[Card, ...],
    count: int,
    seed: int,
) -> Tally:
    rng = random.Random(seed)
    missing = _missing(slots)
    tally = Tally.empty(len(hands))
    for _ in range(count):
        board = _complete_board(slots, rng.sample(pool, missing))
        tally.record([evaluate(hand + board).score for hand in hands])
    return tally


def _strength_chunk(
    hero: Tuple[Card, Card],
    slots: Tuple[Optional[Card], ...],
    pool: Tuple[Card, ...],
    opponent_count: int,
    count: int,
    seed: int,
) -> Tally:
    rng = random.Random(seed)
    hole_count = 2 * opponent_count
    draw_size = hole_count + _missing(slots)
    # Slot 0 is the hero, slot 1 the best of the random opponents.
    tally = Tally.empty(2)
    for _ in range(count):
        draw = rng.sample(pool, draw_size)
        board = _complete_board(slots, draw[hole_count:])
        hero_score = evaluate(hero + board).score
        field_score = min(
            evaluate(tuple(draw[idx : idx + 2]) + board).score for idx in range(0, hole_count, 2)
        )
        tally.record([hero_score, field_score])
    return tally


# Helpers ---------------------------------------------------------------------


def _run(
    worker: Callable[..., Tally],
    args: tuple,
    *,
    size: int,
    trials: int,
    rng: random.Random,
    config: SimulationConfig,
    mode: str,
) -> Tally:
    chunks = _plan_chunks(trials, config.chunk_size, rng)
    workers = min(config.workers, len(chunks))
    LOGGER.debug("Simulating %s: trials=%s chunks=%s workers=%s", mode, trials, len(chunks), workers)

    total = Tally.empty(size)
    if workers <= 1:
        partials: Iterable[Tally] = (worker(*args, count, seed) for count, seed in chunks)
        for partial in partials:
            total.merge(partial)
        return total

    counts = [count for count, _ in chunks]
    seeds = [seed for _, seed in chunks]
    columns = [[value] * len(chunks) for value in args]
    # Spawned, not forked: callers may be running other threads.
    context = multiprocessing.get_context("spawn")
    with ProcessPoolExecutor(max_workers=workers, mp_context=context) as executor:
        for partial in executor.map(worker, *columns, counts, seeds):
            total.merge(partial)
    return total


def _plan_chunks(trials: int, chunk_size: int, rng: random.Random) -> List[Tuple[int, int]]:
    size = max(1, chunk_size)
    chunks = []
    remaining = trials
    while remaining > 0:
        count = min(size, remaining)
        chunks.append((count, rng.getrandbits(64)))
        remaining -= count
    return chunks


def _resolve_trials(trials: Optional[int], config: SimulationConfig) -> int:
    value = config.trials if trials is None else trials
    if value < 1:
        raise ValueError("trials must be at least 1")
    return value


def _normalize_board(board: Board) -> List[Optional[Card]]:
    slots = list(board)
    if len(slots) > BOARD_SIZE:
        raise InvalidCardCount(f"Board holds at most {BOARD_SIZE} cards, got {len(slots)}")
    return slots + [None] * (BOARD_SIZE - len(slots))


def _missing(slots: Sequence[Optional[Card]]) -> int:
    return sum(1 for card in slots if card is None)


def _complete_board(slots: Sequence[Optional[Card]], fill: Sequence[Card]) -> Tuple[Card, ...]:
    draws = iter(fill)
    return tuple(card if card is not None else next(draws) for card in slots)


def _ensure_distinct(cards: Sequence[Card]) -> None:
    seen = set()
    for card in cards:
        if card in seen:
            raise DuplicateCard(f"Card {card.label} is used more than once")
        seen.add(card)
