import pytest

from practice.scenarios import (
    Decision,
    Difficulty,
    PracticeSettings,
    PracticeState,
    fair_bet,
    generate_practice_hand,
    grade_decision,
)

from .helpers import cards, seeded


def _state(hero: str, known: str, opponents: int = 1, pot: int = 100, bet: int = 50) -> PracticeState:
    hand = cards(hero)
    return PracticeState(
        id="P-test",
        hero_hand=(hand[0], hand[1]),
        villain_hands=[],
        opponent_count=opponents,
        board=cards(known),
        pot=pot,
        bet=bet,
    )


def test_generate_practice_hand_produces_valid_state():
    state = generate_practice_hand(PracticeSettings(1, 1), rng=seeded(10), trials=300)
    assert len(state.hero_hand) == 2
    assert state.opponent_count == 1
    assert len(state.villain_hands) == 1
    assert len(state.villain_hands[0]) == 2
    assert 3 <= len(state.board) <= 5
    assert 50 <= state.pot < 200
    assert state.bet >= 1
    assert state.id.startswith("P-")
    assert 0 <= state.equity <= 1


def test_generated_cards_are_all_distinct():
    rng = seeded(21)
    for _ in range(5):
        state = generate_practice_hand(rng=rng, trials=100)
        dealt = list(state.hero_hand) + [card for hand in state.villain_hands for card in hand] + state.board
        assert len(dealt) == len(set(dealt)) == 2 + 2 * state.opponent_count + len(state.board)


def test_generate_practice_hand_respects_opponent_count():
    state = generate_practice_hand(PracticeSettings(3, 3), rng=seeded(3), trials=100)
    assert state.opponent_count == 3
    assert len(state.villain_hands) == 3


def test_generate_practice_hand_is_reproducible():
    first = generate_practice_hand(rng=seeded(44), trials=200)
    second = generate_practice_hand(rng=seeded(44), trials=200)
    assert first == second


def test_settings_clamp_opponent_range():
    assert PracticeSettings(0, 9).opponent_range() == (1, 4)
    assert PracticeSettings(5, 2).opponent_range() == (4, 4)
    assert PracticeSettings(2, 1).opponent_range() == (2, 2)


def test_fair_bet_when_hero_is_ahead():
    rng = seeded(1)
    for _ in range(20):
        assert 50 <= fair_bet(0.6, 100, Difficulty.MEDIUM, rng) <= 100


def test_fair_bet_near_coin_flip_bets_pot():
    assert fair_bet(0.48, 120, Difficulty.HARD, seeded()) == 120


def test_fair_bet_tracks_break_even_size():
    rng = seeded(2)
    # Break-even bet for 20% equity into 100 is 33.3.
    for _ in range(20):
        assert 30 <= fair_bet(0.2, 100, Difficulty.HARD, rng) <= 35
    for _ in range(20):
        assert 24 <= fair_bet(0.2, 100, Difficulty.EASY, rng) <= 41


def test_fair_bet_is_clamped_to_pot_fraction():
    assert fair_bet(0.0, 100, Difficulty.MEDIUM, seeded()) == 10
    assert fair_bet(0.0, 5, Difficulty.MEDIUM, seeded()) == 1


def test_calling_with_the_nuts_is_correct():
    state = _state("As Ks", "Qs Js Ts 2h 3d", pot=100, bet=50)
    call = grade_decision(state, Decision.CALL, trials=200, rng=seeded())
    assert call.correct
    assert call.message == "Correct!"
    assert call.equity == 100
    assert call.ev == pytest.approx(100)
    assert call.pot_odds == pytest.approx(100 / 3)

    fold = grade_decision(state, "fold", trials=200, rng=seeded())
    assert not fold.correct
    assert fold.message == "Incorrect."


def test_folding_a_weak_hand_to_a_big_bet_is_correct():
    state = _state("3c 4d", "2h 7d 9c Jh Qs", pot=10, bet=100)
    assert grade_decision(state, Decision.FOLD, trials=500, rng=seeded()).correct
    assert not grade_decision(state, Decision.CALL, trials=500, rng=seeded()).correct


def test_grade_decision_rejects_unknown_decision():
    state = _state("As Ks", "Qs Js Ts 2h 3d")
    with pytest.raises(ValueError):
        grade_decision(state, "raise", trials=10)
