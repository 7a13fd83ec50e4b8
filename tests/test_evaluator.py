import random

import pytest

from equity.cards import build_deck, shuffle
from equity.errors import DuplicateCard, InvalidCardCount
from equity.evaluator import HandCategory, evaluate, score_for

from .helpers import cards

CATEGORY_CASES = [
    (HandCategory.ROYAL_FLUSH, "Ah Kh Qh Jh Th 2c 3d", (14,)),
    (HandCategory.STRAIGHT_FLUSH, "9h 8h 7h 6h 5h 2c Kd", (9,)),
    (HandCategory.FOUR_OF_A_KIND, "As Ah Ad Ac Kd 2c 3h", (14, 13)),
    (HandCategory.FULL_HOUSE, "Qc Qd Qs 9h 9s 2c 4d", (12, 9)),
    (HandCategory.FLUSH, "Ah Jh 9h 6h 2h Kc 3d", (14, 11, 9, 6, 2)),
    (HandCategory.STRAIGHT, "9h 8d 7c 6s 5h 2c Kd", (9,)),
    (HandCategory.THREE_OF_A_KIND, "8h 8d 8s Qd Js 2c 4h", (8, 12, 11)),
    (HandCategory.TWO_PAIR, "7h 7d 4s 4c As 2d 9c", (7, 4, 14)),
    (HandCategory.ONE_PAIR, "6h 6s Qh 8d 4c 2s 3d", (6, 12, 8, 4)),
    (HandCategory.HIGH_CARD, "As Kd Jh 9c 4d 3s 2c", (14, 13, 11, 9, 4)),
]


def test_evaluate_identifies_all_hand_categories():
    for expected, labels, kickers in CATEGORY_CASES:
        result = evaluate(cards(labels))
        assert result.category == expected, f"labels={labels}"
        assert result.kickers == kickers, f"labels={labels}"
        assert len(result.cards) == 5


def test_scores_are_ordered_by_category():
    scores = [evaluate(cards(labels)).score for _, labels, _ in CATEGORY_CASES]
    assert scores == sorted(scores)
    assert len(set(scores)) == len(scores)


def test_weakest_full_house_beats_strongest_flush():
    full_house = evaluate(cards("2h 2d 2s 3c 3d 5h 7c"))
    flush = evaluate(cards("Ah Kh Qh Jh 9h 2c 3d"))
    assert full_house.category == HandCategory.FULL_HOUSE
    assert flush.category == HandCategory.FLUSH
    assert full_house.score < flush.score
    assert full_house.key > flush.key


def test_category_bands_do_not_overlap():
    for category in HandCategory:
        best = score_for(category, [14, 14, 14, 14, 14])
        worst = score_for(category, [2, 2, 2, 2, 2])
        if category > HandCategory.HIGH_CARD:
            below = HandCategory(category - 1)
            assert worst < score_for(below, [14, 14, 14, 14, 14])
        assert best <= worst


def test_evaluate_handles_wheel_straight():
    wheel = evaluate(cards("Ah 2d 3c 4s 5h 9d Kd"))
    six_high = evaluate(cards("6c 2d 3c 4s 5h 9d Kd"))
    assert wheel.category == HandCategory.STRAIGHT
    assert wheel.kickers == (5,)
    assert six_high.score < wheel.score


def test_steel_wheel_is_straight_flush_not_royal():
    result = evaluate(cards("Ah 2h 3h 4h 5h 9d Kd"))
    assert result.category == HandCategory.STRAIGHT_FLUSH
    assert result.kickers == (5,)


def test_flush_hidden_behind_higher_offsuit_cards():
    result = evaluate(cards("Ks Qd 9h 7h 5h 3h 2h"))
    assert result.category == HandCategory.FLUSH
    assert result.kickers == (9, 7, 5, 3, 2)


def test_two_sets_make_full_house_with_higher_trips():
    result = evaluate(cards("Kh Kd Ks 5c 5d 5h 2c"))
    assert result.category == HandCategory.FULL_HOUSE
    assert result.kickers == (13, 5)


def test_three_pairs_keep_best_two_and_best_kicker():
    result = evaluate(cards("Ah Ad Kh Kd Qh Qd 2c"))
    assert result.category == HandCategory.TWO_PAIR
    assert result.kickers == (14, 13, 12)


def test_evaluate_compares_kickers_for_equal_pairs():
    hand_a = evaluate(cards("Ah Ad Kc Qs 9h 2d 3c"))
    hand_b = evaluate(cards("Ah Ad Qc Js 8h 2d 3c"))
    assert hand_a.category == hand_b.category == HandCategory.ONE_PAIR
    assert hand_a.score < hand_b.score


def test_same_structure_in_different_suits_scores_identically():
    hand_a = evaluate(cards("Ah Ad Kc Qs 9h 2d 3c"))
    hand_b = evaluate(cards("As Ac Kd Qh 9s 2h 3d"))
    assert hand_a.category == hand_b.category
    assert hand_a.score == hand_b.score


def test_board_plays_for_both_hands():
    board = "Ah Kh Qh Jh Th"
    first = evaluate(cards(f"2c 3d {board}"))
    second = evaluate(cards(f"4s 5s {board}"))
    assert first.category == HandCategory.ROYAL_FLUSH
    assert first.score == second.score


def test_evaluate_ignores_input_order():
    rng = random.Random(99)
    deck = shuffle(build_deck(), rng)
    for idx in range(0, 49, 7):
        hand = deck[idx : idx + 7]
        baseline = evaluate(hand)
        for _ in range(3):
            shuffled = shuffle(hand, rng)
            result = evaluate(shuffled)
            assert result.category == baseline.category
            assert result.score == baseline.score


def test_evaluate_builds_a_fresh_result_every_call():
    hand = cards("As Ah Ad Ac Kd 2c 3h")
    first = evaluate(hand)
    second = evaluate(list(reversed(hand)))
    assert first == second
    assert first is not second
    assert first.cards == second.cards


def test_evaluate_supports_many_seven_card_hands():
    deck = shuffle(build_deck(), random.Random(777))
    for idx in range(0, 42, 7):
        result = evaluate(deck[idx : idx + 7])
        band_start = 20 * (9 - result.category)
        assert 0 <= result.category <= 9
        assert band_start <= result.score < band_start + 14


def test_evaluate_rejects_wrong_card_count():
    with pytest.raises(InvalidCardCount, match="exactly 7"):
        evaluate(cards("Ah Kh Qh Jh Th 2c"))
    with pytest.raises(InvalidCardCount):
        evaluate(cards("Ah Kh Qh Jh Th 2c 3c 4c"))


def test_evaluate_rejects_duplicate_cards():
    with pytest.raises(DuplicateCard):
        evaluate(cards("Ah Ah Qh Jh Th 2c 3c"))


def test_category_labels():
    assert HandCategory.THREE_OF_A_KIND.label == "Three of a Kind"
    assert HandCategory.ROYAL_FLUSH.label == "Royal Flush"
    assert evaluate(cards("6h 6s Qh 8d 4c 2s 3d")).name == "One Pair"
