"""Practice spots and the WebSocket service that wraps the equity engine."""

from .scenarios import Decision, DecisionResult, Difficulty, PracticeSettings, PracticeState, generate_practice_hand, grade_decision

__all__ = [
    "Decision",
    "DecisionResult",
    "Difficulty",
    "PracticeSettings",
    "PracticeState",
    "generate_practice_hand",
    "grade_decision",
]
