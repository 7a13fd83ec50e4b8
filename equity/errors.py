from __future__ import annotations


class EquityError(ValueError):
    """Precondition violation raised by the engine. ``code`` is stable for wire use."""

    code = "EQUITY_ERROR"

    def __init__(self, msg: str) -> None:
        super().__init__(msg)
        self.msg = msg


class InvalidCardCount(EquityError):
    code = "INVALID_CARD_COUNT"


class DuplicateCard(EquityError):
    code = "DUPLICATE_CARD"


class ExhaustedPool(EquityError):
    code = "EXHAUSTED_POOL"
