from __future__ import annotations

import argparse
import asyncio
import json
import logging
import random
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Awaitable, Callable, Dict, List, Optional

import websockets
from websockets.asyncio.server import ServerConnection, serve

from equity.cards import Card, cards_to_labels, parse_label
from equity.errors import EquityError
from equity.evaluator import evaluate
from equity.models import Player, PlayerEquity, SimulationConfig
from equity.simulator import estimate_field_equity, estimate_hand_strength, estimate_table_equity
from practice.scenarios import (
    GRADE_TRIALS,
    PRACTICE_TRIALS,
    Decision,
    Difficulty,
    PracticeSettings,
    PracticeState,
    generate_practice_hand,
    grade_decision,
)

LOGGER = logging.getLogger("equity_server")

MAX_TRIALS = 1_000_000
MAX_OPEN_SCENARIOS = 16

# EquityServer exposes the engine over WebSocket JSON frames. Parsing and
# framing live here; every simulation runs in a worker thread.


class ServiceError(Exception):
    def __init__(self, code: str, msg: str) -> None:
        super().__init__(msg)
        self.code = code
        self.msg = msg


@dataclass
class ServiceConfig:
    trials: int = 10_000
    practice_trials: int = PRACTICE_TRIALS
    grade_trials: int = GRADE_TRIALS
    workers: int = 1
    seed: Optional[int] = None

    def simulation(self) -> SimulationConfig:
        return SimulationConfig(trials=self.trials, workers=self.workers)


@dataclass
class ClientSession:
    websocket: Any
    scenarios: Dict[str, PracticeState] = field(default_factory=dict)

    def remember(self, state: PracticeState) -> None:
        # Oldest ungraded hands are forgotten first.
        self.scenarios[state.id] = state
        while len(self.scenarios) > MAX_OPEN_SCENARIOS:
            self.scenarios.pop(next(iter(self.scenarios)))

    async def send_json(self, payload: Dict[str, Any]) -> None:
        await self.websocket.send(json.dumps({"v": 1, **payload}))


# Request parsing ---------------------------------------------------------


def _parse_card(raw: Any, *, allow_empty: bool = True) -> Optional[Card]:
    if raw is None and allow_empty:
        return None
    if not isinstance(raw, str):
        raise ServiceError("BAD_CARD", f"Card must be a label string, got {raw!r}")
    try:
        return parse_label(raw)
    except ValueError as exc:
        raise ServiceError("BAD_CARD", str(exc)) from exc


def _parse_board(raw: Any) -> List[Optional[Card]]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ServiceError("BAD_REQUEST", "board must be a list")
    return [_parse_card(item) for item in raw]


def _parse_players(raw: Any) -> List[Player]:
    if not isinstance(raw, list) or not raw:
        raise ServiceError("BAD_REQUEST", "players must be a non-empty list")
    players = []
    for idx, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ServiceError("BAD_REQUEST", "player entries must be objects")
        cards = entry.get("cards") or [None, None]
        if not isinstance(cards, list) or len(cards) != 2:
            raise ServiceError("BAD_REQUEST", "player cards must be a list of two slots")
        player_id = str(entry.get("id", idx + 1))
        name = entry.get("name")
        players.append(
            Player(
                id=player_id,
                hole_cards=[_parse_card(card) for card in cards],
                name=name if isinstance(name, str) else f"Player {player_id}",
            )
        )
    return players


def _parse_trials(raw: Any, default: int) -> int:
    if raw is None:
        return default
    if not isinstance(raw, int) or isinstance(raw, bool) or not 1 <= raw <= MAX_TRIALS:
        raise ServiceError("BAD_REQUEST", f"trials must be an integer in 1..{MAX_TRIALS}")
    return raw


def _parse_settings(raw: Any) -> PracticeSettings:
    if raw is None:
        return PracticeSettings()
    if not isinstance(raw, dict):
        raise ServiceError("BAD_REQUEST", "settings must be an object")
    defaults = PracticeSettings()
    try:
        return PracticeSettings(
            min_opponents=int(raw.get("min_opponents", defaults.min_opponents)),
            max_opponents=int(raw.get("max_opponents", defaults.max_opponents)),
            difficulty=Difficulty(raw.get("difficulty", defaults.difficulty.value)),
        )
    except (TypeError, ValueError) as exc:
        raise ServiceError("BAD_REQUEST", f"Invalid practice settings: {exc}") from exc


# Payloads ----------------------------------------------------------------


def _equity_payload(result: PlayerEquity) -> Dict[str, Any]:
    return {
        "id": result.player_id,
        "name": result.name,
        "win_pct": result.win_pct,
        "tie_pct": result.tie_pct,
    }


def _state_payload(state: PracticeState, *, reveal: bool = False) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "id": state.id,
        "hero": cards_to_labels(state.hero_hand),
        "board": cards_to_labels(state.board),
        "opponents": state.opponent_count,
        "pot": state.pot,
        "bet": state.bet,
        "difficulty": state.difficulty.value,
    }
    if reveal:
        payload["villain_hands"] = [cards_to_labels(hand) for hand in state.villain_hands]
    return payload


class EquityServer:
    def __init__(self, config: Optional[ServiceConfig] = None) -> None:
        self.config = config or ServiceConfig()
        self.rng = random.Random(self.config.seed)
        self.handlers: Dict[str, Callable[[ClientSession, Dict[str, Any]], Awaitable[Dict[str, Any]]]] = {
            "field_equity": self._field_equity,
            "hand_strength": self._hand_strength,
            "table_equity": self._table_equity,
            "evaluate": self._evaluate,
            "practice_hand": self._practice_hand,
            "practice_decision": self._practice_decision,
        }

    async def start(self, host: str = "0.0.0.0", port: int = 9876) -> None:
        async with serve(self._handle_connection, host, port, process_request=_process_request):
            LOGGER.info("Equity server listening on %s:%s", host, port)
            await asyncio.Future()

    async def _handle_connection(self, websocket: ServerConnection) -> None:
        session = ClientSession(websocket=websocket)
        LOGGER.info("Client connected: %s", getattr(websocket, "remote_address", None))
        try:
            async for raw in websocket:
                await self.handle_message(session, raw)
        except websockets.ConnectionClosed:
            pass
        LOGGER.info("Client disconnected: %s", getattr(websocket, "remote_address", None))

    async def handle_message(self, session: ClientSession, raw: Any) -> None:
        try:
            message = json.loads(raw)
        except (TypeError, ValueError):
            await self._send_error(session, None, "BAD_JSON", "Message must be a JSON object")
            return
        if not isinstance(message, dict):
            await self._send_error(session, None, "BAD_JSON", "Message must be a JSON object")
            return

        req_id = message.get("req_id")
        msg_type = message.get("type")
        handler = self.handlers.get(msg_type) if isinstance(msg_type, str) else None
        if handler is None:
            await self._send_error(session, req_id, "UNKNOWN_TYPE", "Unsupported message type")
            return

        try:
            payload = await handler(session, message)
        except ServiceError as exc:
            await self._send_error(session, req_id, exc.code, exc.msg)
            return
        except EquityError as exc:
            await self._send_error(session, req_id, exc.code, exc.msg)
            return
        except ValueError as exc:
            await self._send_error(session, req_id, "BAD_REQUEST", str(exc))
            return
        except Exception as exc:  # noqa: BLE001
            LOGGER.exception("Request %s crashed: %s", msg_type, exc)
            await self._send_error(session, req_id, "INTERNAL", "Internal error")
            return

        if req_id is not None:
            payload["req_id"] = req_id
        await session.send_json(payload)

    async def _send_error(self, session: ClientSession, req_id: Any, code: str, msg: str) -> None:
        payload: Dict[str, Any] = {"type": "error", "code": code, "msg": msg}
        if req_id is not None:
            payload["req_id"] = req_id
        await session.send_json(payload)

    def _child_rng(self) -> random.Random:
        # Drawn on the event loop so worker threads never share a generator.
        return random.Random(self.rng.getrandbits(64))

    # Handlers ------------------------------------------------------------

    async def _field_equity(self, session: ClientSession, message: Dict[str, Any]) -> Dict[str, Any]:
        players = _parse_players(message.get("players"))
        board = _parse_board(message.get("board"))
        trials = _parse_trials(message.get("trials"), self.config.trials)
        results = await asyncio.to_thread(
            estimate_field_equity,
            players,
            board,
            trials,
            rng=self._child_rng(),
            config=self.config.simulation(),
        )
        return {"type": "field_equity_result", "results": [_equity_payload(r) for r in results]}

    async def _table_equity(self, session: ClientSession, message: Dict[str, Any]) -> Dict[str, Any]:
        players = _parse_players(message.get("players"))
        board = _parse_board(message.get("board"))
        trials = _parse_trials(message.get("trials"), self.config.trials)
        results = await asyncio.to_thread(
            estimate_table_equity,
            players,
            board,
            trials,
            rng=self._child_rng(),
            config=self.config.simulation(),
        )
        return {"type": "table_equity_result", "results": [_equity_payload(r) for r in results]}

    async def _hand_strength(self, session: ClientSession, message: Dict[str, Any]) -> Dict[str, Any]:
        hero_raw = message.get("hero")
        if not isinstance(hero_raw, list):
            raise ServiceError("BAD_REQUEST", "hero must be a list of two cards")
        hero = [_parse_card(card, allow_empty=False) for card in hero_raw]
        board = _parse_board(message.get("board"))
        opponents = message.get("opponents", 1)
        if not isinstance(opponents, int) or isinstance(opponents, bool):
            raise ServiceError("BAD_REQUEST", "opponents must be an integer")
        trials = _parse_trials(message.get("trials"), self.config.trials)
        strength = await asyncio.to_thread(
            estimate_hand_strength,
            hero,
            board,
            opponents,
            trials,
            rng=self._child_rng(),
            config=self.config.simulation(),
        )
        return {
            "type": "hand_strength_result",
            "win_pct": strength.win_pct,
            "tie_pct": strength.tie_pct,
            "equity": strength.equity,
        }

    async def _evaluate(self, session: ClientSession, message: Dict[str, Any]) -> Dict[str, Any]:
        cards_raw = message.get("cards")
        if not isinstance(cards_raw, list):
            raise ServiceError("BAD_REQUEST", "cards must be a list")
        result = evaluate([_parse_card(card, allow_empty=False) for card in cards_raw])
        return {
            "type": "evaluate_result",
            "category": int(result.category),
            "name": result.name,
            "score": result.score,
            "cards": cards_to_labels(result.cards),
        }

    async def _practice_hand(self, session: ClientSession, message: Dict[str, Any]) -> Dict[str, Any]:
        settings = _parse_settings(message.get("settings"))
        state = await asyncio.to_thread(
            generate_practice_hand,
            settings,
            rng=self._child_rng(),
            trials=self.config.practice_trials,
            config=self.config.simulation(),
        )
        session.remember(state)
        return {"type": "practice_hand", **_state_payload(state)}

    async def _practice_decision(self, session: ClientSession, message: Dict[str, Any]) -> Dict[str, Any]:
        scenario_id = message.get("id")
        state = session.scenarios.get(scenario_id) if isinstance(scenario_id, str) else None
        if state is None:
            raise ServiceError("UNKNOWN_SCENARIO", "No practice hand with that id")
        try:
            decision = Decision(message.get("decision"))
        except ValueError as exc:
            raise ServiceError("BAD_REQUEST", "decision must be call or fold") from exc
        result = await asyncio.to_thread(
            grade_decision,
            state,
            decision,
            trials=self.config.grade_trials,
            rng=self._child_rng(),
            config=self.config.simulation(),
        )
        session.scenarios.pop(state.id, None)
        return {
            "type": "practice_result",
            **_state_payload(state, reveal=True),
            "decision": result.decision.value,
            "correct": result.correct,
            "equity": result.equity,
            "pot_odds": result.pot_odds,
            "ev": result.ev,
            "message": result.message,
        }


def _process_request(connection: ServerConnection, request: Any):
    """Answer plain HTTP health checks; let WebSocket upgrades through."""

    if request.headers.get("Upgrade", "").lower() == "websocket":
        return None
    if request.path in {"/", "/health", "/healthz"}:
        return connection.respond(HTTPStatus.OK, "equity server running\n")
    return connection.respond(HTTPStatus.NOT_FOUND, "not found\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Hold'em equity WebSocket service")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=9876)
    parser.add_argument("--trials", type=int, default=10_000, help="Default trials per equity request")
    parser.add_argument("--practice-trials", type=int, default=PRACTICE_TRIALS)
    parser.add_argument("--grade-trials", type=int, default=GRADE_TRIALS)
    parser.add_argument("--workers", type=int, default=1, help="Processes per simulation (1 runs inline)")
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible results")
    parser.add_argument("--log-level", default="INFO")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    config = ServiceConfig(
        trials=args.trials,
        practice_trials=args.practice_trials,
        grade_trials=args.grade_trials,
        workers=args.workers,
        seed=args.seed,
    )
    asyncio.run(EquityServer(config).start(host=args.host, port=args.port))


if __name__ == "__main__":
    main()
