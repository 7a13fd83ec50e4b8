#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional

import websockets

logging.basicConfig(level=logging.INFO)
LOGGER = logging.getLogger("manual_client")

# One request per invocation. Cards are labels such as As, Td or 10d; use "-"
# for an unknown board slot.


def _cards(text: str) -> List[Optional[str]]:
    return [None if token == "-" else token for token in text.replace(",", " ").split()]


def _hole(text: str) -> List[Optional[str]]:
    cards = _cards(text)
    if len(cards) == 1 and cards[0] and len(cards[0]) == 4:
        cards = [cards[0][:2], cards[0][2:]]
    if len(cards) != 2:
        raise argparse.ArgumentTypeError(f"Expected two hole cards, got {text!r}")
    return cards


def build_request(args: argparse.Namespace) -> Dict[str, Any]:
    board = _cards(args.board) if getattr(args, "board", None) else []
    if args.command == "field":
        players = [{"id": str(idx + 1), "cards": hand} for idx, hand in enumerate(args.hands)]
        return {"type": "field_equity", "players": players, "board": board, "trials": args.trials}
    if args.command == "strength":
        return {
            "type": "hand_strength",
            "hero": args.hero,
            "board": board,
            "opponents": args.opponents,
            "trials": args.trials,
        }
    if args.command == "evaluate":
        return {"type": "evaluate", "cards": _cards(args.cards)}
    return {
        "type": "practice_hand",
        "settings": {
            "min_opponents": args.min_opponents,
            "max_opponents": args.max_opponents,
            "difficulty": args.difficulty,
        },
    }


async def run(url: str, request: Dict[str, Any], decide: bool) -> int:
    async with websockets.connect(url) as ws:
        await ws.send(json.dumps({"req_id": 1, **request}))
        response = json.loads(await ws.recv())
        print(json.dumps(response, indent=2))
        if response.get("type") == "error":
            return 1
        if decide and response.get("type") == "practice_hand":
            choice = ""
            while choice not in ("call", "fold"):
                choice = input(f"Pot {response['pot']}, bet {response['bet']}. call or fold? ").strip().lower()
            await ws.send(json.dumps({"type": "practice_decision", "id": response["id"], "decision": choice}))
            print(json.dumps(json.loads(await ws.recv()), indent=2))
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Send a single request to the equity server")
    parser.add_argument("--url", default="ws://localhost:9876")
    sub = parser.add_subparsers(dest="command", required=True)

    field_cmd = sub.add_parser("field", help="Equity of known hands against each other")
    field_cmd.add_argument("hands", nargs="+", type=_hole, help="Hole cards, e.g. AsAh or 'Ks Kh'")
    field_cmd.add_argument("--board", default="")
    field_cmd.add_argument("--trials", type=int, default=10_000)

    strength_cmd = sub.add_parser("strength", help="One hand against random opponents")
    strength_cmd.add_argument("hero", type=_hole)
    strength_cmd.add_argument("--board", default="")
    strength_cmd.add_argument("--opponents", type=int, default=1)
    strength_cmd.add_argument("--trials", type=int, default=10_000)

    evaluate_cmd = sub.add_parser("evaluate", help="Best hand out of seven cards")
    evaluate_cmd.add_argument("cards")

    practice_cmd = sub.add_parser("practice", help="Play one call/fold practice spot")
    practice_cmd.add_argument("--min-opponents", type=int, default=1)
    practice_cmd.add_argument("--max-opponents", type=int, default=3)
    practice_cmd.add_argument("--difficulty", choices=["easy", "medium", "hard"], default="medium")

    args = parser.parse_args()
    try:
        code = asyncio.run(run(args.url, build_request(args), decide=args.command == "practice"))
    except (OSError, websockets.ConnectionClosed) as exc:
        LOGGER.error("Connection to %s failed: %s", args.url, exc)
        code = 2
    sys.exit(code)


if __name__ == "__main__":
    main()
