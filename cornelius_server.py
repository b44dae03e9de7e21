"""
Flask front end for the Cornelius move engine.

Run locally:
  pip install -e .
  PORT=8000 LOG_LEVEL=debug VALUATION_POLICY=baseline cornelius-server
"""
from __future__ import annotations
from typing import Dict, List, Mapping, Optional, Tuple
from dataclasses import dataclass
import logging
import os

from flask import Flask, jsonify, request

import cornelius
from cornelius import Board, Coord, Game, Snake

logger = logging.getLogger(__name__)

SERVER_ID = "battlesnake/github/cornelius-snake"

# ---------------------------------
# Config
# ---------------------------------
@dataclass(frozen=True)
class Config:
    port: int = 8000
    log_level: str = "INFO"
    policy: str = cornelius.DEFAULT_POLICY


def load_config(environ: Optional[Mapping[str, str]] = None) -> Config:
    env = os.environ if environ is None else environ

    raw_port = env.get("PORT", "8000")
    try:
        port = int(raw_port)
    except ValueError:
        raise ValueError(f"PORT must be an integer, got {raw_port!r}") from None
    if not 0 < port < 65536:
        raise ValueError(f"PORT out of range: {port}")

    level = env.get("LOG_LEVEL", "INFO").upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"unknown LOG_LEVEL {level!r}")

    policy = env.get("VALUATION_POLICY", cornelius.DEFAULT_POLICY).lower()
    cornelius.get_policy(policy)  # raises on unknown names

    return Config(port=port, log_level=level, policy=policy)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

# ---------------------------------
# Parsing
# ---------------------------------

class PayloadError(ValueError):
    """The request body is not a usable Battlesnake game state."""


def _require(obj: Mapping, key: str, where: str):
    if not isinstance(obj, Mapping) or key not in obj:
        raise PayloadError(f"missing {where}.{key}")
    return obj[key]


def _as_int(value, where: str) -> int:
    # bool is an int subclass but never a valid coordinate or counter
    if isinstance(value, bool) or not isinstance(value, int):
        raise PayloadError(f"{where} must be an integer, got {value!r}")
    return value


def parse_coord(raw: Mapping, where: str = "coord") -> Coord:
    return Coord(
        _as_int(_require(raw, "x", where), f"{where}.x"),
        _as_int(_require(raw, "y", where), f"{where}.y"),
    )


def parse_coords(raw, where: str) -> List[Coord]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise PayloadError(f"{where} must be a list")
    return [parse_coord(p, f"{where}[{i}]") for i, p in enumerate(raw)]


def parse_snake(raw: Mapping, where: str = "snake") -> Snake:
    snake_id = _require(raw, "id", where)
    body = parse_coords(raw.get("body"), f"{where}.body")

    if "head" in raw:
        head = parse_coord(raw["head"], f"{where}.head")
    elif body:
        head = body[0]
    else:
        raise PayloadError(f"{where} has neither head nor body")

    length = _as_int(raw.get("length", len(body) or 1), f"{where}.length")
    health = _as_int(raw.get("health", 100), f"{where}.health")

    return Snake(
        id=str(snake_id),
        name=str(raw.get("name") or snake_id),
        head=head,
        body=tuple(body),
        health=health,
        length=length,
    )


def _parse_ruleset(raw) -> Dict[str, object]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise PayloadError("game.ruleset must be an object")
    return dict(raw)


def parse_game_state(payload) -> Tuple[Game, int, Board, Snake]:
    if not isinstance(payload, Mapping):
        raise PayloadError("game state must be a JSON object")

    g = _require(payload, "game", "state")
    game = Game(
        id=str(_require(g, "id", "game")),
        timeout=_as_int(g.get("timeout", 500), "game.timeout"),
        ruleset=_parse_ruleset(g.get("ruleset")),
    )
    turn = _as_int(payload.get("turn", 0), "turn")

    b = _require(payload, "board", "state")
    width = _as_int(_require(b, "width", "board"), "board.width")
    height = _as_int(_require(b, "height", "board"), "board.height")
    if width <= 0 or height <= 0:
        raise PayloadError(f"board must have positive size, got {width}x{height}")

    raw_snakes = b.get("snakes") or []
    if not isinstance(raw_snakes, list):
        raise PayloadError("board.snakes must be a list")
    snakes = [parse_snake(s, f"board.snakes[{i}]") for i, s in enumerate(raw_snakes)]

    me = parse_snake(_require(payload, "you", "state"), "you")
    if all(s.id != me.id for s in snakes):
        snakes.append(me)

    board = Board(
        width=width,
        height=height,
        food=frozenset(parse_coords(b.get("food"), "board.food")),
        hazards=frozenset(parse_coords(b.get("hazards"), "board.hazards")),
        snakes=tuple(snakes),
    )
    return game, turn, board, me

# ---------------------------------
# Flask server
# ---------------------------------
app = Flask(__name__)

observer = cornelius.LoggingObserver(logger)


def _game_state() -> Tuple[Game, int, Board, Snake]:
    return parse_game_state(request.get_json(silent=True))


@app.errorhandler(PayloadError)
def bad_payload(err: PayloadError):
    logger.warning("rejected payload: %s", err)
    return jsonify({"error": str(err)}), 400


@app.after_request
def identify(response):
    response.headers["Server"] = SERVER_ID
    return response


@app.get("/")
def index():
    return jsonify(cornelius.snake_info())


@app.post("/start")
def start():
    game, turn, board, me = _game_state()
    cornelius.on_game_start(game.id, turn, board, me, observer)
    return ("", 200)


@app.post("/move")
def move():
    game, turn, board, me = _game_state()
    move_dir = cornelius.on_move_request(
        game.id,
        turn,
        board,
        me,
        observer,
        policy=app.config["VALUATION_POLICY"],
        timeout_ms=game.timeout,
    )
    return jsonify({"move": move_dir})


@app.post("/end")
def end():
    game, turn, board, me = _game_state()
    cornelius.on_game_end(game.id, turn, board, me, observer)
    return ("", 200)


def apply_config(config: Config) -> None:
    app.config["VALUATION_POLICY"] = config.policy
    for name in ("cornelius", __name__):
        logging.getLogger(name).setLevel(config.log_level)


# `flask run` and WSGI servers import the module without calling main()
apply_config(load_config())


def main(environ: Optional[Dict[str, str]] = None) -> None:
    config = load_config(environ)
    configure_logging(config.log_level)
    apply_config(config)
    logger.info("Starting Battlesnake server on port %d (policy=%s)", config.port, config.policy)
    app.run(host="0.0.0.0", port=config.port, debug=False)


if __name__ == "__main__":
    main()
