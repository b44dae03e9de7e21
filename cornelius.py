"""
Cornelius — single-ply Battlesnake move engine
----------------------------------------------
Scores the four cardinal moves from our head and takes the best one:
- Occupancy: walls, every snake's head and body are off limits
- Head-to-head: cells next to a rival head of equal or greater length are risky
- Hazards: penalized by how much health entering them would cost
- Space: bounded flood-fill, capped at our own length (extended policy)

Two valuation policies are available ("baseline" and "extended"); exactly one
is active per process. Ties go to the first direction in DIRECTIONS.

Nothing here does I/O; cornelius_server wraps it in a Flask app.
"""
from __future__ import annotations
from typing import Callable, Dict, FrozenSet, Iterable, Optional, Set, Tuple
from dataclasses import dataclass, field
import logging
import time

logger = logging.getLogger(__name__)

# ---------------------------------
# Config
# ---------------------------------
DIRECTIONS: Tuple[str, ...] = ("up", "down", "left", "right")

DEFAULT_POLICY = "baseline"

HAZARD_DAMAGE = 14  # health lost per turn in a hazard on top of the normal 1

BASELINE_SCORES = {
    "blocked": 0,
    "threat": 25,
    "open": 100,
}

EXTENDED_SCORES = {
    "wall": -200,
    "snake": -190,
    "legal_floor": -180,
    "open": 100,
    "edge": 60,
    "threat": -80,
    "food": 75,
    "room": 50,
    "trap": 80,
}

LATENCY_MARGIN_MS = 50  # keep this much of the game timeout for the round trip

SNAKE_INFO = {
    "apiversion": "1",
    "author": "ChaelCodes",
    "color": "#F09383",
    "head": "bendr",
    "tail": "round-bum",
}

# ---------------------------------
# Data models
# ---------------------------------
@dataclass(frozen=True)
class Coord:
    x: int
    y: int

    def up(self) -> Coord:
        return Coord(self.x, self.y + 1)

    def down(self) -> Coord:
        return Coord(self.x, self.y - 1)

    def left(self) -> Coord:
        return Coord(self.x - 1, self.y)

    def right(self) -> Coord:
        return Coord(self.x + 1, self.y)

    def step(self, direction: str) -> Coord:
        return getattr(self, direction)()

    def neighbors(self) -> Tuple[Coord, ...]:
        return tuple(self.step(d) for d in DIRECTIONS)


@dataclass(frozen=True)
class Snake:
    id: str
    head: Coord
    body: Tuple[Coord, ...] = ()  # may or may not repeat the head
    health: int = 100
    length: int = 4  # authoritative size, not len(body)
    name: str = ""

    def cells(self) -> Tuple[Coord, ...]:
        return (self.head,) + self.body


@dataclass(frozen=True)
class Board:
    width: int = 0
    height: int = 0
    food: FrozenSet[Coord] = frozenset()
    hazards: FrozenSet[Coord] = frozenset()
    snakes: Tuple[Snake, ...] = ()


@dataclass(frozen=True)
class Game:
    id: str
    timeout: int = 500  # ms per move
    ruleset: Dict[str, object] = field(default_factory=dict, compare=False)

# ---------------------------------
# Occupancy queries
# ---------------------------------

def in_bounds(cell: Coord, board: Board) -> bool:
    return 0 <= cell.x < board.width and 0 <= cell.y < board.height


def has_food(cell: Coord, board: Board) -> bool:
    return cell in board.food


def has_hazard(cell: Coord, board: Board) -> bool:
    return cell in board.hazards


def occupied_cells(snakes: Iterable[Snake]) -> Set[Coord]:
    occ: Set[Coord] = set()
    for snake in snakes:
        occ.update(snake.cells())
    return occ


def occupied_by_snake(cell: Coord, snakes: Iterable[Snake]) -> bool:
    return any(cell in snake.cells() for snake in snakes)


def threatened_by_rival_head(cell: Coord, snakes: Iterable[Snake], me: Snake) -> bool:
    """True if a rival at least as long as `me` could move its head into `cell`.

    Losing (or tying) a head-to-head only happens against a snake of equal or
    greater length, so shorter rivals are ignored. `me` is matched by id.
    """
    for snake in snakes:
        if snake.id == me.id or snake.length < me.length:
            continue
        if cell in snake.head.neighbors():
            return True
    return False

# ---------------------------------
# Space
# ---------------------------------

def reachable_space(start: Coord, board: Board, limit: int) -> int:
    """Count free cells reachable from `start`, stopping once `limit` is hit.

    `start` is the cell we are about to enter, so it is not counted itself: a
    free cell walled in on all four sides has 0 room. A blocked or off-board
    `start` also gives 0.
    """
    blocked = occupied_cells(board.snakes)
    if limit <= 0 or not in_bounds(start, board) or start in blocked:
        return 0

    stack = [start]
    seen = {start}
    cnt = 0
    while stack and cnt < limit:
        c = stack.pop()
        for n in c.neighbors():
            if n in seen or n in blocked or not in_bounds(n, board):
                continue
            seen.add(n)
            stack.append(n)
            cnt += 1
            if cnt >= limit:
                break
    return cnt

# ---------------------------------
# Valuation
# ---------------------------------

def baseline_value(cell: Coord, board: Board, me: Snake) -> int:
    if not in_bounds(cell, board) or occupied_by_snake(cell, board.snakes):
        return BASELINE_SCORES["blocked"]
    if threatened_by_rival_head(cell, board.snakes, me):
        return BASELINE_SCORES["threat"]
    if has_hazard(cell, board):
        # never sink to the level of a collision
        return max(me.health - HAZARD_DAMAGE, BASELINE_SCORES["blocked"] + 1)
    return BASELINE_SCORES["open"]


def extended_value(cell: Coord, board: Board, me: Snake) -> int:
    s = EXTENDED_SCORES
    if not in_bounds(cell, board):
        return s["wall"]
    if occupied_by_snake(cell, board.snakes):
        return s["snake"]

    score = s["edge"] if cell.x == 0 or cell.y == 0 else s["open"]

    if threatened_by_rival_head(cell, board.snakes, me):
        score += s["threat"]

    if has_food(cell, board):
        score += s["food"]
    elif has_hazard(cell, board):
        score -= 100 - (me.health - HAZARD_DAMAGE)

    room = reachable_space(cell, board, me.length)
    if room >= me.length:
        score += s["room"]
    else:
        score -= s["trap"] - room

    return max(score, s["legal_floor"])


Valuator = Callable[[Coord, Board, Snake], int]

POLICIES: Dict[str, Valuator] = {
    "baseline": baseline_value,
    "extended": extended_value,
}


def get_policy(name: str) -> Valuator:
    try:
        return POLICIES[name]
    except KeyError:
        raise ValueError(
            f"unknown valuation policy {name!r}; expected one of {sorted(POLICIES)}"
        ) from None


def value_of_move(cell: Coord, board: Board, me: Snake, policy: str = DEFAULT_POLICY) -> int:
    return get_policy(policy)(cell, board, me)

# ---------------------------------
# Move selection
# ---------------------------------

def score_moves(
    board: Board,
    me: Snake,
    policy: str = DEFAULT_POLICY,
    deadline: Optional[float] = None,
) -> Dict[str, int]:
    """Score the moves from our head in DIRECTIONS order.

    Past `deadline` (a time.monotonic() value) the remaining directions are
    skipped; the first one is always scored.
    """
    valuator = get_policy(policy)
    scores: Dict[str, int] = {}
    for name in DIRECTIONS:
        if scores and deadline is not None and time.monotonic() >= deadline:
            break
        scores[name] = valuator(me.head.step(name), board, me)
    return scores


def pick_best(scores: Dict[str, int]) -> str:
    if not any(name in scores for name in DIRECTIONS):
        raise ValueError("no direction has been scored")
    best_move, best_val = None, None
    for name in DIRECTIONS:
        if name not in scores:
            continue
        if best_val is None or scores[name] > best_val:
            best_move, best_val = name, scores[name]
    return best_move


def choose_move(
    board: Board,
    me: Snake,
    policy: str = DEFAULT_POLICY,
    deadline: Optional[float] = None,
) -> str:
    # No "no legal move" escape: if everything is blocked we still answer.
    return pick_best(score_moves(board, me, policy, deadline))

# ---------------------------------
# Lifecycle hooks
# ---------------------------------

class MoveObserver:
    """Hook points for the game lifecycle. The base class ignores everything."""

    def game_started(self, game_id: str, turn: int, board: Board, me: Snake) -> None:
        pass

    def game_ended(self, game_id: str, turn: int, board: Board, me: Snake) -> None:
        pass

    def move_chosen(self, game_id: str, turn: int, direction: str, scores: Dict[str, int]) -> None:
        pass


class LoggingObserver(MoveObserver):
    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def game_started(self, game_id, turn, board, me):
        self.log.info("%s START", game_id)

    def game_ended(self, game_id, turn, board, me):
        self.log.info("%s END", game_id)

    def move_chosen(self, game_id, turn, direction, scores):
        self.log.debug("%s turn %d scores %s", game_id, turn, scores)
        self.log.info("%s MOVE %s", game_id, direction)


def snake_info() -> Dict[str, str]:
    return dict(SNAKE_INFO)


def on_game_start(game_id: str, turn: int, board: Board, me: Snake,
                  observer: Optional[MoveObserver] = None) -> None:
    (observer or LoggingObserver()).game_started(game_id, turn, board, me)


def on_game_end(game_id: str, turn: int, board: Board, me: Snake,
                observer: Optional[MoveObserver] = None) -> None:
    (observer or LoggingObserver()).game_ended(game_id, turn, board, me)


def on_move_request(
    game_id: str,
    turn: int,
    board: Board,
    me: Snake,
    observer: Optional[MoveObserver] = None,
    policy: str = DEFAULT_POLICY,
    timeout_ms: Optional[int] = None,
) -> str:
    deadline = None
    if timeout_ms is not None:
        budget_ms = max(timeout_ms - LATENCY_MARGIN_MS, 0)
        deadline = time.monotonic() + budget_ms / 1000.0

    scores = score_moves(board, me, policy, deadline)
    direction = pick_best(scores)
    (observer or LoggingObserver()).move_chosen(game_id, turn, direction, scores)
    return direction
