"""Inbound message parsing.

Each ``parse_*`` function turns a raw Socket.IO payload into a typed message or
raises ``MalformedMessage``. Field names follow the browser client; the
spelled-out aliases are accepted as well.
"""
import math
from dataclasses import dataclass
from typing import Any, Optional

from lumi.exceptions import MalformedMessage

# Inbound event names
JOIN = 'player:join'
READY = 'player:ready'
PROGRESS = 'player:progress'
COMPLETE = 'player:complete'
START = 'game:start'
END = 'game:end'
RESET = 'game:reset'

# Outbound event names
PLAYERS_UPDATE = 'players:update'
GAME_STATE = 'game:state'
GAME_STARTED = 'game:started'
GAME_ENDED = 'game:ended'
GAME_RESET = 'game:reset'
PLAYER_COMPLETED = 'player:completed'
IMAGES_UPDATE = 'images:update'


@dataclass(frozen=True)
class JoinMessage:
    persistent_id: Optional[str]
    display_name: str
    is_game_master: bool = False


@dataclass(frozen=True)
class ProgressMessage:
    puzzle_index: int
    move_count: int
    score: int
    total_time_seconds: int


@dataclass(frozen=True)
class CompleteMessage:
    completed_count: int
    cumulative_score: int
    cumulative_time: int
    current_puzzle_index: int
    puzzle_index: int
    puzzle_score: int
    puzzle_time: Optional[int] = None
    puzzle_moves: Optional[int] = None


@dataclass(frozen=True)
class StartMessage:
    total_puzzle_count: Optional[int]


def _require_dict(kind: str, payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise MalformedMessage(kind, 'payload must be an object')
    return payload


def _lookup(payload: dict, *keys):
    for key in keys:
        if payload.get(key) is not None:
            return payload[key]
    return None


def _number(kind: str, key: str, raw) -> int:
    # bool is an int subclass; a flag is never a valid count
    if isinstance(raw, bool):
        raise MalformedMessage(kind, f"{key} must be a number")
    try:
        # x.5 rounds up, unlike round()
        return math.floor(float(raw) + 0.5)
    except (TypeError, ValueError, OverflowError):
        raise MalformedMessage(kind, f"{key} must be a number")


def _count(kind: str, payload: dict, *keys, required=True, default=None) -> Optional[int]:
    raw = _lookup(payload, *keys)
    if raw is None:
        if required:
            raise MalformedMessage(kind, f"missing {keys[0]}")
        return default
    value = _number(kind, keys[0], raw)
    if value < 0:
        raise MalformedMessage(kind, f"{keys[0]} must not be negative")
    return value


def parse_join(payload: Any) -> JoinMessage:
    payload = _require_dict(JOIN, payload)
    name = _lookup(payload, 'name', 'displayName')
    if not isinstance(name, str) or not name.strip():
        raise MalformedMessage(JOIN, 'missing name')
    # The role grants phase control, so only a real boolean is accepted
    is_game_master = payload.get('isGameMaster')
    if is_game_master is None:
        is_game_master = False
    elif not isinstance(is_game_master, bool):
        raise MalformedMessage(JOIN, 'isGameMaster must be a boolean')
    persistent_id = _lookup(payload, 'id', 'persistentId')
    if persistent_id is not None:
        persistent_id = str(persistent_id).strip() or None
    return JoinMessage(
        persistent_id=persistent_id,
        display_name=name.strip(),
        is_game_master=is_game_master,
    )


def parse_ready(payload: Any) -> bool:
    if isinstance(payload, dict):
        payload = _lookup(payload, 'isReady', 'ready')
    if not isinstance(payload, bool):
        raise MalformedMessage(READY, 'ready flag must be a boolean')
    return payload


def parse_progress(payload: Any) -> ProgressMessage:
    payload = _require_dict(PROGRESS, payload)
    return ProgressMessage(
        puzzle_index=_count(PROGRESS, payload, 'currentPuzzle', 'puzzleIndex'),
        # Clients omit the move count before the first swap
        move_count=_count(PROGRESS, payload, 'currentMoves', 'moveCount', required=False, default=0),
        score=_count(PROGRESS, payload, 'score'),
        total_time_seconds=_count(PROGRESS, payload, 'totalTime', 'totalTimeSeconds'),
    )


def parse_complete(payload: Any) -> CompleteMessage:
    payload = _require_dict(COMPLETE, payload)
    return CompleteMessage(
        completed_count=_count(COMPLETE, payload, 'completedPuzzles', 'completedCount'),
        cumulative_score=_count(COMPLETE, payload, 'score'),
        cumulative_time=_count(COMPLETE, payload, 'totalTime'),
        current_puzzle_index=_count(COMPLETE, payload, 'currentPuzzle', 'currentPuzzleIndex'),
        puzzle_index=_count(COMPLETE, payload, 'puzzleIndex'),
        puzzle_score=_count(COMPLETE, payload, 'puzzleScore'),
        puzzle_time=_count(COMPLETE, payload, 'puzzleTime', required=False),
        puzzle_moves=_count(COMPLETE, payload, 'puzzleMoves', required=False),
    )


def parse_start(payload: Any) -> StartMessage:
    if payload is None:
        return StartMessage(total_puzzle_count=None)
    payload = _require_dict(START, payload)
    raw = _lookup(payload, 'totalPuzzles', 'totalPuzzleCount')
    if raw is None:
        return StartMessage(total_puzzle_count=None)
    return StartMessage(total_puzzle_count=_number(START, 'totalPuzzles', raw))
