from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


class Role(str, Enum):
    PLAYER = 'player'
    GAME_MASTER = 'gameMaster'


class Phase(str, Enum):
    LOBBY = 'lobby'
    RUNNING = 'running'
    ENDED = 'ended'


@dataclass
class PuzzleResult:
    puzzle_index: int
    score: int
    time_seconds: int = 0
    move_count: int = 0

    def to_dict(self):
        return {
            'puzzleIndex': self.puzzle_index,
            'score': self.score,
            'timeSeconds': self.time_seconds,
            'moves': self.move_count,
        }


@dataclass
class Participant:
    """One player or game master, keyed by the client supplied persistent id."""

    persistent_id: str
    display_name: str
    role: Role = Role.PLAYER
    online: bool = True
    ready_to_advance: bool = False
    current_puzzle_index: int = 0
    current_move_count: int = 0
    completed_puzzle_count: int = 0
    cumulative_score: int = 0
    cumulative_time_seconds: int = 0
    last_update_timestamp: int = 0
    # Keyed by puzzle index; a later result for the same index replaces the earlier one
    results: Dict[int, PuzzleResult] = field(default_factory=dict)

    @property
    def is_game_master(self) -> bool:
        return self.role is Role.GAME_MASTER

    def reset_progress(self) -> None:
        self.ready_to_advance = False
        self.current_puzzle_index = 0
        self.current_move_count = 0
        self.completed_puzzle_count = 0
        self.cumulative_score = 0
        self.cumulative_time_seconds = 0
        self.results.clear()

    def to_dict(self):
        return {
            'id': self.persistent_id,
            'name': self.display_name,
            'role': self.role.value,
            'isGameMaster': self.is_game_master,
            'isReady': self.ready_to_advance,
            'online': self.online,
            'currentPuzzle': self.current_puzzle_index,
            'currentMoves': self.current_move_count,
            'completedPuzzles': self.completed_puzzle_count,
            'score': self.cumulative_score,
            'totalTime': self.cumulative_time_seconds,
            'lastUpdate': self.last_update_timestamp,
            'results': [self.results[i].to_dict() for i in sorted(self.results)],
        }


@dataclass
class GamePhase:
    phase: Phase = Phase.LOBBY
    started_at: Optional[int] = None
    total_puzzle_count: int = 0

    @property
    def is_started(self) -> bool:
        return self.phase is Phase.RUNNING

    def to_dict(self):
        return {
            'phase': self.phase.value,
            'isStarted': self.is_started,
            'startTime': self.started_at,
            'totalPuzzles': self.total_puzzle_count,
        }
