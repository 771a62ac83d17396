"""Per-puzzle score formula.

This is the only place a score is computed. Clients run the same formula and
report the result; the server stores reported scores as they arrive.
"""
import math

BASE_SCORE = 1000
# Seconds before the time penalty kicks in, and points lost per second after it
TIME_GRACE_SEC = 30
TIME_PENALTY_PER_SEC = 10
# Fewest swaps that can solve a 9-piece board
MIN_MOVES = 9
MOVE_PENALTY_PER_MOVE = 5
FAST_SOLVE_SEC = 20
FAST_SOLVE_BONUS_PER_SEC = 20
EFFICIENT_MOVES = 15
EFFICIENT_BONUS_PER_MOVE = 10


def _round_half_up(value: float) -> int:
    # x.5 rounds up, unlike round()
    return math.floor(value + 0.5)


def calculate_score(time_seconds: float, move_count: int) -> int:
    """Score one solved puzzle.

    1000 base, minus 10 per second past 30s and 5 per move past 9, plus
    20 per second under 20s and 10 per move under 15. Never negative.
    """
    time_penalty = max(0, (time_seconds - TIME_GRACE_SEC) * TIME_PENALTY_PER_SEC)
    move_penalty = max(0, (move_count - MIN_MOVES) * MOVE_PENALTY_PER_MOVE)
    time_bonus = (FAST_SOLVE_SEC - time_seconds) * FAST_SOLVE_BONUS_PER_SEC if time_seconds < FAST_SOLVE_SEC else 0
    move_bonus = (EFFICIENT_MOVES - move_count) * EFFICIENT_BONUS_PER_MOVE if move_count < EFFICIENT_MOVES else 0
    final = max(0, BASE_SCORE - time_penalty - move_penalty + time_bonus + move_bonus)
    return _round_half_up(final)


def format_time(seconds: int) -> str:
    """Render a second count as MM:SS."""
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes:02d}:{secs:02d}"
