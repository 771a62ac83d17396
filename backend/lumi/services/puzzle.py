"""Sliding-tile board rules for a 3x3 picture puzzle.

A board is a list where position ``i`` holds the original index of the piece
currently sitting there. The board is solved when every piece is home.
"""
import random
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

PIECE_COUNT = 9


@dataclass(frozen=True)
class ShuffledPiece:
    original_index: int
    current_index: int
    data: Any = None

    def to_dict(self):
        return {
            'originalIndex': self.original_index,
            'currentIndex': self.current_index,
        }


def _fisher_yates(items: list, rng) -> None:
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]


def shuffle(piece_count: int = PIECE_COUNT, rng: Optional[random.Random] = None) -> List[int]:
    """Return a random permutation of ``range(piece_count)`` that is never solved.

    If the Fisher-Yates pass happens to leave every piece home, the first two
    positions are swapped so the player always has something to do.
    """
    rng = rng or random
    board = list(range(piece_count))
    _fisher_yates(board, rng)
    if piece_count > 1 and validate(board):
        board[0], board[1] = board[1], board[0]
    return board


def shuffle_pieces(pieces: Sequence[Any], rng: Optional[random.Random] = None) -> List[ShuffledPiece]:
    """Shuffle arbitrary piece payloads (e.g. image slices) into a board."""
    order = shuffle(len(pieces), rng)
    return [
        ShuffledPiece(original_index=original, current_index=position, data=pieces[original])
        for position, original in enumerate(order)
    ]


def validate(board: Sequence[int]) -> bool:
    return all(piece == position for position, piece in enumerate(board))


def swap(board: Sequence[int], i: int, j: int) -> List[int]:
    """Return a copy of ``board`` with positions ``i`` and ``j`` exchanged."""
    swapped = list(board)
    if i != j:
        swapped[i], swapped[j] = swapped[j], swapped[i]
    return swapped


def solved_positions(board: Sequence[int]) -> List[int]:
    return [position for position, piece in enumerate(board) if piece == position]
