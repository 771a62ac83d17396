import logging
import time
from typing import Callable

from lumi.exceptions import InvalidTransition
from lumi.models import GamePhase, Phase
from lumi.services.players import PlayerRegistry

logger = logging.getLogger(__name__)


class GameStateMachine:
    """Shared game phase: lobby -> running -> ended -> (reset) lobby.

    Every transition must be requested by a game master; the registry resolves
    the requester and raises if they are not one.
    """

    def __init__(self, registry: PlayerRegistry, clock: Callable[[], float] = time.time):
        self.registry = registry
        self._clock = clock
        self.state = GamePhase()

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def round_has_started(self) -> bool:
        """True once a round has been started since the last reset."""
        return self.state.phase is not Phase.LOBBY or self.state.total_puzzle_count > 0

    def start(self, connection_id: str, total_puzzle_count: int) -> GamePhase:
        gm = self.registry.require_game_master(connection_id)
        if self.state.phase is not Phase.LOBBY:
            raise InvalidTransition(self.state.phase.value, 'start')
        self.state = GamePhase(
            phase=Phase.RUNNING,
            started_at=int(self._clock() * 1000),
            total_puzzle_count=max(1, total_puzzle_count),
        )
        logger.info(f"[start] by pid={gm.persistent_id} puzzles={self.state.total_puzzle_count}")
        return self.state

    def end(self, connection_id: str) -> GamePhase:
        gm = self.registry.require_game_master(connection_id)
        if self.state.phase is not Phase.RUNNING:
            raise InvalidTransition(self.state.phase.value, 'end')
        # Puzzle count stays so result screens can still show "X of Y"
        self.state = GamePhase(phase=Phase.ENDED, started_at=None, total_puzzle_count=self.state.total_puzzle_count)
        logger.info(f"[end] by pid={gm.persistent_id}")
        return self.state

    def reset(self, connection_id: str) -> GamePhase:
        """Return to the lobby from any phase and clear every player."""
        self.registry.reset_all(connection_id)
        self.state = GamePhase()
        return self.state
