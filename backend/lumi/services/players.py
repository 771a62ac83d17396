import logging
import time
from typing import Callable, Dict, List, Optional

from lumi.exceptions import NotGameMaster, UnknownConnection
from lumi.models import Participant, PuzzleResult, Role

logger = logging.getLogger(__name__)


class PlayerRegistry:
    """Authoritative store of participants, keyed by persistent id.

    A participant survives reconnects: a new connection joining with a known
    persistent id takes over the record, and the connection it supersedes no
    longer resolves to anyone. At most one live connection is bound to a
    participant at any time.

    The registry never talks to connections. Callers decide what to broadcast
    after a mutation returns.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._participants: Dict[str, Participant] = {}
        self._pid_by_sid: Dict[str, str] = {}
        self._sid_by_pid: Dict[str, str] = {}

    def _now(self) -> int:
        return int(self._clock() * 1000)

    # ---- lookups ----

    def __len__(self) -> int:
        return len(self._participants)

    def __contains__(self, persistent_id) -> bool:
        return persistent_id in self._participants

    def get(self, persistent_id: str) -> Optional[Participant]:
        return self._participants.get(persistent_id)

    def roster(self) -> List[Participant]:
        """All participants in join order."""
        return list(self._participants.values())

    def connection_for(self, persistent_id: str) -> Optional[str]:
        return self._sid_by_pid.get(persistent_id)

    def resolve(self, connection_id: str) -> Participant:
        pid = self._pid_by_sid.get(connection_id)
        if pid is None or pid not in self._participants:
            raise UnknownConnection(connection_id)
        return self._participants[pid]

    def require_game_master(self, connection_id: str) -> Participant:
        participant = self.resolve(connection_id)
        if not participant.is_game_master:
            raise NotGameMaster(participant.persistent_id)
        return participant

    # ---- binding ----

    def _bind(self, connection_id: str, persistent_id: str, retain_players: bool) -> None:
        # A connection re-joining under another id releases its previous participant,
        # which is kept or dropped by the same rule as a disconnect
        previous_pid = self._pid_by_sid.get(connection_id)
        if previous_pid is not None and previous_pid != persistent_id:
            self._sid_by_pid.pop(previous_pid, None)
            released = self._participants.get(previous_pid)
            if released is not None:
                released.online = False
                if released.is_game_master or not retain_players:
                    del self._participants[previous_pid]
                    logger.info(f"[release] pid={previous_pid} sid={connection_id} removed")
                else:
                    logger.info(f"[release] pid={previous_pid} sid={connection_id} kept offline")

        superseded = self._sid_by_pid.get(persistent_id)
        if superseded is not None and superseded != connection_id:
            self._pid_by_sid.pop(superseded, None)
            logger.info(f"[supersede] pid={persistent_id} old_sid={superseded} new_sid={connection_id}")

        self._pid_by_sid[connection_id] = persistent_id
        self._sid_by_pid[persistent_id] = connection_id

    def _unbind(self, connection_id: str) -> Optional[str]:
        pid = self._pid_by_sid.pop(connection_id, None)
        if pid is not None and self._sid_by_pid.get(pid) == connection_id:
            del self._sid_by_pid[pid]
        return pid

    # ---- mutations ----

    def join(
        self,
        connection_id: str,
        persistent_id: str,
        display_name: str,
        is_game_master: bool = False,
        retain_players: bool = True,
    ) -> Participant:
        """Create or reclaim a participant and bind it to ``connection_id``.

        ``retain_players`` decides the fate of a participant this connection
        was previously bound to, exactly as for ``disconnect``.
        """
        participant = self._participants.get(persistent_id)
        if participant is None:
            participant = Participant(
                persistent_id=persistent_id,
                display_name=display_name,
                role=Role.GAME_MASTER if is_game_master else Role.PLAYER,
                last_update_timestamp=self._now(),
            )
            self._participants[persistent_id] = participant
            logger.info(f"[join] pid={persistent_id} name={display_name} role={participant.role.value} sid={connection_id}")
        else:
            # Reconnect keeps progress and role
            participant.online = True
            participant.display_name = display_name
            participant.last_update_timestamp = self._now()
            logger.info(f"[rejoin] pid={persistent_id} name={display_name} sid={connection_id}")
        self._bind(connection_id, persistent_id, retain_players)
        return participant

    def set_ready(self, connection_id: str, ready: bool) -> Participant:
        participant = self.resolve(connection_id)
        participant.ready_to_advance = ready
        participant.last_update_timestamp = self._now()
        return participant

    def update_progress(self, connection_id: str, puzzle_index: int, move_count: int, score: int, total_time_seconds: int) -> Participant:
        """Overwrite live progress. Last write wins; nothing is accumulated."""
        participant = self.resolve(connection_id)
        participant.current_puzzle_index = puzzle_index
        participant.current_move_count = move_count
        participant.cumulative_score = score
        participant.cumulative_time_seconds = total_time_seconds
        participant.last_update_timestamp = self._now()
        return participant

    def record_completion(
        self,
        connection_id: str,
        completed_count: int,
        cumulative_score: int,
        cumulative_time: int,
        current_puzzle_index: int,
        puzzle_index: int,
        puzzle_score: int,
        puzzle_time: Optional[int] = None,
        puzzle_moves: Optional[int] = None,
    ) -> Participant:
        """Store client-summed totals and the result for one puzzle.

        Totals are taken as reported. The per-puzzle result replaces any earlier
        result for the same ``puzzle_index``.
        """
        participant = self.resolve(connection_id)
        participant.completed_puzzle_count = completed_count
        participant.cumulative_score = cumulative_score
        participant.cumulative_time_seconds = cumulative_time
        participant.current_puzzle_index = current_puzzle_index
        participant.results[puzzle_index] = PuzzleResult(
            puzzle_index=puzzle_index,
            score=puzzle_score,
            time_seconds=puzzle_time or 0,
            move_count=participant.current_move_count if puzzle_moves is None else puzzle_moves,
        )
        participant.last_update_timestamp = self._now()
        logger.info(
            f"[complete] pid={participant.persistent_id} puzzle={puzzle_index} "
            f"puzzle_score={puzzle_score} total={cumulative_score}"
        )
        return participant

    def disconnect(self, connection_id: str, retain_players: bool) -> Participant:
        """Mark the bound participant offline, or drop them.

        Players are kept (offline) when ``retain_players`` is set, so results
        survive a dropped link once a round has started. Game masters are
        always removed.
        """
        participant = self.resolve(connection_id)
        self._unbind(connection_id)
        participant.online = False
        participant.last_update_timestamp = self._now()
        if participant.is_game_master or not retain_players:
            del self._participants[participant.persistent_id]
            logger.info(f"[disconnect] pid={participant.persistent_id} removed")
        else:
            logger.info(f"[disconnect] pid={participant.persistent_id} kept offline")
        return participant

    def reset_all(self, requesting_connection_id: str) -> Participant:
        """Drop every player and zero the game masters' progress in place."""
        requester = self.require_game_master(requesting_connection_id)
        for pid, participant in list(self._participants.items()):
            if participant.is_game_master:
                participant.reset_progress()
                participant.last_update_timestamp = self._now()
            else:
                del self._participants[pid]

        self._pid_by_sid = {requesting_connection_id: requester.persistent_id}
        self._sid_by_pid = {requester.persistent_id: requesting_connection_id}
        for participant in self._participants.values():
            if participant is not requester:
                participant.online = False
        logger.info(f"[reset] by pid={requester.persistent_id} kept={len(self._participants)}")
        return requester
