import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from lumi.exceptions import LumiError, MalformedMessage
from lumi.services import protocol
from lumi.services.game import GameStateMachine
from lumi.services.players import PlayerRegistry

logger = logging.getLogger(__name__)

DISCONNECT = 'disconnect'


@dataclass(frozen=True)
class Event:
    """One outbound message. ``to`` is a connection id, or None for everyone."""

    name: str
    payload: Any = None
    to: Optional[str] = None


class Transport:
    """Delivers one event to one connection."""

    def send(self, connection_id: str, event: str, payload: Any) -> None:
        raise NotImplementedError


class SocketIOTransport(Transport):
    def __init__(self, socketio, namespace: str = '/'):
        self.socketio = socketio
        self.namespace = namespace

    def send(self, connection_id, event, payload):
        if payload is None:
            self.socketio.emit(event, to=connection_id, namespace=self.namespace)
        else:
            self.socketio.emit(event, payload, to=connection_id, namespace=self.namespace)


class EventBroadcaster:
    """Single owner of inbound dispatch and outbound fan-out.

    Each inbound message is handled under one lock, from parsing through the
    last delivered event, so two messages never interleave. A message that is
    malformed, comes from an unbound connection, or asks for something the
    sender may not do is dropped without a reply.

    Any message that changes participants produces a full roster snapshot for
    every connection. Discrete notices go out after that snapshot, except on
    reset, where the reset notice precedes the emptied roster.
    """

    def __init__(self, registry: PlayerRegistry, game: GameStateMachine, transport: Transport, default_total_puzzles: int = 5):
        self.registry = registry
        self.game = game
        self.transport = transport
        self.default_total_puzzles = default_total_puzzles
        self.lock = threading.Lock()
        # Insertion ordered set of open connections
        self._connections: Dict[str, None] = {}
        self._handlers = {
            protocol.JOIN: self._on_join,
            protocol.READY: self._on_ready,
            protocol.PROGRESS: self._on_progress,
            protocol.COMPLETE: self._on_complete,
            protocol.START: self._on_start,
            protocol.END: self._on_end,
            protocol.RESET: self._on_reset,
            DISCONNECT: self._on_disconnect,
        }

    @property
    def connections(self) -> List[str]:
        return list(self._connections)

    # ---- entry points ----

    def connect(self, connection_id: str) -> None:
        with self.lock:
            self._connections[connection_id] = None
        logger.debug(f"[connect] sid={connection_id}")

    def disconnect(self, connection_id: str) -> List[Event]:
        with self.lock:
            self._connections.pop(connection_id, None)
            return self._dispatch(connection_id, DISCONNECT, None)

    def handle(self, connection_id: str, kind: str, payload: Any = None) -> List[Event]:
        """Apply one inbound message and deliver what it produced."""
        with self.lock:
            return self._dispatch(connection_id, kind, payload)

    def images_changed(self) -> None:
        with self.lock:
            self._deliver([Event(protocol.IMAGES_UPDATE)])

    def snapshot(self) -> dict:
        with self.lock:
            return {
                'phase': self.game.state.to_dict(),
                'players': self._roster_payload(),
            }

    # ---- internals ----

    def _dispatch(self, connection_id, kind, payload) -> List[Event]:
        handler = self._handlers.get(kind)
        if handler is None:
            logger.warning(f"[drop] unknown kind={kind} sid={connection_id}")
            return []
        try:
            events = handler(connection_id, payload)
        except MalformedMessage as exc:
            logger.warning(f"[drop] sid={connection_id} {exc}")
            return []
        except LumiError as exc:
            logger.debug(f"[drop] kind={kind} sid={connection_id} reason={exc}")
            return []
        self._deliver(events)
        return events

    def _deliver(self, events: List[Event]) -> None:
        for event in events:
            targets = [event.to] if event.to is not None else list(self._connections)
            for connection_id in targets:
                try:
                    self.transport.send(connection_id, event.name, event.payload)
                except Exception as exc:
                    # One broken connection must not starve the others
                    logger.warning(f"[send-failed] event={event.name} sid={connection_id} error={exc!r}")

    def _roster_payload(self) -> list:
        return [p.to_dict() for p in self.registry.roster()]

    def _roster(self) -> Event:
        return Event(protocol.PLAYERS_UPDATE, self._roster_payload())

    def _phase(self, name: str, to: Optional[str] = None) -> Event:
        return Event(name, self.game.state.to_dict(), to=to)

    # ---- handlers ----

    def _on_join(self, connection_id, payload):
        msg = protocol.parse_join(payload)
        self.registry.join(
            connection_id,
            msg.persistent_id or connection_id,
            msg.display_name,
            msg.is_game_master,
            retain_players=self.game.round_has_started,
        )
        return [self._roster(), self._phase(protocol.GAME_STATE, to=connection_id)]

    def _on_ready(self, connection_id, payload):
        ready = protocol.parse_ready(payload)
        self.registry.set_ready(connection_id, ready)
        return [self._roster()]

    def _on_progress(self, connection_id, payload):
        msg = protocol.parse_progress(payload)
        self.registry.update_progress(
            connection_id,
            puzzle_index=msg.puzzle_index,
            move_count=msg.move_count,
            score=msg.score,
            total_time_seconds=msg.total_time_seconds,
        )
        return [self._roster()]

    def _on_complete(self, connection_id, payload):
        msg = protocol.parse_complete(payload)
        participant = self.registry.record_completion(
            connection_id,
            completed_count=msg.completed_count,
            cumulative_score=msg.cumulative_score,
            cumulative_time=msg.cumulative_time,
            current_puzzle_index=msg.current_puzzle_index,
            puzzle_index=msg.puzzle_index,
            puzzle_score=msg.puzzle_score,
            puzzle_time=msg.puzzle_time,
            puzzle_moves=msg.puzzle_moves,
        )
        notice = Event(protocol.PLAYER_COMPLETED, {
            'playerId': participant.persistent_id,
            'playerName': participant.display_name,
            'puzzleIndex': msg.puzzle_index,
            'puzzleScore': msg.puzzle_score,
            'totalScore': participant.cumulative_score,
        })
        return [self._roster(), notice]

    def _on_start(self, connection_id, payload):
        msg = protocol.parse_start(payload)
        requested = msg.total_puzzle_count
        if requested is None:
            requested = self.default_total_puzzles
        self.game.start(connection_id, requested)
        return [self._phase(protocol.GAME_STARTED)]

    def _on_end(self, connection_id, payload):
        self.game.end(connection_id)
        return [self._phase(protocol.GAME_ENDED)]

    def _on_reset(self, connection_id, payload):
        self.game.reset(connection_id)
        return [self._phase(protocol.GAME_RESET), self._roster()]

    def _on_disconnect(self, connection_id, payload):
        self.registry.disconnect(connection_id, retain_players=self.game.round_has_started)
        return [self._roster()]
