from flask import request

from lumi import socketio
from lumi.services import protocol
from lumi.services.broadcaster import EventBroadcaster

INBOUND_EVENTS = (
    protocol.JOIN,
    protocol.READY,
    protocol.PROGRESS,
    protocol.COMPLETE,
    protocol.START,
    protocol.END,
    protocol.RESET,
)


def _get_sid() -> str:
    return request.sid  # type: ignore[attr-defined]


def _make_handler(broadcaster: EventBroadcaster, kind: str):
    def handler(data=None):
        broadcaster.handle(_get_sid(), kind, data)
    handler.__name__ = f"handle_{kind.replace(':', '_')}"
    return handler


def register_socketio_handlers(broadcaster: EventBroadcaster, namespace: str = '/') -> None:
    """Bind Socket.IO events on ``namespace`` to the given broadcaster."""

    def handle_connect(auth=None):
        broadcaster.connect(_get_sid())

    def handle_disconnect(reason=None):
        broadcaster.disconnect(_get_sid())

    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    for kind in INBOUND_EVENTS:
        socketio.on_event(kind, _make_handler(broadcaster, kind), namespace=namespace)
