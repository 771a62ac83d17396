import os
import sys
import pytest

# Ensure the backend root (containing the `lumi` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from lumi import create_app, socketio
from lumi.services.broadcaster import EventBroadcaster, Transport
from lumi.services.game import GameStateMachine
from lumi.services.players import PlayerRegistry


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = ['*']
    SOCKETIO_PATH = 'api/socketio'
    SOCKETIO_NAMESPACE = '/'
    DEFAULT_TOTAL_PUZZLES = 5
    MAX_IMAGE_BYTES = 1024
    ALLOWED_IMAGE_TYPES = ('image/jpeg', 'image/png', 'image/webp')
    IMAGE_SET = 'default'
    LOG_LEVEL = 'DEBUG'


class FakeClock:
    def __init__(self, start=1_700_000_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class RecordingTransport(Transport):
    """Collects every delivery as (connection_id, event, payload)."""

    def __init__(self):
        self.sent = []
        self.broken = set()

    def send(self, connection_id, event, payload):
        if connection_id in self.broken:
            raise ConnectionError(f"{connection_id} is gone")
        self.sent.append((connection_id, event, payload))

    def events_for(self, connection_id):
        return [(event, payload) for sid, event, payload in self.sent if sid == connection_id]

    def names_for(self, connection_id):
        return [event for event, _ in self.events_for(connection_id)]

    def clear(self):
        self.sent.clear()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def registry(clock):
    return PlayerRegistry(clock=clock)


@pytest.fixture()
def game(registry, clock):
    return GameStateMachine(registry, clock=clock)


@pytest.fixture()
def transport():
    return RecordingTransport()


@pytest.fixture()
def broadcaster(registry, game, transport):
    hub = EventBroadcaster(registry, game, transport, default_total_puzzles=5)
    for sid in ('sid-a', 'sid-b', 'sid-gm'):
        hub.connect(sid)
    return hub


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    yield application


@pytest.fixture()
def app_factory():
    return lambda: create_app(TestConfig)


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def make():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(test_client)
        return test_client

    yield make
    for test_client in clients:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except RuntimeError:
            pass
