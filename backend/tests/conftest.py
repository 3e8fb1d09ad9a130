import os
import random
import sys
import pytest

# Ensure the backend root (containing the `bluffbridge` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from bluffbridge import create_app, socketio
from bluffbridge.models import DIE_FACES, GamePlayer, Game, Rules, Seat
from bluffbridge.registry import Broadcaster, RoomRegistry
from bluffbridge.services.games import turns


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SOCKETIO_NAMESPACE = '/ws'
    CORS_ORIGINS = []
    SHUFFLE_SEATS = False
    RNG_SEED = 1234


class RecordingBroadcaster(Broadcaster):
    """Keeps everything the registry sends out, for assertions."""

    def __init__(self):
        self.updates = []
        self.private = []
        self.subscriptions = {}

    def subscribe(self, sid, code):
        self.subscriptions[sid] = code

    def unsubscribe(self, sid, code):
        self.subscriptions.pop(sid, None)

    def room_update(self, code, snapshot):
        self.updates.append((code, snapshot))

    def private_roll(self, sid, roll):
        self.private.append((sid, roll))

    @property
    def last(self):
        return self.updates[-1][1]


class ScriptedDice(random.Random):
    """Die rolls come from ``faces`` in order; everything else is seeded."""

    def __init__(self, faces=()):
        super().__init__(0)
        self.faces = list(faces)

    def choice(self, seq):
        if self.faces and tuple(seq) == DIE_FACES:
            return self.faces.pop(0)
        return super().choice(seq)


def make_game(names=('A', 'B'), rules=None) -> Game:
    seats = [Seat(sid=name.lower(), name=name, color=f"#00000{idx}") for idx, name in enumerate(names)]
    return turns.new_game(seats, rules or Rules())


def make_player(pid='a', reserve=7, on_bridge=None, eliminated=0) -> GamePlayer:
    return GamePlayer(id=pid, name=pid.upper(), color='#000000', reserve=reserve, on_bridge=on_bridge, eliminated=eliminated)


@pytest.fixture()
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture()
def dice():
    return ScriptedDice()


@pytest.fixture()
def registry(broadcaster, dice):
    return RoomRegistry(broadcaster=broadcaster, rng_factory=lambda: dice, seed=99, shuffle_seats=False)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    clients = []

    def connect():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace='/ws'
        )
        # Flush the initial 'connected' event
        test_client.get_received('/ws')
        clients.append(test_client)
        return test_client

    yield connect
    for test_client in clients:
        try:
            if test_client.is_connected('/ws'):
                test_client.disconnect(namespace='/ws')
        except Exception:
            pass
