import os
import sys
import pytest

# Ensure the backend root (containing the `signull` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from signull import create_app, db, socketio
from signull.services.game.state import Phase, PlayMode, Player, Role, Room, Settings


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    MIN_PLAYERS = 2
    DIRECT_GUESS_BUDGET = 3
    TXN_MAX_RETRIES = 3


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import signull.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    if test_client.is_connected('/ws'):
        test_client.disconnect(namespace='/ws')


def build_room(secret_word='OXYGEN', phase=Phase.SIGNULLS, guessers=('A', 'B', 'C', 'D'), **settings):
    """Setter S (also host) plus the given guessers, joined in that order."""
    if isinstance(settings.get('play_mode'), str):
        settings['play_mode'] = PlayMode(settings['play_mode'])
    room = Room(code='BAKU42', phase=phase, secret_word=secret_word, settings=Settings(**settings))
    room.players['S'] = Player(id='S', name='Sam', role=Role.SETTER, joined_at=0.0)
    for i, pid in enumerate(guessers, start=1):
        room.players[pid] = Player(id=pid, name=f'Player {pid}', joined_at=float(i))
    room.host_id = 'S'
    room.setter_id = 'S'
    room.direct_guesses_left = room.settings.direct_guesses
    return room


@pytest.fixture()
def room_factory():
    return build_room


def _assert_scores_reconcile(room):
    for pid, player in room.players.items():
        assert player.score == sum(e.delta for e in room.score_events if e.player_id == pid)


@pytest.fixture()
def check_scores():
    return _assert_scores_reconcile
