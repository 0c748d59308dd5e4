import os
import sys
import pytest

# Ensure the project root (containing `app.py` and the packages) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from app import create_app
from lobby import SessionRegistry


TEST_CONFIG = {
    'TESTING': True,
    'SECRET_KEY': 'test-secret',
    'SOCKETIO_ASYNC_MODE': 'threading',
    'VOTE_TIMEOUT_SECONDS': 0,
}


class FixedRandom:
    """Random source that always picks the same roster index (modulo size)."""

    def __init__(self, index=0):
        self.index = index

    def randrange(self, n):
        return self.index % n


@pytest.fixture()
def fixed_rng():
    return FixedRandom


@pytest.fixture()
def registry():
    return SessionRegistry(rng=FixedRandom(0))


@pytest.fixture()
def app_and_socketio():
    return create_app(TEST_CONFIG)


@pytest.fixture()
def flask_app(app_and_socketio):
    return app_and_socketio[0]


@pytest.fixture()
def socketio(app_and_socketio):
    return app_and_socketio[1]


@pytest.fixture()
def app_registry(flask_app):
    return flask_app.extensions['session_registry']


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_client(flask_app, socketio):
    """Factory for connected Socket.IO test clients; the connect greeting is flushed."""
    clients = []

    def _make(auth=None):
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            auth=auth
        )
        test_client.get_received()
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except Exception:
            pass
