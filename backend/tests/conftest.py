import os
import sys
import pytest

# Ensure the backend root (containing the `pianovs` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from pianovs import create_app, get_registry, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    TARGET_WORD = 'MAGIC'
    CORS_ORIGINS = ['http://localhost:5173']
    LOG_LEVEL = 'DEBUG'


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def registry(flask_app):
    return get_registry(flask_app)


@pytest.fixture()
def make_sio_client(flask_app):
    created = []

    def _make():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace='/ws'
        )
        created.append(test_client)
        return test_client

    yield _make
    for test_client in created:
        try:
            if test_client.is_connected('/ws'):
                test_client.disconnect(namespace='/ws')
        except Exception:
            pass


def received_messages(sio_client):
    """Drain a test client's queue and return the JSON payloads of 'message' events."""
    messages = []
    for pkt in sio_client.get_received('/ws'):
        if pkt['name'] != 'message':
            continue
        args = pkt['args']
        messages.append(args[0] if isinstance(args, list) else args)
    return messages


def send(sio_client, payload):
    sio_client.emit('message', payload, namespace='/ws')
