import os
import random
import sys
import pytest

# Ensure the backend root (containing the `trivia` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from trivia import create_app, socketio
from trivia.services.game.engine import RoundEngine
from trivia.services.game.gateway import Emitter, TriviaGateway
from trivia.services.game.ledger import ScoreLedger
from trivia.services.game.questions import Question, QuestionBank
from trivia.services.game.registry import PlayerRegistry
from trivia.services.game.context import TriviaContext
from trivia.services.game.scheduler import ManualScheduler


class TestConfig:
    __test__ = False
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    LOG_LEVEL = 'DEBUG'
    CORS_ORIGINS = '*'
    SOCKETIO_NAMESPACE = '/'
    ROUND_DURATION_SEC = 10
    GRACE_DURATION_SEC = 5
    POINTS_PER_CORRECT = 1
    END_ROUND_WHEN_ALL_ANSWERED = False
    TRIVIA_QUESTIONS_FILE = None
    TRIVIA_ADMIN_KEY_HASH = None


class RecordingEmitter(Emitter):
    """Keeps every emitted message in `sent` instead of sending it."""

    def __init__(self):
        self.sent = []

    def emit(self, event, payload, to=None):
        self.sent.append((event, payload, to))

    def events(self, name=None):
        return [payload for event, payload, _ in self.sent if name is None or event == name]

    def clear(self):
        self.sent.clear()


def make_bank(*answers):
    """A bank with one question per correct-answer index given."""
    return QuestionBank(
        Question(prompt=f"Question {i + 1}?", options=('a', 'b', 'c', 'd'), answer=answer)
        for i, answer in enumerate(answers)
    )


@pytest.fixture()
def bank():
    return make_bank(2, 1)


@pytest.fixture()
def registry():
    return PlayerRegistry(rng=random.Random(7))


@pytest.fixture()
def ledger():
    return ScoreLedger()


@pytest.fixture()
def engine(bank, ledger, registry):
    return RoundEngine(bank, ledger, registry=registry, round_duration=10, grace_duration=5)


@pytest.fixture()
def emitter():
    return RecordingEmitter()


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def gateway(engine, bank, ledger, registry, emitter, scheduler):
    context = TriviaContext(registry=registry, ledger=ledger, bank=bank, engine=engine)
    return TriviaGateway(context, emitter, scheduler)


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
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
    )
    yield test_client
    try:
        test_client.disconnect()
    except Exception:
        pass
