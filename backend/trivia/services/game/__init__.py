"""Trivia game services: players, scores, questions, rounds and timers.

Nothing in this package imports Flask or Socket.IO; the gateway talks to
the transport through the small Emitter and Scheduler interfaces so the
round logic can be driven entirely from tests.
"""

from .context import TriviaContext, build_context
from .engine import Phase, RoundEngine
from .gateway import SocketIOEmitter, TriviaGateway
from .ledger import ScoreLedger
from .questions import Question, QuestionBank, QuestionBankError
from .registry import Player, PlayerRegistry
from .scheduler import BackgroundTaskScheduler, ManualScheduler
