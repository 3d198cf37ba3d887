import random
from dataclasses import dataclass
from typing import Optional

from .engine import RoundEngine
from .ledger import ScoreLedger
from .questions import QuestionBank, default_question_bank, load_question_bank
from .registry import PlayerRegistry


@dataclass
class TriviaContext:
    """Everything one trivia game owns. One per app, handed to the gateway."""

    registry: PlayerRegistry
    ledger: ScoreLedger
    bank: QuestionBank
    engine: RoundEngine


def build_context(config, bank: Optional[QuestionBank] = None, rng: Optional[random.Random] = None) -> TriviaContext:
    """Build a context from a Flask config mapping (or any dict-like)."""
    if bank is None:
        path = config.get('TRIVIA_QUESTIONS_FILE')
        bank = load_question_bank(path) if path else default_question_bank()
    registry = PlayerRegistry(rng=rng)
    ledger = ScoreLedger()
    engine = RoundEngine(
        bank,
        ledger,
        registry=registry,
        round_duration=int(config.get('ROUND_DURATION_SEC', 10)),
        grace_duration=int(config.get('GRACE_DURATION_SEC', 5)),
        points_per_correct=int(config.get('POINTS_PER_CORRECT', 1)),
        end_when_all_answered=bool(config.get('END_ROUND_WHEN_ALL_ANSWERED', False)),
    )
    return TriviaContext(registry=registry, ledger=ledger, bank=bank, engine=engine)
