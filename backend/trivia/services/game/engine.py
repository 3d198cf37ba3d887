import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .ledger import ScoreLedger
from .questions import QuestionBank
from .registry import PlayerRegistry

logger = logging.getLogger(__name__)

# Outbound wire events
EVT_NEW_QUESTION = 'trivia:new_question'
EVT_TIMER_UPDATE = 'trivia:timer_update'
EVT_ROUND_END = 'trivia:round_end'
EVT_GAME_OVER = 'trivia:game_over'
EVT_STOPPED = 'trivia:stopped'

# Timer kinds
TIMER_TICK = 'tick'
TIMER_EXPIRY = 'expiry'
TIMER_GRACE = 'grace'

TICK_INTERVAL_SEC = 1


class Phase(str, Enum):
    IDLE = 'idle'
    ROUND_ACTIVE = 'round_active'
    GRACE = 'grace'
    GAME_OVER = 'game_over'


@dataclass(frozen=True)
class Outbound:
    """A message to send. `to=None` means broadcast to every client."""

    event: str
    payload: Any
    to: Optional[str] = None


@dataclass(frozen=True)
class TimerRequest:
    kind: str
    delay: float
    round_id: int


@dataclass
class Transition:
    """Result of feeding one event to the engine.

    Applying it means: cancel pending timers if asked, schedule `timers`,
    then send `messages`, in that order.
    """

    messages: List[Outbound] = field(default_factory=list)
    timers: List[TimerRequest] = field(default_factory=list)
    cancel_timers: bool = False

    def __bool__(self) -> bool:
        return bool(self.messages or self.timers or self.cancel_timers)


@dataclass
class Round:
    round_id: int
    question_index: int
    remaining: int
    active: bool = True
    submissions: Dict[str, int] = field(default_factory=dict)


class RoundEngine:
    """Trivia round lifecycle: idle -> round -> grace -> ... -> game over.

    The engine never does I/O and never touches a clock. Every operation
    returns a Transition describing messages to broadcast and timers to
    (re)schedule; whoever drives the engine feeds timer firings back through
    on_tick / on_expiry / on_grace_elapsed with the round id they were
    requested for. Firings for any other round id are ignored.
    """

    def __init__(
        self,
        bank: QuestionBank,
        ledger: ScoreLedger,
        registry: Optional[PlayerRegistry] = None,
        round_duration: int = 10,
        grace_duration: int = 5,
        points_per_correct: int = 1,
        end_when_all_answered: bool = False,
    ) -> None:
        self.bank = bank
        self.ledger = ledger
        self.registry = registry
        self.round_duration = int(round_duration)
        self.grace_duration = int(grace_duration)
        self.points_per_correct = int(points_per_correct)
        self.end_when_all_answered = end_when_all_answered
        if self.round_duration <= 0:
            raise ValueError(f"round_duration must be positive, got {round_duration}")
        if self.grace_duration < 0:
            raise ValueError(f"grace_duration must not be negative, got {grace_duration}")
        if self.points_per_correct < 0:
            raise ValueError(f"points_per_correct must not be negative, got {points_per_correct}")

        self.phase = Phase.IDLE
        self.question_index = -1
        self.current_round: Optional[Round] = None
        self._round_seq = 0

    # ---- commands ----

    def start(self) -> Transition:
        if self.phase in (Phase.ROUND_ACTIVE, Phase.GRACE):
            logger.info(f"[start-ignored] phase={self.phase.value} question={self.question_index}")
            return Transition()
        logger.info(f"[game-start] questions={len(self.bank)}")
        self.ledger.clear()
        self.question_index = -1
        return self._advance()

    def stop(self) -> Transition:
        if self.phase not in (Phase.ROUND_ACTIVE, Phase.GRACE):
            return Transition()
        logger.info(f"[game-stop] phase={self.phase.value} question={self.question_index}")
        snapshot = self.ledger.snapshot_sorted_descending()
        self._reset(Phase.IDLE)
        return Transition(
            messages=[Outbound(EVT_STOPPED, {'scores': _pairs(snapshot)})],
            cancel_timers=True,
        )

    def submit(self, player_id: str, option) -> Transition:
        rnd = self.current_round
        if self.phase != Phase.ROUND_ACTIVE or rnd is None or not rnd.active:
            logger.debug(f"[answer-drop] player={player_id} reason=no-active-round")
            return Transition()
        if not self._valid_option(option, rnd.question_index):
            logger.debug(f"[answer-drop] player={player_id} reason=invalid-option option={option!r}")
            return Transition()
        if player_id in rnd.submissions:
            logger.debug(f"[answer-drop] player={player_id} reason=duplicate round={rnd.round_id}")
            return Transition()

        rnd.submissions[player_id] = option
        logger.debug(f"[answer] player={player_id} round={rnd.round_id} option={option}")

        if self.end_when_all_answered and self._everyone_answered(rnd):
            logger.info(f"[round-early-close] round={rnd.round_id} answers={len(rnd.submissions)}")
            return self._close_round(rnd)
        return Transition()

    # ---- timer hooks ----

    def on_tick(self, round_id: int) -> Transition:
        rnd = self._live_round(round_id)
        if rnd is None:
            return Transition()
        rnd.remaining = max(0, rnd.remaining - TICK_INTERVAL_SEC)
        result = Transition(messages=[Outbound(EVT_TIMER_UPDATE, rnd.remaining)])
        if rnd.remaining > 0:
            result.timers.append(TimerRequest(TIMER_TICK, TICK_INTERVAL_SEC, rnd.round_id))
        return result

    def on_expiry(self, round_id: int) -> Transition:
        rnd = self._live_round(round_id)
        if rnd is None:
            logger.info(f"[timer-abort] kind=expiry round={round_id} phase={self.phase.value}")
            return Transition()
        return self._close_round(rnd)

    def on_grace_elapsed(self, round_id: int) -> Transition:
        rnd = self.current_round
        if self.phase != Phase.GRACE or rnd is None or rnd.round_id != round_id:
            logger.info(f"[timer-abort] kind=grace round={round_id} phase={self.phase.value}")
            return Transition()
        return self._advance()

    def on_player_left(self) -> Transition:
        """Re-check early close once someone disconnects mid-round."""
        rnd = self.current_round
        if not self.end_when_all_answered or self.phase != Phase.ROUND_ACTIVE or rnd is None or not rnd.active:
            return Transition()
        if not self._everyone_answered(rnd):
            return Transition()
        logger.info(f"[round-early-close] round={rnd.round_id} answers={len(rnd.submissions)} reason=player-left")
        return self._close_round(rnd)

    # ---- queries ----

    def snapshot(self) -> dict:
        rnd = self.current_round
        question = None
        if self.phase == Phase.ROUND_ACTIVE and rnd is not None:
            question = self.bank[rnd.question_index].to_payload(rnd.question_index, len(self.bank))
        return {
            'phase': self.phase.value,
            'question': question,
            'index': self.question_index,
            'total': len(self.bank),
            'remaining': rnd.remaining if rnd is not None and rnd.active else None,
            'scores': _pairs(self.ledger.snapshot_sorted_descending()),
        }

    # ---- internals ----

    def _advance(self) -> Transition:
        self.question_index += 1
        if self.question_index >= len(self.bank):
            final = self.ledger.snapshot_sorted_descending()
            logger.info(f"[game-over] questions={len(self.bank)} players_scored={len(final)}")
            self._reset(Phase.GAME_OVER)
            return Transition(
                messages=[Outbound(EVT_GAME_OVER, _pairs(final))],
                cancel_timers=True,
            )

        self._round_seq += 1
        rnd = Round(
            round_id=self._round_seq,
            question_index=self.question_index,
            remaining=self.round_duration,
        )
        self.current_round = rnd
        self.phase = Phase.ROUND_ACTIVE
        question = self.bank[self.question_index]
        logger.info(
            f"[round-start] round={rnd.round_id} question={self.question_index + 1}/{len(self.bank)} "
            f"duration={self.round_duration}s"
        )
        return Transition(
            messages=[Outbound(EVT_NEW_QUESTION, question.to_payload(self.question_index, len(self.bank)))],
            timers=[
                TimerRequest(TIMER_TICK, TICK_INTERVAL_SEC, rnd.round_id),
                TimerRequest(TIMER_EXPIRY, self.round_duration, rnd.round_id),
            ],
            cancel_timers=True,
        )

    def _close_round(self, rnd: Round) -> Transition:
        # Window closes before scoring so nothing can slip in afterwards
        rnd.active = False
        self.phase = Phase.GRACE
        question = self.bank[rnd.question_index]
        correct = 0
        for player_id, option in rnd.submissions.items():
            if option == question.answer:
                self.ledger.increment(player_id, self.points_per_correct)
                correct += 1
            else:
                self.ledger.increment(player_id, 0)
        logger.info(
            f"[round-end] round={rnd.round_id} answers={len(rnd.submissions)} correct={correct} "
            f"grace={self.grace_duration}s"
        )
        return Transition(
            messages=[Outbound(EVT_ROUND_END, {
                'answer': question.answer,
                'scores': _pairs(self.ledger.snapshot_sorted_descending()),
            })],
            timers=[TimerRequest(TIMER_GRACE, self.grace_duration, rnd.round_id)],
            cancel_timers=True,
        )

    def _reset(self, phase: Phase) -> None:
        self.phase = phase
        self.current_round = None
        self.question_index = -1
        self.ledger.clear()

    def _live_round(self, round_id: int) -> Optional[Round]:
        rnd = self.current_round
        if self.phase != Phase.ROUND_ACTIVE or rnd is None or not rnd.active or rnd.round_id != round_id:
            return None
        return rnd

    def _valid_option(self, option, question_index: int) -> bool:
        if isinstance(option, bool) or not isinstance(option, int):
            return False
        return 0 <= option < len(self.bank[question_index].options)

    def _everyone_answered(self, rnd: Round) -> bool:
        if self.registry is None or len(self.registry) == 0:
            return False
        return self.registry.ids() <= set(rnd.submissions)


def _pairs(snapshot):
    return [[player_id, score] for player_id, score in snapshot]
