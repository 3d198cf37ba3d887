import logging
import threading
from typing import Any, Dict, List, Optional

from werkzeug.security import check_password_hash

from .context import TriviaContext
from .engine import (
    TIMER_EXPIRY,
    TIMER_GRACE,
    TIMER_TICK,
    TimerRequest,
    Transition,
)
from .scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

EVT_PLAYERS = 'players:update'
EVT_STATE = 'trivia:state'


class Emitter:
    def emit(self, event: str, payload: Any, to: Optional[str] = None) -> None:
        raise NotImplementedError


class SocketIOEmitter(Emitter):
    """Fire-and-forget emits on one Socket.IO namespace."""

    def __init__(self, socketio, namespace: str = '/') -> None:
        self.socketio = socketio
        self.namespace = namespace

    def emit(self, event, payload, to=None):
        try:
            self.socketio.emit(event, payload, to=to, namespace=self.namespace)
        except Exception:
            logger.exception(f"[emit-error] event={event} to={to or '*'}")


class TriviaGateway:
    """Routes inbound client events and timer firings into the game.

    Every entry point takes the same lock, so connection events, answers and
    timers are handled one at a time, each running to completion. Outbound
    messages go out through the emitter after the state change is applied.
    """

    def __init__(self, context: TriviaContext, emitter: Emitter, scheduler: Scheduler,
                 admin_key_hash: Optional[str] = None) -> None:
        self.context = context
        self.emitter = emitter
        self.scheduler = scheduler
        self.admin_key_hash = admin_key_hash
        self._lock = threading.RLock()
        self._pending: Dict[TimerRequest, TimerHandle] = {}

    @property
    def engine(self):
        return self.context.engine

    # ---- inbound client events ----

    def handle_join(self, sid: str, data=None):
        name, color = _parse_join(data)
        with self._lock:
            player = self.context.registry.register(sid, name, color)
            logger.info(f"[join] sid={sid} name={player.name!r} players={len(self.context.registry)}")
            self.emitter.emit(EVT_STATE, self._state(), to=sid)
            self._broadcast_players()
            return player

    def handle_disconnect(self, sid: str) -> None:
        with self._lock:
            player = self.context.registry.unregister(sid)
            if player is None:
                return
            logger.info(f"[leave] sid={sid} name={player.name!r} players={len(self.context.registry)}")
            self._broadcast_players()
            self._apply(self.engine.on_player_left())

    def handle_submit(self, sid: str, data) -> None:
        option = _parse_answer(data)
        if option is None:
            logger.debug(f"[answer-drop] sid={sid} reason=malformed payload={data!r}")
            return
        with self._lock:
            self._apply(self.engine.submit(sid, option))

    def handle_start(self, sid: str, data=None) -> None:
        if not self._authorized(sid, data, 'start'):
            return
        with self._lock:
            self._apply(self.engine.start())

    def handle_stop(self, sid: str, data=None) -> None:
        if not self._authorized(sid, data, 'stop'):
            return
        with self._lock:
            self._apply(self.engine.stop())

    # ---- timers ----

    def handle_timer(self, request: TimerRequest) -> None:
        with self._lock:
            if self._pending.pop(request, None) is None:
                # cancelled after it had already woken up
                logger.debug(f"[timer-skip] kind={request.kind} round={request.round_id}")
                return
            if request.kind == TIMER_TICK:
                result = self.engine.on_tick(request.round_id)
            elif request.kind == TIMER_EXPIRY:
                result = self.engine.on_expiry(request.round_id)
            elif request.kind == TIMER_GRACE:
                result = self.engine.on_grace_elapsed(request.round_id)
            else:
                logger.warning(f"[timer-unknown] kind={request.kind}")
                return
            self._apply(result)

    def pending_timers(self) -> List[TimerRequest]:
        with self._lock:
            return list(self._pending)

    # ---- queries ----

    def snapshot(self) -> dict:
        with self._lock:
            state = self._state()
            state['players'] = self.context.registry.to_list()
            return state

    # ---- internals ----

    def _apply(self, result: Transition) -> None:
        if result.cancel_timers:
            self._cancel_all()
        for request in result.timers:
            self._pending[request] = self.scheduler.call_later(request.delay, self.handle_timer, request)
            logger.debug(f"[timer-set] kind={request.kind} round={request.round_id} delay={request.delay}s")
        for message in result.messages:
            self.emitter.emit(message.event, message.payload, to=message.to)

    def _cancel_all(self) -> None:
        for request, handle in self._pending.items():
            self.scheduler.cancel(handle)
            logger.debug(f"[timer-cancel] kind={request.kind} round={request.round_id}")
        self._pending.clear()

    def _broadcast_players(self) -> None:
        self.emitter.emit(EVT_PLAYERS, self.context.registry.to_list())

    def _state(self) -> dict:
        return self.engine.snapshot()

    def _authorized(self, sid: str, data, action: str) -> bool:
        if not self.admin_key_hash:
            return True
        key = data.get('key') if isinstance(data, dict) else None
        if isinstance(key, str) and check_password_hash(self.admin_key_hash, key):
            return True
        logger.warning(f"[admin-denied] sid={sid} action={action}")
        return False


def _parse_join(data):
    if isinstance(data, str) or data is None:
        return data, None
    if isinstance(data, dict):
        return data.get('name'), data.get('color')
    return None, None


def _parse_answer(data) -> Optional[int]:
    if isinstance(data, dict):
        data = data.get('answer')
    if isinstance(data, bool) or not isinstance(data, int):
        return None
    return data
