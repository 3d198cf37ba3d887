from flask import current_app, request
from flask_socketio import emit

from trivia import socketio
from trivia.services.game import TriviaGateway


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _handle_error(exc):
    # Nothing a client sends is allowed to surface as an error on its socket
    current_app.logger.exception(f"[socket-error] sid={_get_sid()}: {exc}")


def register_socketio_handlers(gateway: TriviaGateway, namespace: str = '/') -> None:
    """Bind the trivia wire events to `gateway` on `namespace`.

    The connection sid is the player's identity for the lifetime of the
    socket.
    """

    def handle_connect(auth=None):
        current_app.logger.info(f"[connect] sid={_get_sid()}")
        emit('connected', {'sid': _get_sid()})

    def handle_disconnect(reason=None):
        current_app.logger.info(f"[disconnect] sid={_get_sid()} reason={reason}")
        gateway.handle_disconnect(_get_sid())

    def handle_join(data=None):
        gateway.handle_join(_get_sid(), data)

    def handle_submit_answer(data=None):
        gateway.handle_submit(_get_sid(), data)

    def handle_start(data=None):
        gateway.handle_start(_get_sid(), data)

    def handle_stop(data=None):
        gateway.handle_stop(_get_sid(), data)

    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('player:join', handle_join, namespace=namespace)
    socketio.on_event('trivia:submit_answer', handle_submit_answer, namespace=namespace)
    socketio.on_event('trivia:start', handle_start, namespace=namespace)
    socketio.on_event('trivia:stop', handle_stop, namespace=namespace)
    socketio.on_error_default(_handle_error)
