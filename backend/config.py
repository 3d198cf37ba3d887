import os


def _env_flag(name, default='0'):
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
    # Comma separated, or '*' for any origin
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    # Round timers (seconds)
    ROUND_DURATION_SEC = int(os.environ.get('ROUND_DURATION_SEC', '10'))
    GRACE_DURATION_SEC = int(os.environ.get('GRACE_DURATION_SEC', '5'))
    POINTS_PER_CORRECT = int(os.environ.get('POINTS_PER_CORRECT', '1'))
    # Close a round as soon as every connected player has answered
    END_ROUND_WHEN_ALL_ANSWERED = _env_flag('END_ROUND_WHEN_ALL_ANSWERED')
    # Optional JSON question bank; the built-in questions are used when unset
    TRIVIA_QUESTIONS_FILE = os.environ.get('TRIVIA_QUESTIONS_FILE') or None
    # Optional werkzeug password hash; when set, start/stop must carry a matching key
    TRIVIA_ADMIN_KEY_HASH = os.environ.get('TRIVIA_ADMIN_KEY_HASH') or None
