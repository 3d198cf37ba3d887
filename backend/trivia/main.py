import time

from flask import Blueprint, jsonify

main = Blueprint('main', __name__)

_started_at = time.monotonic()


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the club trivia server!'})


@main.route('/health')
def health():
    return jsonify({'ok': True, 'uptime': round(time.monotonic() - _started_at, 3)})
