from flask import Blueprint, current_app, jsonify

trivia_api = Blueprint('trivia_api', __name__)


def _gateway():
    return current_app.extensions['trivia']


@trivia_api.route('/state', methods=['GET'])
def get_state():
    """Same snapshot a joining socket receives, plus the player list."""
    return jsonify(_gateway().snapshot())


@trivia_api.route('/questions', methods=['GET'])
def get_question_count():
    # Only the count; the questions themselves would give the answers away
    return jsonify({'total': len(_gateway().context.bank)})
