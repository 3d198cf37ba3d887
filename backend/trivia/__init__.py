from flask import Flask, jsonify
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)


def _allowed_origins(value):
    if not value or value == '*':
        return '*'
    return [origin.strip() for origin in value.split(',') if origin.strip()]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = _allowed_origins(flask_app.config.get('CORS_ORIGINS'))
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Wire the trivia game: context, timers, emitter, gateway
    from trivia.services.game import (
        BackgroundTaskScheduler,
        ManualScheduler,
        SocketIOEmitter,
        TriviaGateway,
        build_context,
    )
    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/')
    context = build_context(flask_app.config)
    # Tests drive virtual time by hand instead of spawning timer tasks
    scheduler = ManualScheduler() if flask_app.config.get('TESTING') else BackgroundTaskScheduler(socketio)
    gateway = TriviaGateway(
        context,
        SocketIOEmitter(socketio, namespace),
        scheduler,
        admin_key_hash=flask_app.config.get('TRIVIA_ADMIN_KEY_HASH'),
    )
    flask_app.extensions['trivia'] = gateway
    flask_app.logger.info(
        f"[trivia-init] questions={len(context.bank)} namespace={namespace} "
        f"round={context.engine.round_duration}s grace={context.engine.grace_duration}s"
    )

    # Import and register blueprints here
    from trivia.main import main
    flask_app.register_blueprint(main)

    from trivia.api.trivia import trivia_api
    flask_app.register_blueprint(trivia_api, url_prefix='/api/trivia')

    from trivia.socketio_events import register_socketio_handlers
    register_socketio_handlers(gateway, namespace=namespace)

    @flask_app.errorhandler(404)
    def not_found(_err):
        return jsonify({'error': 'Not found'}), 404

    @flask_app.errorhandler(500)
    def server_error(err):
        flask_app.logger.error(f"[http-error] {err}")
        return jsonify({'error': 'Something went wrong!'}), 500

    @click.command('trivia-questions')
    @click.option('--file', 'path', type=click.Path(dir_okay=False), default=None,
                  help='JSON question bank to check instead of the configured one.')
    def trivia_questions_command(path):
        """Validates a question bank and lists its questions."""
        from trivia.services.game.questions import QuestionBankError, load_question_bank
        if path:
            try:
                bank = load_question_bank(path)
            except QuestionBankError as exc:
                raise click.ClickException(str(exc))
        else:
            bank = context.bank
        for i, question in enumerate(bank, start=1):
            click.echo(f"{i:>3}. {question.prompt}")
            for j, option in enumerate(question.options):
                marker = '*' if j == question.answer else ' '
                click.echo(f"      {marker} {j}) {option}")
        click.echo(f"{len(bank)} questions OK")

    flask_app.cli.add_command(trivia_questions_command)

    return flask_app

