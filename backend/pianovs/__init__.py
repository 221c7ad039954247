import json
import logging

import click
from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(getattr(logging, str(flask_app.config.get('LOG_LEVEL', 'INFO')), logging.INFO))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or Config.CORS_ORIGINS
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Live rooms exist only in this process; nothing is persisted
    from pianovs.services.game import RoomRegistry
    flask_app.extensions['room_registry'] = RoomRegistry(
        target_word=flask_app.config.get('TARGET_WORD', 'MAGIC')
    )
    # Per-socket protocol state, keyed by Socket.IO session id
    flask_app.extensions['connections'] = {}

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from pianovs.main import main
    flask_app.register_blueprint(main)

    from pianovs.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    # Importing here ensures the handlers bind to the initialized socketio instance
    from pianovs.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    @click.command('compare-melodies')
    @click.argument('reference', type=click.File('r'))
    @click.argument('attempt', type=click.File('r'))
    def compare_melodies_command(reference, attempt):
        """Compares two recorded melodies (JSON event lists) the way a replay is judged."""
        from pianovs.models import parse_melody
        from pianovs.services.game import compare

        melodies = []
        for handle in (reference, attempt):
            try:
                melodies.append(parse_melody(json.load(handle)))
            except ValueError as exc:
                raise click.BadParameter(f'{handle.name}: {exc}')
        if compare(*melodies):
            click.echo('match')
        else:
            click.echo('mismatch')
            raise SystemExit(1)

    flask_app.cli.add_command(compare_melodies_command)

    return flask_app


def get_registry(flask_app=None):
    from flask import current_app
    app = flask_app or current_app
    return app.extensions['room_registry']


def get_connections(flask_app=None):
    from flask import current_app
    app = flask_app or current_app
    return app.extensions['connections']
