import logging
from dataclasses import dataclass

import click
from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)


@dataclass
class GameServer:
    """Per-app service graph, reachable as ``app.extensions['lumi']``."""

    registry: 'PlayerRegistry'
    game: 'GameStateMachine'
    broadcaster: 'EventBroadcaster'
    images: 'ImageStore'


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    logging.getLogger('lumi').setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    origins = flask_app.config.get('CORS_ORIGINS') or '*'
    if origins == ['*']:
        origins = '*'
    CORS(flask_app, origins=origins)

    # Initialize Socket.IO after app is created
    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/')
    socketio.init_app(
        flask_app,
        cors_allowed_origins=origins,
        path=flask_app.config.get('SOCKETIO_PATH', 'socket.io'),
    )

    from lumi.services.broadcaster import EventBroadcaster, SocketIOTransport
    from lumi.services.game import GameStateMachine
    from lumi.services.images import ImageStore
    from lumi.services.players import PlayerRegistry

    registry = PlayerRegistry()
    game = GameStateMachine(registry)
    broadcaster = EventBroadcaster(
        registry,
        game,
        SocketIOTransport(socketio, namespace=namespace),
        default_total_puzzles=int(flask_app.config.get('DEFAULT_TOTAL_PUZZLES', 5)),
    )
    images = ImageStore(
        notify=broadcaster.images_changed,
        allowed_types=flask_app.config.get('ALLOWED_IMAGE_TYPES', ('image/jpeg', 'image/png', 'image/webp')),
        max_bytes=int(flask_app.config.get('MAX_IMAGE_BYTES', 5 * 1024 * 1024)),
        image_set=flask_app.config.get('IMAGE_SET', 'default'),
    )
    flask_app.extensions['lumi'] = GameServer(registry=registry, game=game, broadcaster=broadcaster, images=images)

    # Register blueprints here
    from lumi.routes import main
    flask_app.register_blueprint(main)

    from lumi.api.images import images as images_bp
    flask_app.register_blueprint(images_bp, url_prefix='/api/images')

    # Socket handlers close over this app's broadcaster
    from lumi.socketio_events import register_socketio_handlers
    register_socketio_handlers(broadcaster, namespace=namespace)

    @click.command('score')
    @click.argument('time_seconds', type=int)
    @click.argument('moves', type=int)
    def score_command(time_seconds, moves):
        """Prints the score for a puzzle solved in TIME_SECONDS with MOVES swaps."""
        from lumi.services.scoring import calculate_score, format_time
        click.echo(f"{format_time(time_seconds)} / {moves} moves -> {calculate_score(time_seconds, moves)}")

    @click.command('shuffle')
    @click.option('--pieces', default=9, show_default=True, help='Number of pieces on the board.')
    def shuffle_command(pieces):
        """Prints a freshly shuffled board."""
        from lumi.services.puzzle import shuffle
        click.echo(' '.join(str(p) for p in shuffle(pieces)))

    flask_app.cli.add_command(score_command)
    flask_app.cli.add_command(shuffle_command)

    return flask_app
