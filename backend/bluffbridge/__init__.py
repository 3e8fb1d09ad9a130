from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = flask_app.config.get('CORS_ORIGINS', [])
    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/ws')
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One registry per app; handlers reach it through current_app
    from bluffbridge.registry import RoomRegistry
    from bluffbridge.socketio_events import SocketIOBroadcaster, register_socketio_handlers
    flask_app.extensions['room_registry'] = RoomRegistry.from_config(
        flask_app.config, broadcaster=SocketIOBroadcaster(namespace)
    )
    register_socketio_handlers(namespace)

    from bluffbridge.main import main
    flask_app.register_blueprint(main)

    @click.command('simulate')
    @click.option('--players', default=2, show_default=True, type=click.IntRange(2, 4))
    @click.option('--seed', default=None, type=int, help='Seed for dice, seating and bot choices.')
    @click.option('--challenge-rate', default=0.3, show_default=True, type=click.FloatRange(0.0, 1.0))
    def simulate_command(players, seed, challenge_rate):
        """Plays one game between bots and prints the result."""
        from bluffbridge.services.games.autoplay import play_bot_game
        from bluffbridge.models import Rules
        result = play_bot_game(
            players=players,
            rules=Rules.from_config(flask_app.config),
            seed=seed,
            challenge_rate=challenge_rate,
        )
        for line in result.log:
            click.echo(line)
        final = result.snapshot['game']
        click.echo(f"Winner: {final['winnerId']} ({final['winnerReason']}) after {result.turns} turns")
        for p in final['players']:
            click.echo(f"  {p['name']}: score={p['score']} stairs={p['stairsCount']} fallen={p['eliminated']}")

    flask_app.cli.add_command(simulate_command)

    return flask_app
