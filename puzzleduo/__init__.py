from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from puzzleduo.config import Config

socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One session store per application; handlers reach it through app.extensions
    from puzzleduo.broadcaster import SocketIOBroadcaster
    from puzzleduo.catalog import default_puzzle_catalog, default_question_catalog
    from puzzleduo.registry import SessionRegistry
    from puzzleduo.services import GameServices

    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/')
    registry = SessionRegistry(
        default_puzzle_catalog(),
        default_question_catalog(),
        code_length=int(flask_app.config.get('SESSION_CODE_LENGTH', 6)),
    )
    flask_app.extensions['puzzleduo'] = GameServices(registry, SocketIOBroadcaster(socketio, namespace))

    # Import and register blueprints here
    from puzzleduo.main import main
    flask_app.register_blueprint(main)

    from puzzleduo.api.sessions import sessions
    flask_app.register_blueprint(sessions, url_prefix='/api')

    # Register Socket.IO event handlers
    from puzzleduo.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace)

    @click.command('catalog-check')
    def catalog_check_command():
        """Validates the puzzle and question catalogs."""
        problems = registry.puzzles.problems() + registry.questions.problems()
        for problem in problems:
            click.echo(f'  - {problem}', err=True)
        if problems:
            raise click.ClickException(f'{len(problems)} catalog problem(s) found')
        click.echo(f'{registry.puzzles.max_stage} stages, {registry.questions.total} questions: OK')

    flask_app.cli.add_command(catalog_check_command)

    from puzzleduo.services.sweeper import start_idle_sweeper
    start_idle_sweeper(flask_app)

    return flask_app
