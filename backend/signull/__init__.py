from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
import json
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from signull.main import main
    flask_app.register_blueprint(main)

    from signull.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    # Register Socket.IO event handlers
    from signull.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates all tables."""
        import signull.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    @click.command('room-show')
    @click.argument('code')
    def room_show_command(code):
        """Prints the current snapshot of a room."""
        from signull.services.game.errors import GameError
        from signull.services.game.repository import RoomRepository
        from signull.services.game.selectors import room_payload
        with flask_app.app_context():
            try:
                room = RoomRepository().load(code)
            except GameError as exc:
                raise click.ClickException(exc.message)
            click.echo(json.dumps(room_payload(room), indent=2))

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(room_show_command)

    return flask_app
