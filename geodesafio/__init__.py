# geodesafio/__init__.py
import os

from flask import Flask

from .config import Config
from .logging_setup import configure_logging
from .services.leaderboard import FileStorage, Leaderboard, MemoryStorage
from .services.session import GameRules


def _build_leaderboard(app: Flask) -> Leaderboard:
    path = app.config.get("LEADERBOARD_PATH")
    if path is None:
        path = os.path.join(app.instance_path, "leaderboard.json")
        app.config["LEADERBOARD_PATH"] = path
    storage = FileStorage(path) if path else MemoryStorage()
    if not path:
        app.logger.warning("LEADERBOARD_PATH not set. Leaderboard kept in memory only.")
    return Leaderboard(
        storage,
        key=app.config["LEADERBOARD_KEY"],
        player_name=app.config["LEADERBOARD_PLAYER_NAME"],
    )


def create_app(config_class=Config) -> Flask:
    """Application factory."""
    app = Flask(__name__)
    app.config.from_object(config_class)

    configure_logging(app)

    # One leaderboard per process, shared by every request (the browser's localStorage)
    app.extensions["leaderboard"] = _build_leaderboard(app)
    app.extensions["game_rules"] = GameRules.from_config(app.config)
    # topic slug -> (Topic, records), filled on game start
    app.extensions["challenge_cache"] = {}

    from .routes import bp as main_bp
    app.register_blueprint(main_bp)

    app.logger.info("%s ready (data dir: %s)", app.config["APP_NAME"], app.config["DATA_DIR"])
    return app
