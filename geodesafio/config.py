import os
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parents[1]
PACKAGE_DIR = Path(__file__).resolve().parent

# Load .env as early as possible so env vars are available everywhere
load_dotenv(BASE_DIR / ".env")


def _env_bool(name: str, default: bool) -> bool:
    """Recognizes '1', 'true', 'yes', 'on' / '0', 'false', 'no', 'off'; anything else gives the default."""
    raw = (os.getenv(name) or "").strip().lower()
    if raw in {"1", "true", "yes", "on"}:
        return True
    if raw in {"0", "false", "no", "off"}:
        return False
    return default


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


class Config:
    # ================ Application Settings ================
    SECRET_KEY = os.getenv("SECRET_KEY", "dev")  # set a strong value in production
    APP_NAME = os.getenv("APP_NAME", "GeoDesafio")
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = _env_bool("SESSION_COOKIE_SECURE", False)

    # ================ Logging Settings ================
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # ================ Data ================
    DATA_DIR = os.getenv("DATA_DIR") or str(PACKAGE_DIR / "data")
    IMAGES_FOLDER = os.getenv("IMAGES_FOLDER", "assets/images/")
    SHUFFLE_CHALLENGES = _env_bool("SHUFFLE_CHALLENGES", True)

    # ================ Leaderboard ================
    # Unset: <instance_path>/leaderboard.json. Empty string: memory only.
    LEADERBOARD_PATH = os.getenv("LEADERBOARD_PATH")
    LEADERBOARD_KEY = os.getenv("LEADERBOARD_KEY", "geodesafio_leaderboard")
    LEADERBOARD_PLAYER_NAME = os.getenv("LEADERBOARD_PLAYER_NAME", "Current Player")

    # ================ Game Rules ================
    MAX_ATTEMPTS = _env_int("MAX_ATTEMPTS", 3)
    MULTIPLE_CHOICE_THRESHOLD = _env_int("MULTIPLE_CHOICE_THRESHOLD", 2)
    INITIAL_BLUR = _env_int("INITIAL_BLUR", 30)
    BLUR_STEP = _env_int("BLUR_STEP", 10)


class DevelopmentConfig(Config):
    DEBUG = True
    LOG_LEVEL = "DEBUG"


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SHUFFLE_CHALLENGES = False
    LEADERBOARD_PATH = ""  # memory storage
