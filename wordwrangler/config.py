"""Application configuration classes."""
import os


def _env_int(name: str, default: int) -> int:
    return int(os.environ.get(name, str(default)))


class Config:
    """Base configuration."""

    SECRET_KEY: str = os.environ.get("SECRET_KEY", "dev-secret-change-in-production")
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "sqlite:///wordwrangler.db")
    SQLALCHEMY_DATABASE_URI: str = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
    CORS_ORIGINS: str = os.environ.get("CORS_ORIGINS", "*")
    SOCKETIO_ASYNC_MODE: str = os.environ.get("SOCKETIO_ASYNC_MODE", "eventlet")
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    # Game defaults and bounds
    DEFAULT_TOTAL_ROUNDS: int = _env_int("DEFAULT_TOTAL_ROUNDS", 5)
    DEFAULT_TIMER_SECONDS: int = _env_int("DEFAULT_TIMER_SECONDS", 180)
    MAX_TOTAL_ROUNDS: int = _env_int("MAX_TOTAL_ROUNDS", 20)
    MAX_TIMER_SECONDS: int = _env_int("MAX_TIMER_SECONDS", 3600)
    MAX_SUBMISSION_LENGTH: int = _env_int("MAX_SUBMISSION_LENGTH", 5000)
    MAX_DISPLAY_NAME_LENGTH: int = _env_int("MAX_DISPLAY_NAME_LENGTH", 50)
    MAX_AVATAR_LENGTH: int = _env_int("MAX_AVATAR_LENGTH", 50)

    # Scoring
    AWARD_MIN_POINTS: int = _env_int("AWARD_MIN_POINTS", 0)
    AWARD_MAX_POINTS: int = _env_int("AWARD_MAX_POINTS", 10)
    STRICT_AWARD_MIN_POINTS: int = _env_int("STRICT_AWARD_MIN_POINTS", 1)
    STRICT_AWARD_MAX_POINTS: int = _env_int("STRICT_AWARD_MAX_POINTS", 5)
    SCORE_UPDATE_ATTEMPTS: int = _env_int("SCORE_UPDATE_ATTEMPTS", 3)
    JUDGE_FALLBACK_SCORE: int = _env_int("JUDGE_FALLBACK_SCORE", 3)

    # AI text generation
    OPENAI_API_KEY: str | None = os.environ.get("OPENAI_API_KEY")
    OPENAI_BASE_URL: str | None = os.environ.get("OPENAI_BASE_URL")
    JUDGE_MODEL: str = os.environ.get("JUDGE_MODEL", "gpt-4o-mini")
    REFLECTION_MODEL: str = os.environ.get("REFLECTION_MODEL", "gpt-4o")
    AI_TIMEOUT_SEC: int = _env_int("AI_TIMEOUT_SEC", 60)
    REFLECTION_AUTOSTART: bool = os.environ.get("REFLECTION_AUTOSTART", "1") == "1"


class DevelopmentConfig(Config):
    """Development configuration."""

    DEBUG: bool = True


class ProductionConfig(Config):
    """Production configuration."""

    DEBUG: bool = False


class TestingConfig(Config):
    """Configuration used by the test suite."""

    TESTING: bool = True
    SQLALCHEMY_DATABASE_URI: str = "sqlite://"
    SOCKETIO_ASYNC_MODE: str = "threading"
    REFLECTION_AUTOSTART: bool = False
    OPENAI_API_KEY: str | None = "sk-test"


config_map = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}
