"""
Configuration module for the application.
All configuration values are read from environment variables.
Values missing from the environment fall back to development defaults.
"""
import os
import secrets
import warnings


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    return int(raw) if raw else default


def _bool_env(name: str, default: bool = False) -> bool:
    raw = os.getenv(name, "")
    return raw.lower() == "true" if raw else default


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self):
        """Initialize configuration from environment variables."""
        # Flask Configuration
        self.SECRET_KEY: str = os.getenv("SECRET_KEY", "")
        self.FLASK_ENV: str = os.getenv("FLASK_ENV", "")
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

        # Generate a development SECRET_KEY if not set and in development mode
        if not self.SECRET_KEY and self.FLASK_ENV != "production":
            self.SECRET_KEY = secrets.token_urlsafe(32)
            warnings.warn(
                "SECRET_KEY not set. Generated a temporary key for development. "
                "Set SECRET_KEY in your .env file for production!",
                UserWarning
            )

        # Database Configuration
        self.DATABASE_URL: str = os.getenv("DATABASE_URL", "")
        self.DB_USER: str = os.getenv("DB_USER", "")
        self.DB_PASSWORD: str = os.getenv("DB_PASSWORD", "")
        self.DB_HOST: str = os.getenv("DB_HOST", "")
        self.DB_PORT: str = os.getenv("DB_PORT", "")
        self.DB_NAME: str = os.getenv("DB_NAME", "")

        # Blueprint URL Prefixes
        self.AUTH_API_PREFIX: str = os.getenv("AUTH_API_PREFIX", "/api/auth")
        self.QUIZ_API_PREFIX: str = os.getenv("QUIZ_API_PREFIX", "/api/quizzes")
        self.ADMIN_API_PREFIX: str = os.getenv("ADMIN_API_PREFIX", "/api/admin")

        # Password Validation
        self.MIN_PASSWORD_LENGTH: int = _int_env("MIN_PASSWORD_LENGTH", 6)
        # bcrypt work factor; lower it only in tests
        self.BCRYPT_ROUNDS: int = _int_env("BCRYPT_ROUNDS", 12)

        # Quiz defaults applied at authoring time
        self.DEFAULT_PASSING_SCORE: int = _int_env("DEFAULT_PASSING_SCORE", 70)
        self.DEFAULT_MAX_ATTEMPTS: int = _int_env("DEFAULT_MAX_ATTEMPTS", 3)

        # Rate limits (requests per window, window in seconds)
        self.LOGIN_RATE_LIMIT: int = _int_env("LOGIN_RATE_LIMIT", 10)
        self.LOGIN_RATE_WINDOW: int = _int_env("LOGIN_RATE_WINDOW", 60)
        self.SUBMIT_RATE_LIMIT: int = _int_env("SUBMIT_RATE_LIMIT", 30)
        self.SUBMIT_RATE_WINDOW: int = _int_env("SUBMIT_RATE_WINDOW", 60)

        # Session Configuration
        self.SESSION_COOKIE_SECURE: bool = _bool_env("SESSION_COOKIE_SECURE")
        self.SESSION_COOKIE_HTTPONLY: bool = _bool_env("SESSION_COOKIE_HTTPONLY", True)
        self.SESSION_COOKIE_SAMESITE: str = os.getenv("SESSION_COOKIE_SAMESITE", "Lax")

        # SQLAlchemy Configuration
        self.SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
        self.SQLALCHEMY_ECHO: bool = _bool_env("SQLALCHEMY_ECHO")

    def reload(self) -> None:
        """Re-read every value from the environment, keeping this instance shared."""
        self.__init__()

    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        """Database URI: DATABASE_URL if set, otherwise built from the DB_* variables."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"mysql+pymysql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    def validate(self) -> None:
        """
        Validate required configuration values.
        Only enforces SECRET_KEY in production environment.
        """
        if not self.SECRET_KEY:
            if self.FLASK_ENV == "production":
                raise ValueError(
                    "SECRET_KEY environment variable is required in production. "
                    "Set it in your .env file or environment variables."
                )
        if not 0 <= self.DEFAULT_PASSING_SCORE <= 100:
            raise ValueError("DEFAULT_PASSING_SCORE must be between 0 and 100")
        if self.DEFAULT_MAX_ATTEMPTS < 1:
            raise ValueError("DEFAULT_MAX_ATTEMPTS must be at least 1")
        if not 4 <= self.BCRYPT_ROUNDS <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31")


# Global config instance - will be re-initialized after load_dotenv()
config = Config()
