import os
from dataclasses import dataclass, field

from dotenv import load_dotenv


env_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), ".env")
load_dotenv(dotenv_path=env_path)

DB_PATH = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "schoolhub.db")


def _split_origins(raw: str) -> tuple[str, ...]:
    return tuple(origin.strip() for origin in raw.split(",") if origin.strip())


@dataclass(frozen=True)
class Settings:
    database_url: str = os.getenv("DATABASE_URL", f"sqlite:///{DB_PATH}")
    jwt_secret: str = os.getenv("JWT_SECRET", "change-me-in-production")
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    jwt_exp_minutes: int = int(os.getenv("JWT_EXP_MINUTES", str(7 * 24 * 60)))
    bcrypt_rounds: int = int(os.getenv("BCRYPT_ROUNDS", "10"))
    cors_origins: tuple[str, ...] = field(
        default_factory=lambda: _split_origins(
            os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
        )
    )
    cors_origin_regex: str | None = os.getenv("CORS_ORIGIN_REGEX") or None
    dashboard_upcoming_events: int = int(os.getenv("DASHBOARD_UPCOMING_EVENTS", "10"))
    dashboard_recent_announcements: int = int(os.getenv("DASHBOARD_RECENT_ANNOUNCEMENTS", "5"))
    dashboard_recent_attendance: int = int(os.getenv("DASHBOARD_RECENT_ATTENDANCE", "50"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    is_production: bool = os.getenv("ENVIRONMENT", "development").lower() == "production"


settings = Settings()
