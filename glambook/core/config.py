from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from backend project root so it loads regardless of cwd
_BACKEND_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _BACKEND_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str

    # JWT (tokens are issued by the identity provider; we only verify them)
    secret_key: str
    access_token_expire_minutes: int = 15
    algorithm: str = "HS256"

    # CORS
    cors_origins: str = "http://localhost:3000"

    # All working-hour configuration is interpreted in this timezone
    platform_timezone: str = "Africa/Cairo"

    # What to do for artists who never saved availability: "fallback" or "none"
    missing_availability_policy: str = "fallback"
    fallback_working_days: str = "1,2,3,4,5"
    fallback_start_time: str = "10:00"
    fallback_end_time: str = "24:00"
    fallback_session_duration: int = 30
    fallback_break_between_sessions: int = 0

    # Calendar queries
    default_availability_days: int = 7
    max_availability_range_days: int = 31

    # Env
    env: str = "development"

    # Email (SMTP). Leave smtp_host empty to disable sending.
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    from_email: str = ""
    from_name: str = "GlamBook"
    site_name: str = "GlamBook"
    contact_email: str = "hello@glambook.app"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def fallback_working_days_list(self) -> list[int]:
        return [int(d) for d in self.fallback_working_days.split(",") if d.strip()]

    @property
    def email_enabled(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_password and self.from_email)


settings = Settings()
