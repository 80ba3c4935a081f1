from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from project root so it loads regardless of cwd
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
    database_url: str = "sqlite+aiosqlite:///./slotbook.db"
    # "sql" (SQLModel tables) or "memory" (process-local dictionaries)
    storage_backend: str = "sql"
    # Run SQLModel create_all at startup; turn off once Alembic owns the schema
    create_tables_on_startup: bool = True

    # JWT
    secret_key: str = "change-me"
    access_token_expire_minutes: int = 60
    algorithm: str = "HS256"

    # Admin credentials; password is a bcrypt hash (see slotbook.core.security.hash_password)
    admin_username: str = "admin"
    admin_password_hash: str = ""

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Booking rules
    # Wall clock used for past-date and advance-notice checks
    timezone: str = "UTC"
    min_booking_year: int = 2024
    max_booking_year: int = 2030

    # Env
    env: str = "development"

    # Email (SMTP). Leave smtp_host empty to disable sending.
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    from_email: str = ""
    from_name: str = "SlotBook"
    admin_notification_email: str = ""
    # Frontend base URL used for cancel/reschedule links in emails
    frontend_url: str = "http://localhost:3000"
    site_name: str = "SlotBook"
    contact_email: str = ""

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def email_enabled(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_password and self.from_email)


settings = Settings()
