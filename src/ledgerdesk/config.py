from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str
    host: str
    port: int
    debug: bool
    session_secret_key: str
    cors_origins: list[str] = []
    admin_email: str = "admin@ledgerdesk.local"  # Bootstrap admin account created on first start
    admin_password: str = "admin"
    guard_timeout_seconds: float = 5.0  # Upper bound for the access guard's profile lookup
    firebase_credentials_path: str | None = None  # Service account JSON for push notifications (optional)
    # Build metadata injected during Docker build via environment variables
    git_commit_hash: str = "unknown"
    git_commit_date: str = "unknown"
    build_time: str = "unknown"

    model_config = {
        "env_file": [".env"],
        "env_prefix": "LEDGERDESK_",
        "extra": "ignore",
    }
