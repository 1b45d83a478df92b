from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    SECRET_KEY: str = "change-me"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    DB_URI: str = "sqlite:///./ras_monitor.db"
    CORS_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"
    # demo project, devices and readings on startup; keep off in production
    SEED_DEMO_DATA: bool = True
    # optional outbound webhook for alerting readings
    ALERT_WEBHOOK_URL: str = ""
    ALERT_WEBHOOK_TOKEN: str = ""
    EXTERNAL_TIMEOUT_SECONDS: float = 8.0

    model_config = SettingsConfigDict(
        env_file=[
            Path(__file__).resolve().parents[2] / ".env",
            Path(".env"),
        ],
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
