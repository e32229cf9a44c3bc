from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    DEBUG: bool = False

    LISTEN_API_KEY: str = ""
    LISTEN_API_BASE_URL: str = "https://listen-api.listennotes.com/api/v2"
    TRACK_SEARCH_URL: str = "https://saavnapi-nine.vercel.app/result/"

    SQLALCHEMY_DATABASE_URI: str = "sqlite:///./catalog_sync.db"

    LOG_DIR: str = "logs"
    LOG_TIMEZONE: str = "UTC"

    ENABLE_TELEGRAM: bool = False
    TELEGRAM_BOT_TOKEN: str = ""
    TELEGRAM_USER_ID: str = ""


settings = Settings()
