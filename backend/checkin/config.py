import os
from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./data/checkin.db")
    SQL_ECHO: bool = _as_bool(os.getenv("SQL_ECHO", "false"))
    API_PREFIX: str = os.getenv("API_PREFIX", "/api")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    CRON_SECRET: str = os.getenv("CRON_SECRET", "")
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # "今天" 的判定基准，单位小时，默认 UTC
    UTC_OFFSET_HOURS: int = int(os.getenv("UTC_OFFSET_HOURS", "0"))

    SHORT_ID_LENGTH: int = int(os.getenv("SHORT_ID_LENGTH", "6"))
    SHORT_ID_MAX_ATTEMPTS: int = int(os.getenv("SHORT_ID_MAX_ATTEMPTS", "10"))

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


settings = Settings()
