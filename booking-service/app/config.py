from functools import lru_cache
from typing import List, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BOOKING_",
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "Booking Service"

    # Файловое хранилище
    DATA_DIR: str = "/app/data"
    LOG_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"

    # auto_confirm - фиктивная оплата сразу подтверждает бронь,
    # adjudication - бронь ждёт решения администратора
    LIFECYCLE: Literal["auto_confirm", "adjudication"] = "auto_confirm"
    CANCELLATION_WINDOW_HOURS: float = 2

    # Схема зала по умолчанию: ряды A-J, места 1-10
    SEAT_ROWS: str = "ABCDEFGHIJ"
    SEATS_PER_ROW: int = 10

    ID_MAX_ATTEMPTS: int = 5
    LOCK_TIMEOUT_SECONDS: float = 5.0

    NOTIFICATION_SERVICE_URL: str = ""
    SEED_DEMO_DATA: bool = True

    CORS_ORIGINS: List[str] = ["*"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v):
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        return v

    @field_validator("SEAT_ROWS")
    @classmethod
    def check_seat_rows(cls, v: str) -> str:
        v = v.upper()
        if not v.isalpha() or len(set(v)) != len(v):
            raise ValueError("SEAT_ROWS must be distinct letters")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
